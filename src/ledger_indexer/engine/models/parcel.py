"""Parcel document: one row per ledger parcel."""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_indexer.engine.models.base import Base, TimestampMixin


class ParcelDocument(Base, TimestampMixin):
    """A parcel keyed by its hash.

    ``receiver`` is copied out of ``action`` at index time so address-scoped
    listings can filter on it.
    """

    __tablename__ = "parcel"
    __table_args__ = (Index("ix_parcel_position", "block_number", "parcel_index"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True, comment="Parcel hash")
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_hash: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    parcel_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    network_id: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    signer: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    sig: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    action: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    receiver: Mapped[str | None] = mapped_column(
        String(128), nullable=True, default=None, index=True
    )
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_retracted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ParcelDocument {self.id[:16]} block={self.block_number} retracted={self.is_retracted}>"
