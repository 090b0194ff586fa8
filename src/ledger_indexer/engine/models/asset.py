"""Asset document: one row per indexed asset output."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_indexer.engine.models.base import Amount, Base, TimestampMixin


class AssetDocument(Base, TimestampMixin):
    """An asset output owned by an address.

    The primary key is the composite identity
    ``{address}-{asset_type}-{transaction_hash}-{transaction_output_index}``.
    The asset descriptor is flattened into columns so every filter and
    aggregation runs on plain indexed fields. Spent outputs are flagged with
    ``is_removed`` and can be revived.
    """

    __tablename__ = "asset"
    __table_args__ = (
        Index(
            "ix_asset_position",
            "block_number",
            "parcel_index",
            "transaction_index",
            "transaction_output_index",
        ),
        Index("ix_asset_owner_type", "address", "asset_type", "is_removed"),
    )

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    asset_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    transaction_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    transaction_output_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(Amount, nullable=False, default=0)
    lock_script_hash: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    parameters: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    approver: Mapped[str | None] = mapped_column(String(128), nullable=True, default=None)
    administrator: Mapped[str | None] = mapped_column(String(128), nullable=True, default=None)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    parcel_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_removed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<AssetDocument {self.id} amount={self.amount} removed={self.is_removed}>"
