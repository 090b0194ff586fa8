"""Declarative base and timestamp columns shared by both collections."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ledger_indexer.engine.records import MAX_AMOUNT

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.types import TypeEngine


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all document tables."""

    type_annotation_map = {  # noqa: RUF012
        dict[str, Any]: JSON,
        list[str]: JSON,
    }


class TimestampMixin:
    """Created / updated timestamps.

    Documents are never physically deleted, so there is no ``deleted_at``;
    each collection carries its own liveness flag instead.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Amount(TypeDecorator[int]):
    """Unsigned 64-bit asset quantity.

    Stored as ``NUMERIC(20, 0)`` where the backend has exact decimals. SQLite
    would coerce such values to a lossy REAL, so there the digits are kept as
    text. Either way the Python side always sees a plain ``int``.
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(20, 0))

    def process_bind_param(self, value: int | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if isinstance(value, bool) or not 0 <= int(value) <= MAX_AMOUNT:
            msg = f"amount {value!r} is outside 0..{MAX_AMOUNT}"
            raise ValueError(msg)
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        return None if value is None else int(value)
