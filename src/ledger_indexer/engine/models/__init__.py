"""Document table models.

Importing this package registers both collections with ``Base.metadata``.
"""

from ledger_indexer.engine.models.asset import AssetDocument
from ledger_indexer.engine.models.base import Base, TimestampMixin
from ledger_indexer.engine.models.parcel import ParcelDocument

COLLECTIONS: dict[str, type[Base]] = {
    AssetDocument.__tablename__: AssetDocument,
    ParcelDocument.__tablename__: ParcelDocument,
}

__all__ = [
    "COLLECTIONS",
    "AssetDocument",
    "Base",
    "ParcelDocument",
    "TimestampMixin",
]
