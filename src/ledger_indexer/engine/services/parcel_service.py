"""Parcel service: parcel inclusion, retraction and listings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ledger_indexer.datastore.query import And, Or, SortKey, Term
from ledger_indexer.engine.records import PARCEL_COLLECTION, ParcelRecord
from ledger_indexer.engine.services.confirmation import live
from ledger_indexer.engine.services.pagination import CursorPaginator, page_offset
from ledger_indexer.errors.store_errors import NotFoundError

if TYPE_CHECKING:
    from ledger_indexer.datastore.query import Predicate
    from ledger_indexer.engine.client import IndexerEngine
    from ledger_indexer.engine.services.pagination import Cursor, Page

logger = logging.getLogger(__name__)

PARCEL_SORT = [SortKey("block_number"), SortKey("parcel_index")]


def _involving(address: str) -> Predicate:
    """Parcels signed by *address* or sending to it."""
    return Or(Term("signer", address), Term("receiver", address))


class ParcelService:
    """Projects parcel inclusion and reorg retraction into ``parcel``."""

    def __init__(self, engine: IndexerEngine) -> None:
        self._engine = engine
        self._paginator = CursorPaginator(engine.documents, PARCEL_COLLECTION)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def index_parcel(self, record: ParcelRecord) -> None:
        """Insert or replace the parcel keyed by its hash.

        Re-indexing a retracted parcel with ``is_retracted=False`` brings it
        back after it is included again.
        """
        await self._engine.documents.index(PARCEL_COLLECTION, record.hash, record.to_document())
        self._engine.record_lifecycle("index_parcel")
        logger.debug("Indexed parcel %s at block %d", record.hash, record.block_number)

    async def retract_parcel(self, parcel_hash: str) -> None:
        """Flag a parcel whose block left the canonical chain.

        Raises:
            NotFoundError: If the parcel was never indexed.
        """
        try:
            await self._engine.documents.partial_update(
                PARCEL_COLLECTION, parcel_hash, {"is_retracted": True}
            )
        except NotFoundError:
            logger.warning("retract_parcel: parcel %s is not indexed", parcel_hash)
            raise
        self._engine.record_lifecycle("retract_parcel")
        logger.debug("Retracted parcel %s", parcel_hash)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_parcel(self, parcel_hash: str) -> ParcelRecord | None:
        """Return the parcel if it is indexed and not retracted."""
        record = await self.get_parcel_record(parcel_hash)
        if record is None or record.is_retracted:
            return None
        return record

    async def get_parcel_record(self, parcel_hash: str) -> ParcelRecord | None:
        """Return the stored parcel whatever its retraction state."""
        doc = await self._engine.documents.get(PARCEL_COLLECTION, parcel_hash)
        return None if doc is None else ParcelRecord.from_document(doc)

    async def list_parcels(
        self,
        *,
        cursor: Cursor | None = None,
        page_size: int | None = None,
    ) -> Page[ParcelRecord]:
        """List live parcels, newest first, with cursor paging."""
        size = page_size if page_size is not None else self._engine.config.indexer.list_page_size
        with self._engine.track_query("list_parcels"):
            return await self._paginator.page(
                live("is_retracted"),
                PARCEL_SORT,
                cursor=cursor,
                page_size=size,
                to_record=ParcelRecord.from_document,
                position_of=lambda r: r.sort_position,
            )

    async def list_parcels_by_address(
        self,
        address: str,
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> list[ParcelRecord]:
        """List live parcels signed by or sent to *address*, newest first.

        Uses one-based offset paging; the query is narrow enough (one
        address) that random page access is worth the weaker stability.
        """
        size = page_size if page_size is not None else self._engine.config.indexer.address_page_size
        offset = page_offset(page, size, first_page=1)
        with self._engine.track_query("list_parcels_by_address"):
            docs = await self._engine.documents.search(
                PARCEL_COLLECTION,
                And(live("is_retracted"), _involving(address)),
                sort=PARCEL_SORT,
                offset=offset,
                size=size,
            )
        return [ParcelRecord.from_document(doc) for doc in docs]

    async def count_parcels(self) -> int:
        """Count live parcels."""
        with self._engine.track_query("count_parcels"):
            return await self._engine.documents.count(PARCEL_COLLECTION, live("is_retracted"))

    async def count_parcels_by_address(self, address: str) -> int:
        """Count live parcels signed by or sent to *address*."""
        with self._engine.track_query("count_parcels_by_address"):
            return await self._engine.documents.count(
                PARCEL_COLLECTION, And(live("is_retracted"), _involving(address))
            )
