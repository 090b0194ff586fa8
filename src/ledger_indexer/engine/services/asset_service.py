"""Asset service: output lifecycle and per-type UTXO listing.

Outputs are never deleted. Spending one flips ``is_removed`` on, and a reorg
that undoes the spend flips it back off, so the index can always be rolled
back without replaying history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ledger_indexer.datastore.query import And, SortKey, Term
from ledger_indexer.engine.records import ASSET_COLLECTION, AssetIdentity, AssetRecord
from ledger_indexer.engine.services.confirmation import live, resolve_window
from ledger_indexer.engine.services.pagination import CursorPaginator
from ledger_indexer.errors.store_errors import NotFoundError

if TYPE_CHECKING:
    from ledger_indexer.engine.client import IndexerEngine
    from ledger_indexer.engine.services.pagination import Cursor, Page

logger = logging.getLogger(__name__)

ASSET_SORT = [
    SortKey("block_number"),
    SortKey("parcel_index"),
    SortKey("transaction_index"),
    SortKey("transaction_output_index"),
]


class AssetService:
    """Projects asset output events into the ``asset`` collection."""

    def __init__(self, engine: IndexerEngine) -> None:
        self._engine = engine
        self._paginator = CursorPaginator(engine.documents, ASSET_COLLECTION)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def index_asset(self, record: AssetRecord) -> None:
        """Insert or overwrite an output as live.

        The same output may be observed again during a resync, so this is an
        upsert; indexing identical data twice leaves a single live record.
        """
        doc_id = record.identity.document_id
        document = record.to_document()
        document["is_removed"] = False
        await self._engine.documents.upsert(ASSET_COLLECTION, doc_id, document)
        self._engine.record_lifecycle("index_asset")
        logger.debug("Indexed asset %s", doc_id)

    async def remove_asset(self, identity: AssetIdentity) -> None:
        """Mark a spent output as removed.

        Raises:
            NotFoundError: If the output was never indexed.
        """
        await self._set_removed(identity, removed=True, operation="remove_asset")

    async def revival_asset(self, identity: AssetIdentity) -> None:
        """Undo :meth:`remove_asset` after a reorg dropped the spending parcel.

        Raises:
            NotFoundError: If the output was never indexed.
        """
        await self._set_removed(identity, removed=False, operation="revival_asset")

    async def get_asset(self, identity: AssetIdentity) -> AssetRecord | None:
        """Return the stored output whether or not it is removed."""
        doc = await self._engine.documents.get(ASSET_COLLECTION, identity.document_id)
        return None if doc is None else AssetRecord.from_document(doc)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_utxo_by_asset_type(
        self,
        address: str,
        asset_type: str,
        best_block_number: int,
        confirm_threshold: int,
        *,
        confirmed: bool,
        cursor: Cursor | None = None,
        page_size: int | None = None,
    ) -> Page[AssetRecord]:
        """List live outputs of one type held by *address*, newest first.

        Args:
            address: Owner address.
            asset_type: Asset type to list.
            best_block_number: Current chain height.
            confirm_threshold: Confirmation depth.
            confirmed: Select confirmed outputs if True, else unconfirmed ones.
            cursor: Sort position of the last output of the previous page.
            page_size: Outputs per page (defaults to the list page size).
        """
        query = And(
            Term("address", address),
            Term("asset_type", asset_type),
            live("is_removed"),
            resolve_window(best_block_number, confirm_threshold, is_confirmed=confirmed),
        )
        size = page_size if page_size is not None else self._engine.config.indexer.list_page_size
        with self._engine.track_query("list_utxo_by_asset_type"):
            return await self._paginator.page(
                query,
                ASSET_SORT,
                cursor=cursor,
                page_size=size,
                to_record=AssetRecord.from_document,
                position_of=lambda r: r.sort_position,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _set_removed(self, identity: AssetIdentity, *, removed: bool, operation: str) -> None:
        doc_id = identity.document_id
        try:
            await self._engine.documents.partial_update(
                ASSET_COLLECTION, doc_id, {"is_removed": removed}
            )
        except NotFoundError:
            logger.warning("%s: asset %s is not indexed", operation, doc_id)
            raise
        self._engine.record_lifecycle(operation)
        logger.debug("%s applied to asset %s", operation, doc_id)
