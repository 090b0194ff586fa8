"""Balance service: per-type sums of an address's live outputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ledger_indexer.datastore.query import And, Term
from ledger_indexer.engine.records import ASSET_COLLECTION, BalanceBucket
from ledger_indexer.engine.services.confirmation import live, resolve_window
from ledger_indexer.engine.services.pagination import page_offset

if TYPE_CHECKING:
    from ledger_indexer.datastore.documents import Bucket
    from ledger_indexer.engine.client import IndexerEngine


def _to_balance(bucket: Bucket) -> BalanceBucket:
    return BalanceBucket(
        asset_type=bucket.key,
        total_asset_quantity=bucket.total,
        utxo_quantity=bucket.count,
    )


class BalanceService:
    """Groups live outputs by asset type and sums their amounts.

    Buckets come back ordered by total quantity descending; equal totals are
    ordered by asset type ascending. Paging applies to the ordered bucket
    list, never to the underlying outputs.
    """

    def __init__(self, engine: IndexerEngine) -> None:
        self._engine = engine

    async def aggregate_utxo_balances(
        self,
        address: str,
        best_block_number: int,
        confirm_threshold: int,
        *,
        confirmed: bool,
        page: int = 0,
        page_size: int | None = None,
    ) -> list[BalanceBucket]:
        """Return one bucket per asset type held by *address*.

        Args:
            address: Owner address.
            best_block_number: Current chain height.
            confirm_threshold: Confirmation depth.
            confirmed: Aggregate confirmed outputs if True, else unconfirmed ones.
            page: Zero-based bucket page.
            page_size: Buckets per page (defaults to the list page size).
        """
        size = page_size if page_size is not None else self._engine.config.indexer.list_page_size
        offset = page_offset(page, size, first_page=0)
        query = And(
            Term("address", address),
            live("is_removed"),
            resolve_window(best_block_number, confirm_threshold, is_confirmed=confirmed),
        )
        with self._engine.track_query("aggregate_utxo_balances"):
            buckets = await self._engine.documents.aggregate(
                ASSET_COLLECTION,
                query,
                group_by="asset_type",
                sum_field="amount",
                offset=offset,
                size=size,
            )
        return [_to_balance(b) for b in buckets]

    async def aggregate_utxo_balance_for_type(
        self,
        address: str,
        asset_type: str,
        best_block_number: int,
        confirm_threshold: int,
        *,
        confirmed: bool,
    ) -> BalanceBucket | None:
        """Return the single bucket for *asset_type*, or None when nothing is live."""
        query = And(
            Term("address", address),
            Term("asset_type", asset_type),
            live("is_removed"),
            resolve_window(best_block_number, confirm_threshold, is_confirmed=confirmed),
        )
        with self._engine.track_query("aggregate_utxo_balance_for_type"):
            buckets = await self._engine.documents.aggregate(
                ASSET_COLLECTION,
                query,
                group_by="asset_type",
                sum_field="amount",
            )
        if not buckets:
            return None
        return _to_balance(buckets[0])
