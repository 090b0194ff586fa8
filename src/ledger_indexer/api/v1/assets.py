"""V1 asset endpoints: per-type UTXO pages and balance aggregates."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from ledger_indexer.api.dependencies import get_engine, limit_page_size
from ledger_indexer.api.v1.schemas import (
    AssetRecordSchema,
    BalanceBucketSchema,
    UTXOPageResponse,
)
from ledger_indexer.chain.address import validate_asset_address
from ledger_indexer.engine.client import IndexerEngine  # noqa: TC001
from ledger_indexer.engine.services.asset_service import ASSET_SORT
from ledger_indexer.engine.services.pagination import Cursor

router = APIRouter(tags=["asset"])

BestBlock = Annotated[int, Query(alias="bestBlockNumber", ge=0)]
Threshold = Annotated[int | None, Query(alias="confirmThreshold", ge=0)]
ItemsPerPage = Annotated[int | None, Query(alias="itemsPerPage", ge=1)]


def _threshold(engine: IndexerEngine, value: int | None) -> int:
    return engine.config.indexer.confirm_threshold if value is None else value


@router.get("/utxo/{address}/{asset_type}")
async def list_utxo(
    address: str,
    asset_type: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
    best_block_number: BestBlock,
    confirm_threshold: Threshold = None,
    confirmed: bool = True,
    cursor: str | None = None,
    items_per_page: ItemsPerPage = None,
) -> dict[str, Any]:
    """List live outputs of one asset type for an address, newest first."""
    if not validate_asset_address(address):
        return UTXOPageResponse().model_dump(by_alias=True)
    page = await engine.asset_service.list_utxo_by_asset_type(
        address,
        asset_type,
        best_block_number,
        _threshold(engine, confirm_threshold),
        confirmed=confirmed,
        cursor=None if cursor is None else Cursor.decode(cursor, len(ASSET_SORT)),
        page_size=limit_page_size(engine, items_per_page),
    )
    return UTXOPageResponse(
        items=[AssetRecordSchema.from_record(r) for r in page.records],
        next_cursor=None if page.next_cursor is None else page.next_cursor.encode(),
    ).model_dump(by_alias=True)


@router.get("/aggs-utxo/{address}")
async def aggregate_utxo(
    address: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
    best_block_number: BestBlock,
    confirm_threshold: Threshold = None,
    confirmed: bool = True,
    page: Annotated[int, Query(ge=0)] = 0,
    items_per_page: ItemsPerPage = None,
) -> list[dict[str, Any]]:
    """Per-type balances of an address, largest total first."""
    if not validate_asset_address(address):
        return []
    buckets = await engine.balance_service.aggregate_utxo_balances(
        address,
        best_block_number,
        _threshold(engine, confirm_threshold),
        confirmed=confirmed,
        page=page,
        page_size=limit_page_size(engine, items_per_page),
    )
    return [BalanceBucketSchema.from_bucket(b) for b in buckets]


@router.get("/aggs-utxo/{address}/{asset_type}")
async def aggregate_utxo_for_type(
    address: str,
    asset_type: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
    best_block_number: BestBlock,
    confirm_threshold: Threshold = None,
    confirmed: bool = True,
) -> dict[str, Any] | None:
    """Balance of one asset type for an address, or null if none is live."""
    if not validate_asset_address(address):
        return None
    bucket = await engine.balance_service.aggregate_utxo_balance_for_type(
        address,
        asset_type,
        best_block_number,
        _threshold(engine, confirm_threshold),
        confirmed=confirmed,
    )
    return None if bucket is None else BalanceBucketSchema.from_bucket(bucket)
