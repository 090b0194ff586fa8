"""V1 parcel endpoints: lookups, cursor listing and per-address listing."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from ledger_indexer.api.dependencies import get_engine, limit_page_size
from ledger_indexer.api.v1.schemas import ParcelPageResponse, ParcelSchema
from ledger_indexer.chain.address import validate_platform_address
from ledger_indexer.engine.client import IndexerEngine  # noqa: TC001
from ledger_indexer.engine.services.pagination import Cursor
from ledger_indexer.engine.services.parcel_service import PARCEL_SORT
from ledger_indexer.errors.definitions import ErrParcelNotFound

router = APIRouter(tags=["parcel"])

ItemsPerPage = Annotated[int | None, Query(alias="itemsPerPage", ge=1)]


@router.get("/parcel/{parcel_hash}")
async def get_parcel(
    parcel_hash: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> dict[str, Any]:
    """Get a live (non-retracted) parcel by hash."""
    parcel = await engine.parcel_service.get_parcel(parcel_hash)
    if parcel is None:
        raise ErrParcelNotFound
    return ParcelSchema.from_record(parcel)


@router.get("/parcels")
async def list_parcels(
    engine: Annotated[IndexerEngine, Depends(get_engine)],
    cursor: str | None = None,
    items_per_page: ItemsPerPage = None,
) -> dict[str, Any]:
    """List live parcels, newest first."""
    page = await engine.parcel_service.list_parcels(
        cursor=None if cursor is None else Cursor.decode(cursor, len(PARCEL_SORT)),
        page_size=limit_page_size(engine, items_per_page),
    )
    return ParcelPageResponse(
        items=[ParcelSchema.from_record(p) for p in page.records],
        next_cursor=None if page.next_cursor is None else page.next_cursor.encode(),
    ).model_dump(by_alias=True)


@router.get("/parcels/totalCount")
async def count_parcels(
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> int:
    """Number of live parcels."""
    return await engine.parcel_service.count_parcels()


@router.get("/addr-platform-parcels/{address}")
async def list_parcels_by_address(
    address: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
    page: Annotated[int, Query(ge=1)] = 1,
    items_per_page: ItemsPerPage = None,
) -> list[dict[str, Any]]:
    """Live parcels signed by or sent to a platform address."""
    if not validate_platform_address(address):
        return []
    parcels = await engine.parcel_service.list_parcels_by_address(
        address, page=page, page_size=limit_page_size(engine, items_per_page)
    )
    return [ParcelSchema.from_record(p) for p in parcels]


@router.get("/addr-platform-parcels/{address}/totalCount")
async def count_parcels_by_address(
    address: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> int:
    """Number of live parcels involving a platform address."""
    if not validate_platform_address(address):
        return 0
    return await engine.parcel_service.count_parcels_by_address(address)
