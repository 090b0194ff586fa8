"""V1 ingest endpoints: lifecycle mutations pushed by the chain-event consumer.

Every mutation is idempotent or a targeted flag flip. A flip on an unknown
document answers 404 so the consumer can reconcile its replay.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ledger_indexer.api.dependencies import get_engine
from ledger_indexer.api.v1.schemas import (
    AssetIdentitySchema,
    AssetRecordSchema,
    ParcelSchema,
)
from ledger_indexer.engine.client import IndexerEngine  # noqa: TC001

router = APIRouter(tags=["ingest"])


@router.put("/asset", status_code=status.HTTP_204_NO_CONTENT)
async def index_asset(
    body: AssetRecordSchema,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> None:
    """Index (or re-index) a live output."""
    await engine.asset_service.index_asset(body.to_record())


@router.post("/asset/remove", status_code=status.HTTP_204_NO_CONTENT)
async def remove_asset(
    body: AssetIdentitySchema,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> None:
    """Mark a spent output as removed."""
    await engine.asset_service.remove_asset(body.to_identity())


@router.post("/asset/revival", status_code=status.HTTP_204_NO_CONTENT)
async def revival_asset(
    body: AssetIdentitySchema,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> None:
    """Revive an output whose spend was undone by a reorg."""
    await engine.asset_service.revival_asset(body.to_identity())


@router.put("/parcel", status_code=status.HTTP_204_NO_CONTENT)
async def index_parcel(
    body: ParcelSchema,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> None:
    """Index or replace a parcel."""
    await engine.parcel_service.index_parcel(body.to_record())


@router.post("/parcel/{parcel_hash}/retract", status_code=status.HTTP_204_NO_CONTENT)
async def retract_parcel(
    parcel_hash: str,
    engine: Annotated[IndexerEngine, Depends(get_engine)],
) -> None:
    """Retract a parcel whose block left the canonical chain."""
    await engine.parcel_service.retract_parcel(parcel_hash)
