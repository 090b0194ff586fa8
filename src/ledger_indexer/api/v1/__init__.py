"""V1 REST API routes.

Combines all sub-routers under the ``/api/v1`` prefix.
"""

from fastapi import APIRouter

from ledger_indexer.api.v1.assets import router as assets_router
from ledger_indexer.api.v1.ingest import router as ingest_router
from ledger_indexer.api.v1.parcels import router as parcels_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(assets_router)
v1_router.include_router(parcels_router)
v1_router.include_router(ingest_router)

__all__ = ["v1_router"]
