"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry, generate_latest
from starlette.responses import Response

from ledger_indexer import __version__
from ledger_indexer.api.v1 import v1_router
from ledger_indexer.config.settings import AppConfig
from ledger_indexer.engine.client import IndexerEngine
from ledger_indexer.errors.indexer_errors import IndexerError
from ledger_indexer.errors.store_errors import StoreUnavailableError
from ledger_indexer.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the engine on startup and close it on shutdown."""
    config: AppConfig = app.state.config
    engine = IndexerEngine(config)
    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Ledger indexer engine initialized")
        yield
    finally:
        app.state.engine = None
        await engine.close()
        logger.info("Ledger indexer engine shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="ledger-indexer",
        version=__version__,
        description="Confirmation-aware index of ledger parcels and asset outputs",
        lifespan=_lifespan,
    )
    app.state.config = config
    # HTTP series live here; engine series in the engine's own registry
    app.state.http_registry = CollectorRegistry()

    # -- Error handler --
    @app.exception_handler(IndexerError)
    async def _indexer_error_handler(request: Request, exc: IndexerError) -> JSONResponse:
        if isinstance(exc, StoreUnavailableError):
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        engine: IndexerEngine | None = getattr(app.state, "engine", None)
        if engine is None:
            return {"status": "starting"}
        status = await engine.health_check()
        return {"status": "ok" if status["datastore"] == "ok" else "degraded", **status}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        body = generate_latest(app.state.http_registry)
        engine: IndexerEngine | None = getattr(app.state, "engine", None)
        if engine is not None and engine.metrics is not None:
            body += generate_latest(engine.metrics.registry)
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.http_registry)

    app.include_router(v1_router)

    return app
