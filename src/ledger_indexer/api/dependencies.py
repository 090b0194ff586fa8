"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/parcels")
    async def list_parcels(
        engine: Annotated[IndexerEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from fastapi import Request

from ledger_indexer.engine.client import IndexerEngine  # noqa: TC001
from ledger_indexer.errors.definitions import ErrEngineNotReady
from ledger_indexer.errors.store_errors import InvalidQueryError


def get_engine(request: Request) -> IndexerEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        IndexerError: 503 if the engine is not initialized.
    """
    engine: IndexerEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise ErrEngineNotReady
    return engine


def limit_page_size(engine: IndexerEngine, value: int | None) -> int | None:
    """Check a requested page size against ``indexer.max_page_size``.

    Raises:
        InvalidQueryError: 400 if *value* exceeds the configured maximum.
    """
    limit = engine.config.indexer.max_page_size
    if value is not None and value > limit:
        msg = f"itemsPerPage must be at most {limit}, got {value}"
        raise InvalidQueryError(msg)
    return value
