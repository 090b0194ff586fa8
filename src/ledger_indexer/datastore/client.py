"""Connection pool and session factory behind the document collections.

``Datastore`` is opened once per engine. Opening it builds the async engine
from :class:`DatabaseConfig`; :meth:`Datastore.create_collections` then makes
sure the ``asset`` and ``parcel`` tables exist before the first write.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ledger_indexer.engine.models import COLLECTIONS, Base

if TYPE_CHECKING:
    from ledger_indexer.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_CLOSED = "Datastore is not open. Call open() first."


def _engine_options(config: DatabaseConfig) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    SQLite runs on a single shared connection, so pool sizing only applies to
    server backends.
    """
    options: dict[str, Any] = {"echo": config.debug_sql}
    if not config.dsn.startswith("sqlite"):
        options.update(
            pool_size=config.max_idle_connections,
            max_overflow=max(config.max_open_connections - config.max_idle_connections, 0),
            pool_pre_ping=True,
        )
    return options


class Datastore:
    """Owns the async engine the document store runs its sessions on."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def open(self) -> None:
        """Build the engine and session factory. Opening twice is a no-op."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(self._config.dsn, **_engine_options(self._config))
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.debug("Datastore opened (%s)", self._engine.dialect.name)

    async def create_collections(self) -> None:
        """Create the collection tables and their indexes if missing."""
        tables = [model.__table__ for model in COLLECTIONS.values()]
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=tables)

    async def close(self) -> None:
        """Dispose the pool. Safe to call on a closed datastore."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._engine

    @property
    def dialect(self) -> str:
        """Backend name, ``sqlite`` or ``postgresql``."""
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        """Start a session; use it as an async context manager."""
        if self._sessions is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._sessions()
