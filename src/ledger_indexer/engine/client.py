"""IndexerEngine: owns the store connection and the indexing services."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledger_indexer.config.settings import AppConfig
    from ledger_indexer.datastore.client import Datastore
    from ledger_indexer.datastore.documents import DocumentStore
    from ledger_indexer.engine.services.asset_service import AssetService
    from ledger_indexer.engine.services.balance_service import BalanceService
    from ledger_indexer.engine.services.parcel_service import ParcelService
    from ledger_indexer.metrics.collector import IndexerMetrics

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class IndexerEngine:
    """Process-scoped owner of the document store and services.

    Construct one per process and pass it to whoever needs it::

        engine = IndexerEngine(config)
        await engine.initialize()
        await engine.asset_service.index_asset(record)
        await engine.close()
    """

    def __init__(self, config: AppConfig) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration with store and indexer settings.
        """
        self._config = config
        self._initialized = False

        self._datastore: Datastore | None = None
        self._documents: DocumentStore | None = None
        self._metrics: IndexerMetrics | None = None

        self._asset_service: AssetService | None = None
        self._balance_service: BalanceService | None = None
        self._parcel_service: ParcelService | None = None

    async def initialize(self) -> None:
        """Open the store, create the collections and start services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from ledger_indexer.datastore.client import Datastore
        from ledger_indexer.datastore.documents import DocumentStore
        from ledger_indexer.engine.services.asset_service import AssetService
        from ledger_indexer.engine.services.balance_service import BalanceService
        from ledger_indexer.engine.services.parcel_service import ParcelService
        from ledger_indexer.metrics.collector import IndexerMetrics

        if self._config.metrics.enabled:
            self._metrics = IndexerMetrics()

        self._datastore = Datastore(self._config.db)
        await self._datastore.open()
        await self._datastore.create_collections()
        self._documents = DocumentStore(self._datastore, metrics=self._metrics)

        self._asset_service = AssetService(self)
        self._balance_service = BalanceService(self)
        self._parcel_service = ParcelService(self)

        self._initialized = True
        logger.info("Indexer engine initialized (%s)", self._datastore.dialect)

    async def close(self) -> None:
        """Shut down services and release the connection pool.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        self._asset_service = None
        self._balance_service = None
        self._parcel_service = None
        self._documents = None
        self._metrics = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def documents(self) -> DocumentStore:
        """Get the document store."""
        if self._documents is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._documents

    @property
    def asset_service(self) -> AssetService:
        """Get the asset lifecycle/listing service."""
        if self._asset_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._asset_service

    @property
    def balance_service(self) -> BalanceService:
        """Get the balance aggregation service."""
        if self._balance_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._balance_service

    @property
    def parcel_service(self) -> ParcelService:
        """Get the parcel service."""
        if self._parcel_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._parcel_service

    @property
    def metrics(self) -> IndexerMetrics | None:
        """Get the indexer metrics (None if disabled or not initialized)."""
        return self._metrics

    def record_lifecycle(self, operation: str) -> None:
        """Count a lifecycle mutation if metrics are enabled."""
        if self._metrics is not None:
            self._metrics.record_lifecycle(operation)

    def track_query(self, query: str) -> AbstractContextManager[None]:
        """Time a read path if metrics are enabled."""
        if self._metrics is None:
            return nullcontext()
        return self._metrics.track_query(query)

    async def health_check(self) -> dict[str, str]:
        """Report engine and datastore status ('ok', 'error', 'not_initialized')."""
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
        }
        if self._initialized:
            status["datastore"] = (
                "ok" if self._datastore is not None and self._datastore.is_open else "error"
            )
        return status
