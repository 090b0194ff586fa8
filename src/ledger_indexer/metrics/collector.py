"""Metrics collector: Prometheus counters and histograms.

Exposed series:
- ``ledger_indexer_lifecycle_total`` counter-vec (index/remove/revive/retract …)
- ``ledger_indexer_query_seconds`` histogram-vec (one label per read path)
- ``ledger_indexer_store_errors_total`` counter-vec (unavailable, invalid_query)
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "ledger_indexer"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`IndexerMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class IndexerMetrics:
    """High-level indexer metrics. Histograms track durations in seconds."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._lifecycle = self._collector.counter(
            f"{_PREFIX}_lifecycle",
            "Lifecycle mutations applied to the index",
            ("operation",),
        )
        self._query = self._collector.histogram(
            f"{_PREFIX}_query_seconds",
            "Duration of index read operations",
            ("query",),
        )
        self._store_errors = self._collector.counter(
            f"{_PREFIX}_store_errors",
            "Document store failures by kind",
            ("kind",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_lifecycle(self, operation: str) -> None:
        """Count one applied lifecycle mutation."""
        self._lifecycle.labels(operation=operation).inc()

    def record_store_error(self, kind: str) -> None:
        """Count one failed store call."""
        self._store_errors.labels(kind=kind).inc()

    @contextmanager
    def track_query(self, query: str) -> Iterator[None]:
        """Track the duration of a read path."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._query.labels(query=query).observe(time.monotonic() - start)
