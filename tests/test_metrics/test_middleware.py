"""Tests for the Prometheus request middleware."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from ledger_indexer.metrics.middleware import PrometheusMiddleware


@pytest.fixture
def _app_with_metrics() -> tuple[FastAPI, CollectorRegistry]:
    registry = CollectorRegistry()
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware, registry=registry)

    @app.get("/test")
    async def test_endpoint() -> dict[str, str]:
        return {"ok": "yes"}

    @app.get("/parcel/{parcel_hash}")
    async def parcel_endpoint(parcel_hash: str) -> dict[str, str]:
        return {"hash": parcel_hash}

    return app, registry


class TestPrometheusMiddleware:
    """Tests for PrometheusMiddleware."""

    def test_increments_request_count(self, _app_with_metrics: tuple) -> None:
        app, registry = _app_with_metrics
        client = TestClient(app)
        client.get("/test")
        value = registry.get_sample_value(
            "http_request_total",
            {"method": "GET", "path": "/test", "status_code": "200", "app": "ledger-indexer"},
        )
        assert value == 1.0

    def test_records_duration(self, _app_with_metrics: tuple) -> None:
        app, registry = _app_with_metrics
        client = TestClient(app)
        client.get("/test")
        metric_names = [m.name for m in registry.collect()]
        assert "http_request_duration_seconds" in metric_names

    def test_multiple_requests(self, _app_with_metrics: tuple) -> None:
        app, registry = _app_with_metrics
        client = TestClient(app)
        client.get("/test")
        client.get("/test")
        client.get("/test")
        value = registry.get_sample_value(
            "http_request_total",
            {"method": "GET", "path": "/test", "status_code": "200", "app": "ledger-indexer"},
        )
        assert value == 3.0

    def test_labels_by_route_template(self, _app_with_metrics: tuple) -> None:
        app, registry = _app_with_metrics
        client = TestClient(app)
        client.get("/parcel/aaa")
        client.get("/parcel/bbb")
        value = registry.get_sample_value(
            "http_request_total",
            {
                "method": "GET",
                "path": "/parcel/{parcel_hash}",
                "status_code": "200",
                "app": "ledger-indexer",
            },
        )
        assert value == 2.0
