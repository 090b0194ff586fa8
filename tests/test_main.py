"""Tests for ledger_indexer.main entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest


def test_main_calls_uvicorn_run() -> None:
    """Verify that main() delegates to uvicorn.run with expected args."""
    with patch("ledger_indexer.main.uvicorn.run") as mock_run:
        from ledger_indexer.main import main

        main()
        mock_run.assert_called_once()
        call_kwargs = mock_run.call_args
        assert call_kwargs[0][0] == "ledger_indexer.api.app:create_app"
        assert call_kwargs[1]["factory"] is True
        assert call_kwargs[1]["port"] == 8081
        assert call_kwargs[1]["reload"] is False
        assert call_kwargs[1]["log_level"] == "info"


def test_main_honours_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDGERINDEXER_SERVER__PORT", "9000")
    monkeypatch.setenv("LEDGERINDEXER_LOG_LEVEL", "debug")
    monkeypatch.setenv("LEDGERINDEXER_RELOAD", "1")
    with patch("ledger_indexer.main.uvicorn.run") as mock_run:
        from ledger_indexer.main import main

        main()
        kwargs = mock_run.call_args[1]
        assert kwargs["port"] == 9000
        assert kwargs["reload"] is True
        assert kwargs["log_level"] == "debug"
