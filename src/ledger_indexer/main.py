"""Application entry point for the ledger indexer server."""

from __future__ import annotations

import logging
import os

import uvicorn

from ledger_indexer.config.settings import AppConfig


def main() -> None:
    """Start the ledger indexer server."""
    config = AppConfig()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    reload = os.getenv("LEDGERINDEXER_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "ledger_indexer.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
