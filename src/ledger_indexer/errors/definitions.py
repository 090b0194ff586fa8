"""Pre-defined errors raised by the HTTP layer."""

from __future__ import annotations

from ledger_indexer.errors.indexer_errors import IndexerError

ErrEngineNotReady = IndexerError("indexer engine not ready", status_code=503, code="engine-not-ready")
ErrParcelNotFound = IndexerError("parcel not found", status_code=404, code="parcel-not-found")
