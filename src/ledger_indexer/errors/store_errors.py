"""Document store errors: missing targets, connectivity, malformed queries."""

from __future__ import annotations

from ledger_indexer.errors.indexer_errors import IndexerError


class NotFoundError(IndexerError):
    """A partial update targeted a document that is not in the store.

    Raised by the soft-delete, revival and retraction flag flips. It usually
    means a chain event was replayed out of order or twice, so it is surfaced
    to the caller rather than retried.
    """

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(
            f"{collection} document not found: {document_id}",
            status_code=404,
            code="document-not-found",
        )
        self.collection = collection
        self.document_id = document_id


class StoreUnavailableError(IndexerError):
    """Transient connectivity or timeout failure talking to the store."""

    retryable = True

    def __init__(self, message: str, *, status_code: int = 503) -> None:
        super().__init__(message, status_code=status_code, code="store-unavailable")


class InvalidQueryError(IndexerError):
    """Malformed filter, sort or paging arguments."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400, code="invalid-query")
