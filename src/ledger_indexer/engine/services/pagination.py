"""Cursor pagination over fully ordered sort tuples.

A page is requested with the sort-key tuple of the last record the caller
saw. The sort keys must identify a record uniquely among the matches (asset
sorts end in the output index, parcel sorts in the parcel index); with ties
the keyset clause would skip every record sharing the boundary tuple. Under
that rule, walking pages never skips or repeats a record as long as no
record's sort key changes between fetches.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ledger_indexer.errors.store_errors import InvalidQueryError

if TYPE_CHECKING:
    from ledger_indexer.datastore.documents import DocumentStore
    from ledger_indexer.datastore.query import Predicate, SortKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest value a BigInteger sort column can hold
MAX_SORT_VALUE = 2**63 - 1
MIN_SORT_VALUE = -(2**63)


@dataclass(frozen=True)
class Cursor:
    """Sort position of the last record of a page."""

    values: tuple[int, ...]

    def encode(self) -> str:
        """Return an opaque, URL-safe token for this position."""
        raw = json.dumps(list(self.values), separators=(",", ":")).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str, arity: int) -> Cursor:
        """Parse a token produced by :meth:`encode`.

        Raises:
            InvalidQueryError: If the token is malformed or has the wrong arity.
        """
        padded = token + "=" * (-len(token) % 4)
        try:
            values = json.loads(base64.urlsafe_b64decode(padded.encode()))
        except (binascii.Error, ValueError) as exc:
            msg = f"Malformed cursor: {token!r}"
            raise InvalidQueryError(msg) from exc
        if not isinstance(values, list) or len(values) != arity:
            msg = f"Cursor must hold {arity} sort values"
            raise InvalidQueryError(msg)
        if any(isinstance(v, bool) or not isinstance(v, int) for v in values):
            msg = "Cursor sort values must be integers"
            raise InvalidQueryError(msg)
        return cls(tuple(values))


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of records plus the cursor for the next one.

    ``next_cursor`` is None once a short page signals the end of the results.
    """

    records: list[T] = field(default_factory=list)
    next_cursor: Cursor | None = None


def first_position(sort: list[SortKey]) -> tuple[int, ...]:
    """Position that sorts before every real record.

    Descending keys get the maximum value so the first page opens with the
    newest record; ascending keys get the minimum.
    """
    return tuple(MAX_SORT_VALUE if key.descending else MIN_SORT_VALUE for key in sort)


def check_page_size(page_size: int) -> int:
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        msg = f"page_size must be a positive integer, got {page_size!r}"
        raise InvalidQueryError(msg)
    return page_size


def page_offset(page: int, page_size: int, *, first_page: int = 0) -> int:
    """Offset of *page* for offset-based paging.

    Args:
        page: Page number.
        page_size: Items per page.
        first_page: Number of the first page (0 or 1).

    Raises:
        InvalidQueryError: If *page* lies before ``first_page``.
    """
    if isinstance(page, bool) or not isinstance(page, int) or page < first_page:
        msg = f"page must be an integer >= {first_page}, got {page!r}"
        raise InvalidQueryError(msg)
    return (page - first_page) * check_page_size(page_size)


class CursorPaginator:
    """Issues ``search_after`` queries against one collection."""

    def __init__(self, store: DocumentStore, collection: str) -> None:
        self._store = store
        self._collection = collection

    async def page(
        self,
        query: Predicate,
        sort: list[SortKey],
        *,
        cursor: Cursor | None,
        page_size: int,
        to_record: Callable[[dict[str, Any]], T],
        position_of: Callable[[T], tuple[int, ...]],
    ) -> Page[T]:
        """Fetch the page following *cursor* (or the first page).

        Args:
            query: Filter predicate.
            sort: Fully ordered sort keys.
            cursor: Position of the last record already seen, or None.
            page_size: Maximum records per page.
            to_record: Maps a store document to the caller's record type.
            position_of: Extracts the sort tuple of a record.
        """
        size = check_page_size(page_size)
        position = first_position(sort) if cursor is None else cursor.values
        if len(position) != len(sort):
            msg = f"Cursor has {len(position)} values but sort has {len(sort)} keys"
            raise InvalidQueryError(msg)

        docs = await self._store.search(
            self._collection,
            query,
            sort=sort,
            search_after=position,
            size=size,
        )
        records = [to_record(doc) for doc in docs]
        next_cursor = Cursor(tuple(position_of(records[-1]))) if len(records) == size else None
        logger.debug(
            "Paged %s after %s: %d records", self._collection, position, len(records)
        )
        return Page(records=records, next_cursor=next_cursor)
