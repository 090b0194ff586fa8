"""Document store: collection-oriented access on top of the datastore.

Exposes the small set of calls the indexing core needs:

- ``upsert`` / ``index`` / ``partial_update`` for writes
- ``get`` / ``search`` / ``count`` for reads
- ``aggregate`` for grouped sums with bucket ordering and paging

Each call runs in its own session and commits before returning, so a write
is visible to the very next read issued by the same caller.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    StatementError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ledger_indexer.datastore.query import (
    MATCH_ALL,
    Predicate,
    SortKey,
    compile_predicate,
    compile_search_after,
    resolve_field,
)
from ledger_indexer.engine.models import COLLECTIONS
from ledger_indexer.errors.store_errors import (
    InvalidQueryError,
    NotFoundError,
    StoreUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from ledger_indexer.datastore.client import Datastore
    from ledger_indexer.metrics.collector import IndexerMetrics

logger = logging.getLogger(__name__)

# Bookkeeping columns never exposed as document fields
_INTERNAL_COLUMNS = frozenset({"id", "created_at", "updated_at"})

# Driver messages of OperationalErrors that no retry can fix
_DETERMINISTIC_FAILURES = (
    "integer overflow",
    "no such table",
    "no such column",
    "syntax error",
    "datatype mismatch",
)


@dataclass(frozen=True)
class Bucket:
    """One group of an aggregation: the group key, summed field and doc count."""

    key: Any
    total: int
    count: int


class DocumentStore:
    """Named-collection facade over a :class:`Datastore`.

    Documents are plain dicts keyed by column name. Writes take the document
    id as a separate argument; reads return it under ``id``.
    """

    def __init__(self, datastore: Datastore, *, metrics: IndexerMetrics | None = None) -> None:
        self._ds = datastore
        self._metrics = metrics

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Insert the document if absent, else overwrite only *fields*.

        Runs as a single ``INSERT … ON CONFLICT DO UPDATE`` statement so
        concurrent upserts of one id never race into a duplicate-key error.
        """
        model = self._model(collection)
        values = self._checked_fields(model, fields)
        stmt = self._insert(model).values(id=doc_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[model.id],  # type: ignore[attr-defined]
            set_={**values, "updated_at": func.now()},
        )
        async with self._session() as session:
            await session.execute(stmt)
            await session.commit()

    async def index(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Insert or fully replace a document.

        Columns missing from *document* are reset to their defaults, unlike
        :meth:`upsert` which leaves them untouched.
        """
        model = self._model(collection)
        values = self._checked_fields(model, document)
        for column in model.__table__.columns:  # type: ignore[attr-defined]
            if column.key in _INTERNAL_COLUMNS or column.key in values:
                continue
            default = column.default
            if default is None:
                values[column.key] = None
            elif default.is_callable:
                values[column.key] = default.arg(None)
            else:
                values[column.key] = default.arg
        await self.upsert(collection, doc_id, values)

    async def partial_update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Update *fields* on an existing document.

        Raises:
            NotFoundError: If no document has this id.
        """
        model = self._model(collection)
        values = self._checked_fields(model, fields)
        stmt = (
            update(model)
            .where(model.id == doc_id)  # type: ignore[attr-defined]
            .values(**values)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise NotFoundError(collection, doc_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document by id, whatever its liveness flags say."""
        model = self._model(collection)
        async with self._session() as session:
            row = await session.get(model, doc_id)
            return None if row is None else self._to_document(row)

    async def search(
        self,
        collection: str,
        query: Predicate = MATCH_ALL,
        *,
        sort: list[SortKey] | None = None,
        search_after: tuple[Any, ...] | None = None,
        offset: int | None = None,
        size: int = 25,
    ) -> list[dict[str, Any]]:
        """Run a filtered, sorted search.

        Args:
            collection: Collection name.
            query: Filter predicate.
            sort: Sort keys, most significant first.
            search_after: Return only documents strictly after this sort position.
            offset: Number of leading matches to skip.
            size: Maximum number of documents to return.

        Raises:
            InvalidQueryError: If both ``search_after`` and ``offset`` are given,
                or the paging arguments are out of range.
        """
        if search_after is not None and offset is not None:
            msg = "search_after and offset are mutually exclusive"
            raise InvalidQueryError(msg)
        if size < 0 or (offset is not None and offset < 0):
            msg = f"Invalid paging window offset={offset} size={size}"
            raise InvalidQueryError(msg)

        model = self._model(collection)
        sort = sort or []
        stmt = select(model).where(compile_predicate(query, model))
        if search_after is not None:
            stmt = stmt.where(compile_search_after(sort, tuple(search_after), model))
        for key in sort:
            column = resolve_field(model, key.field)
            stmt = stmt.order_by(column.desc() if key.descending else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        stmt = stmt.limit(size)

        async with self._session() as session:
            result = await session.execute(stmt)
            return [self._to_document(row) for row in result.scalars().all()]

    async def count(self, collection: str, query: Predicate = MATCH_ALL) -> int:
        """Count documents matching *query*."""
        model = self._model(collection)
        stmt = select(func.count()).select_from(model).where(compile_predicate(query, model))
        async with self._session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def aggregate(
        self,
        collection: str,
        query: Predicate,
        *,
        group_by: str,
        sum_field: str,
        offset: int = 0,
        size: int | None = None,
    ) -> list[Bucket]:
        """Group matches by *group_by* and sum *sum_field* per group.

        Buckets are ordered by total descending, ties broken by the group key
        ascending. ``offset``/``size`` page over the ordered bucket list, not
        over the underlying documents.

        Totals are folded as Python ints rather than with SQL ``SUM``: asset
        amounts span the full unsigned 64-bit range, and a handful of them
        already exceeds what SQLite (or a PostgreSQL ``bigint``) can add.
        """
        if offset < 0 or (size is not None and size < 0):
            msg = f"Invalid bucket window offset={offset} size={size}"
            raise InvalidQueryError(msg)

        model = self._model(collection)
        key_col = resolve_field(model, group_by)
        sum_col = resolve_field(model, sum_field)
        stmt = select(key_col, sum_col).where(compile_predicate(query, model))

        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.all()

        totals: dict[Any, int] = {}
        counts: dict[Any, int] = {}
        for key, value in rows:
            totals[key] = totals.get(key, 0) + int(value or 0)
            counts[key] = counts.get(key, 0) + 1

        buckets = sorted(
            (Bucket(key=key, total=total, count=counts[key]) for key, total in totals.items()),
            key=lambda b: (-b.total, b.key),
        )
        end = None if size is None else offset + size
        return buckets[offset:end]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _model(collection: str) -> Any:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            msg = f"Unknown collection: {collection}"
            raise InvalidQueryError(msg) from None

    @staticmethod
    def _checked_fields(model: Any, fields: dict[str, Any]) -> dict[str, Any]:
        columns = model.__table__.columns
        unknown = [k for k in fields if k not in columns or k in _INTERNAL_COLUMNS]
        if unknown:
            msg = f"Unknown fields for collection '{model.__tablename__}': {sorted(unknown)}"
            raise InvalidQueryError(msg)
        return dict(fields)

    @staticmethod
    def _to_document(row: Any) -> dict[str, Any]:
        return {
            column.key: getattr(row, column.key)
            for column in row.__table__.columns
            if column.key not in ("created_at", "updated_at")
        }

    def _insert(self, model: Any) -> Any:
        dialect = self._ds.dialect
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        msg = f"Upsert is not supported on dialect '{dialect}'"
        raise InvalidQueryError(msg)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, translating driver failures into indexer errors."""
        try:
            async with self._ds.session() as session:
                yield session
        except (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError) as exc:
            if not _is_transient(exc):
                raise self._rejected(exc) from exc
            logger.warning("Document store unavailable: %s", exc)
            if self._metrics is not None:
                self._metrics.record_store_error("unavailable")
            msg = f"Document store unavailable: {exc}"
            raise StoreUnavailableError(msg) from exc
        except (StatementError, OverflowError) as exc:
            # Integrity, data and bind-parameter failures land here
            raise self._rejected(exc) from exc

    def _rejected(self, exc: Exception) -> InvalidQueryError:
        if self._metrics is not None:
            self._metrics.record_store_error("invalid_query")
        msg = f"Document store rejected query: {exc}"
        return InvalidQueryError(msg)


def _is_transient(exc: Exception) -> bool:
    """Whether retrying the same call could succeed.

    SQLite reports schema and arithmetic failures as ``OperationalError``
    alongside lock timeouts, so those are told apart by message.
    """
    if not isinstance(exc, OperationalError):
        return True
    if exc.connection_invalidated:
        return True
    reason = str(exc.orig).lower()
    return not any(marker in reason for marker in _DETERMINISTIC_FAILURES)
