"""Typed query builder for document store filters and sorts.

Filters are small immutable predicate trees::

    query = Term("address", addr) & Term("is_removed", False) & Range("block_number", lte=90)

and are translated once into a SQLAlchemy boolean expression against the
collection's table by :func:`compile_predicate`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_, true

from ledger_indexer.errors.store_errors import InvalidQueryError

if TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.sql.elements import ColumnElement


class Predicate:
    """Base class for filter clauses. ``&`` and ``|`` build compound clauses."""

    def __and__(self, other: Predicate) -> And:
        return And(self, other)

    def __or__(self, other: Predicate) -> Or:
        return Or(self, other)


@dataclass(frozen=True)
class Term(Predicate):
    """Exact match on a single field."""

    field: str
    value: Any


@dataclass(frozen=True)
class Range(Predicate):
    """Numeric range on a single field. At least one bound is required."""

    field: str
    gt: int | float | None = None
    gte: int | float | None = None
    lt: int | float | None = None
    lte: int | float | None = None

    def bounds(self) -> dict[str, int | float]:
        """Return the bounds that are set, keyed by operator name."""
        return {
            op: value
            for op, value in (("gt", self.gt), ("gte", self.gte), ("lt", self.lt), ("lte", self.lte))
            if value is not None
        }


@dataclass(frozen=True, init=False)
class And(Predicate):
    """All clauses must match. An empty ``And`` matches every document."""

    clauses: tuple[Predicate, ...] = field(default=())

    def __init__(self, *clauses: Predicate) -> None:
        flat: list[Predicate] = []
        for clause in clauses:
            # Keep trees shallow when chaining with &
            if isinstance(clause, And):
                flat.extend(clause.clauses)
            else:
                flat.append(clause)
        object.__setattr__(self, "clauses", tuple(flat))


@dataclass(frozen=True, init=False)
class Or(Predicate):
    """At least one clause must match."""

    clauses: tuple[Predicate, ...] = field(default=())

    def __init__(self, *clauses: Predicate) -> None:
        flat: list[Predicate] = []
        for clause in clauses:
            if isinstance(clause, Or):
                flat.extend(clause.clauses)
            else:
                flat.append(clause)
        object.__setattr__(self, "clauses", tuple(flat))


@dataclass(frozen=True)
class SortKey:
    """One component of a sort tuple."""

    field: str
    descending: bool = True


MATCH_ALL = And()


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def resolve_field(model: type, name: str) -> InstrumentedAttribute[Any]:
    """Look up a mapped column on *model* by attribute name.

    Raises:
        InvalidQueryError: If the model has no such column.
    """
    columns = model.__table__.columns  # type: ignore[attr-defined]
    if name not in columns:
        msg = f"Unknown field '{name}' for collection '{model.__tablename__}'"  # type: ignore[attr-defined]
        raise InvalidQueryError(msg)
    return getattr(model, name)


def _check_bound(field_name: str, op: str, value: object) -> None:
    # bool is an int subclass but never a valid range bound
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"Range bound {op} on '{field_name}' must be numeric, got {value!r}"
        raise InvalidQueryError(msg)


def compile_predicate(predicate: Predicate, model: type) -> ColumnElement[bool]:
    """Translate a predicate tree into a SQLAlchemy boolean expression.

    Args:
        predicate: The filter to compile.
        model: The mapped document class of the target collection.

    Returns:
        A boolean clause usable in ``select().where()``.

    Raises:
        InvalidQueryError: On unknown fields, empty ``Or``, or bad range bounds.
    """
    if isinstance(predicate, Term):
        return resolve_field(model, predicate.field) == predicate.value

    if isinstance(predicate, Range):
        column = resolve_field(model, predicate.field)
        bounds = predicate.bounds()
        if not bounds:
            msg = f"Range on '{predicate.field}' has no bounds"
            raise InvalidQueryError(msg)
        parts = []
        for op, value in bounds.items():
            _check_bound(predicate.field, op, value)
            if op == "gt":
                parts.append(column > value)
            elif op == "gte":
                parts.append(column >= value)
            elif op == "lt":
                parts.append(column < value)
            else:
                parts.append(column <= value)
        return and_(*parts)

    if isinstance(predicate, And):
        if not predicate.clauses:
            return true()
        return and_(*(compile_predicate(c, model) for c in predicate.clauses))

    if isinstance(predicate, Or):
        if not predicate.clauses:
            msg = "Or requires at least one clause"
            raise InvalidQueryError(msg)
        return or_(*(compile_predicate(c, model) for c in predicate.clauses))

    msg = f"Unsupported predicate type: {type(predicate).__name__}"
    raise InvalidQueryError(msg)


def compile_search_after(
    sort: list[SortKey], position: tuple[Any, ...], model: type
) -> ColumnElement[bool]:
    """Build the keyset clause selecting documents strictly after *position*.

    For sort keys ``(a desc, b desc)`` and position ``(a0, b0)`` this yields
    ``a < a0 OR (a = a0 AND b < b0)``; ascending keys flip the comparison.

    Raises:
        InvalidQueryError: If the position does not match the sort arity.
    """
    if len(position) != len(sort):
        msg = f"search_after has {len(position)} values but sort has {len(sort)} keys"
        raise InvalidQueryError(msg)
    if not sort:
        msg = "search_after requires at least one sort key"
        raise InvalidQueryError(msg)

    branches = []
    for i, key in enumerate(sort):
        equal_prefix = [
            resolve_field(model, prev.field) == position[j] for j, prev in enumerate(sort[:i])
        ]
        column = resolve_field(model, key.field)
        beyond = column < position[i] if key.descending else column > position[i]
        branches.append(and_(*equal_prefix, beyond))
    return or_(*branches)
