"""Tests for the predicate builder and its SQL compilation."""

from __future__ import annotations

import pytest

from ledger_indexer.datastore.query import (
    MATCH_ALL,
    And,
    Or,
    Range,
    SortKey,
    Term,
    compile_predicate,
    compile_search_after,
    resolve_field,
)
from ledger_indexer.engine.models import AssetDocument, ParcelDocument
from ledger_indexer.errors.store_errors import InvalidQueryError


def _sql(expr: object) -> str:
    return str(expr.compile(compile_kwargs={"literal_binds": True}))  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Predicate construction
# ---------------------------------------------------------------------------


class TestPredicates:
    def test_and_operator_flattens(self) -> None:
        query = Term("address", "a") & Term("asset_type", "t") & Term("is_removed", False)
        assert isinstance(query, And)
        assert len(query.clauses) == 3

    def test_or_operator_flattens(self) -> None:
        query = Term("signer", "a") | Term("receiver", "a") | Term("signer", "b")
        assert isinstance(query, Or)
        assert len(query.clauses) == 3

    def test_nested_mixed_kept(self) -> None:
        query = Term("is_retracted", False) & (Term("signer", "a") | Term("receiver", "a"))
        assert isinstance(query.clauses[1], Or)

    def test_predicates_are_hashable(self) -> None:
        assert Term("a", 1) == Term("a", 1)
        assert hash(Range("block_number", lte=5)) == hash(Range("block_number", lte=5))

    def test_range_bounds_only_set_values(self) -> None:
        assert Range("block_number", gt=0, lte=10).bounds() == {"gt": 0, "lte": 10}

    def test_range_zero_bound_is_kept(self) -> None:
        assert Range("block_number", lte=0).bounds() == {"lte": 0}

    def test_sort_key_defaults_descending(self) -> None:
        assert SortKey("block_number").descending is True


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


class TestCompilePredicate:
    def test_term(self) -> None:
        sql = _sql(compile_predicate(Term("address", "abc"), AssetDocument))
        assert "asset.address = 'abc'" in sql

    def test_range(self) -> None:
        sql = _sql(compile_predicate(Range("block_number", gt=3, lte=9), AssetDocument))
        assert "asset.block_number > 3" in sql
        assert "asset.block_number <= 9" in sql

    def test_match_all(self) -> None:
        assert _sql(compile_predicate(MATCH_ALL, AssetDocument)) in ("true", "1")

    def test_or(self) -> None:
        sql = _sql(compile_predicate(Term("signer", "x") | Term("receiver", "x"), ParcelDocument))
        assert " OR " in sql

    def test_unknown_field(self) -> None:
        with pytest.raises(InvalidQueryError, match="Unknown field"):
            compile_predicate(Term("owner", "x"), AssetDocument)

    def test_empty_or_rejected(self) -> None:
        with pytest.raises(InvalidQueryError):
            compile_predicate(Or(), AssetDocument)

    def test_range_without_bounds_rejected(self) -> None:
        with pytest.raises(InvalidQueryError, match="no bounds"):
            compile_predicate(Range("block_number"), AssetDocument)

    @pytest.mark.parametrize("bound", ["10", True, [1]])
    def test_range_non_numeric_bound_rejected(self, bound: object) -> None:
        with pytest.raises(InvalidQueryError, match="numeric"):
            compile_predicate(Range("block_number", lte=bound), AssetDocument)  # type: ignore[arg-type]

    def test_resolve_field(self) -> None:
        assert resolve_field(AssetDocument, "amount") is AssetDocument.amount


class TestCompileSearchAfter:
    def test_descending_keyset(self) -> None:
        sort = [SortKey("block_number"), SortKey("parcel_index")]
        sql = _sql(compile_search_after(sort, (10, 2), ParcelDocument))
        assert "parcel.block_number < 10" in sql
        assert "parcel.block_number = 10" in sql
        assert "parcel.parcel_index < 2" in sql

    def test_ascending_flips_comparison(self) -> None:
        sql = _sql(compile_search_after([SortKey("block_number", descending=False)], (4,), ParcelDocument))
        assert "parcel.block_number > 4" in sql

    def test_arity_mismatch(self) -> None:
        with pytest.raises(InvalidQueryError, match="sort has"):
            compile_search_after([SortKey("block_number")], (1, 2), ParcelDocument)

    def test_empty_sort(self) -> None:
        with pytest.raises(InvalidQueryError):
            compile_search_after([], (), ParcelDocument)
