"""Confirmation window: split indexed records into confirmed / unconfirmed.

A record is confirmed once ``block_number <= best_block_number - confirm_threshold``.
The split is computed per query from the live chain height and never stored.
"""

from __future__ import annotations

from ledger_indexer.datastore.query import Range, Term
from ledger_indexer.errors.store_errors import InvalidQueryError

BLOCK_NUMBER_FIELD = "block_number"


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise InvalidQueryError(msg)
    return value


def resolve_window(
    best_block_number: int,
    confirm_threshold: int,
    *,
    is_confirmed: bool,
) -> Range:
    """Return the block-number range selecting one side of the confirmation split.

    A threshold at or above the chain height is legal: the confirmed side then
    selects an empty (or negative) range and simply matches nothing.

    Args:
        best_block_number: Current best block number of the chain.
        confirm_threshold: Blocks that must elapse before a block counts as final.
        is_confirmed: Select the confirmed side if True, else the unconfirmed side.

    Raises:
        InvalidQueryError: If either number is not an integer or the threshold
            is negative.
    """
    best = _require_int("best_block_number", best_block_number)
    threshold = _require_int("confirm_threshold", confirm_threshold)
    if threshold < 0:
        msg = f"confirm_threshold must be non-negative, got {threshold}"
        raise InvalidQueryError(msg)

    frontier = best - threshold
    if is_confirmed:
        return Range(BLOCK_NUMBER_FIELD, lte=frontier)
    return Range(BLOCK_NUMBER_FIELD, gt=frontier)


def live(flag_field: str) -> Term:
    """Filter out soft-deleted documents (``is_removed`` / ``is_retracted``)."""
    return Term(flag_field, False)
