"""Apply predicates, ordering, and limits to statement builders.

Predicates combine strictly in call order with no implicit grouping:

    where(stmt, eq("a", 1))
    or_where(stmt, eq("b", 2))
    where(stmt, eq("c", 3))
    # WHERE "a" = ? OR "b" = ? AND "c" = ?

Callers needing `(a OR b) AND c` must express it differently, for example
with `in_()` or by filtering on a derived column.
"""

from __future__ import annotations

from typing import Optional, TypeVar

from .errors import ContractViolation
from .filters import Predicate
from .statements import Combinator, SelectStatement, WhereTarget

W = TypeVar("W", bound=WhereTarget)
S = TypeVar("S", bound=SelectStatement)

_DIRECTIONS = {"asc": False, "desc": True}


def _require_target(target: object, expected: type, operation: str) -> None:
    if not isinstance(target, expected):
        raise ContractViolation(
            f"unsupported type {type(target).__name__}: {operation} only works with "
            f"{expected.__name__}"
        )


def apply_predicate(
    target: W,
    predicate: Optional[Predicate],
    combinator: Combinator | str = Combinator.AND,
) -> W:
    """Join one predicate to the target's accumulated `WHERE` expression.

    A `None` predicate is skipped. Raises `ContractViolation` when the target
    does not accept predicates or the combinator is unknown.
    """

    _require_target(target, WhereTarget, "where")
    parsed = Combinator.parse(combinator)
    if predicate is None:
        return target
    target.add_where(predicate, parsed)
    return target


def where(target: W, predicate: Optional[Predicate]) -> W:
    """Join a predicate with `AND`."""

    return apply_predicate(target, predicate, Combinator.AND)


def or_where(target: W, predicate: Optional[Predicate]) -> W:
    """Join a predicate with `OR`."""

    return apply_predicate(target, predicate, Combinator.OR)


def limit(target: S, n: int) -> S:
    """Limit returned rows; negative values are treated as zero."""

    _require_target(target, SelectStatement, "limit")
    target.set_limit(max(0, int(n)))
    return target


def order_by(target: S, column: str, direction: Optional[str]) -> S:
    """Order by one column.

    `direction` is matched case-insensitively against `asc`/`desc`. A blank
    direction applies no ordering; anything else raises `ContractViolation`.
    """

    _require_target(target, SelectStatement, "order by")
    if direction is None or not direction.strip():
        return target

    value = direction.strip().lower()
    if value not in _DIRECTIONS:
        raise ContractViolation(
            f"invalid order direction {direction!r}: should be 'asc' or 'desc'"
        )
    target.add_order(column, desc=_DIRECTIONS[value])
    return target


def order_by_asc(target: S, column: str) -> S:
    return order_by(target, column, "asc")


def order_by_desc(target: S, column: str) -> S:
    return order_by(target, column, "desc")
