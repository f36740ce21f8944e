"""Predicate constructors for repository filtering.

Every constructor takes a column name and a value and returns either a
`Predicate` or `None`. `None` means "no predicate": the input was degenerate
(null value, blank text, empty collection) and the composer skips it, so
optional filters can be chained without checking each value first.

    stmt = SelectStatement("user", dialect)
    where(stmt, eq("country", country))      # skipped when country is None
    where(stmt, contains("email", search))   # skipped when search is blank
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


class Shape(str, Enum):
    """Comparison shape of a predicate, valued by its SQL operator."""

    EQ = "="
    NOT_EQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


@dataclass(frozen=True)
class Predicate:
    """One filter condition not yet bound to a statement.

    Attributes:
        shape: Comparison shape.
        column: Raw column name.
        value: Bound value; a tuple for `IN`/`NOT IN`, `None` for null tests.
        is_null_test: Whether the predicate is `IS [NOT] NULL` (no operand).
    """

    shape: Shape
    column: str
    value: Any = None
    is_null_test: bool = False

    @property
    def operator(self) -> str:
        return self.shape.value

    @property
    def is_pattern(self) -> bool:
        return self.shape in (Shape.LIKE, Shape.NOT_LIKE)

    @property
    def is_set(self) -> bool:
        return self.shape in (Shape.IN, Shape.NOT_IN)


def _blank(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


def _compare(shape: Shape, column: str, value: Any) -> Optional[Predicate]:
    if value is None:
        return None
    return Predicate(shape=shape, column=column, value=value)


def _pattern(shape: Shape, column: str, value: Optional[str], pattern: str) -> Optional[Predicate]:
    if _blank(value):
        return None
    return Predicate(shape=shape, column=column, value=pattern.format(value))


def _membership(shape: Shape, column: str, values: Optional[Iterable[Any]]) -> Optional[Predicate]:
    if values is None:
        return None
    if isinstance(values, (str, bytes)):
        values = (values,)
    items = tuple(values)
    if not items:
        return None
    return Predicate(shape=shape, column=column, value=items)


def equal(column: str, value: Any) -> Optional[Predicate]:
    """`column = value`; no predicate when value is `None`."""

    return _compare(Shape.EQ, column, value)


def not_equal(column: str, value: Any) -> Optional[Predicate]:
    """`column != value`; no predicate when value is `None`."""

    return _compare(Shape.NOT_EQ, column, value)


def less_than(column: str, value: Any) -> Optional[Predicate]:
    return _compare(Shape.LT, column, value)


def less_than_or_equal(column: str, value: Any) -> Optional[Predicate]:
    return _compare(Shape.LTE, column, value)


def greater_than(column: str, value: Any) -> Optional[Predicate]:
    return _compare(Shape.GT, column, value)


def greater_than_or_equal(column: str, value: Any) -> Optional[Predicate]:
    return _compare(Shape.GTE, column, value)


# Text matching lower-cases the column only. The value is bound as given, so
# callers matching against lower-cased data must lower-case their input.


def contains(column: str, value: Optional[str]) -> Optional[Predicate]:
    """`lower(column) LIKE '%value%'`; no predicate for blank value."""

    return _pattern(Shape.LIKE, column, value, "%{}%")


def not_contains(column: str, value: Optional[str]) -> Optional[Predicate]:
    """`lower(column) NOT LIKE '%value%'`; no predicate for blank value."""

    return _pattern(Shape.NOT_LIKE, column, value, "%{}%")


def starts_with(column: str, value: Optional[str]) -> Optional[Predicate]:
    """`lower(column) LIKE 'value%'`; no predicate for blank value."""

    return _pattern(Shape.LIKE, column, value, "{}%")


def not_starts_with(column: str, value: Optional[str]) -> Optional[Predicate]:
    return _pattern(Shape.NOT_LIKE, column, value, "{}%")


def ends_with(column: str, value: Optional[str]) -> Optional[Predicate]:
    """`lower(column) LIKE '%value'`; no predicate for blank value."""

    return _pattern(Shape.LIKE, column, value, "%{}")


def not_ends_with(column: str, value: Optional[str]) -> Optional[Predicate]:
    return _pattern(Shape.NOT_LIKE, column, value, "%{}")


def in_(column: str, values: Optional[Iterable[Any]]) -> Optional[Predicate]:
    """`column IN (...)`; no predicate for an empty collection."""

    return _membership(Shape.IN, column, values)


def not_in(column: str, values: Optional[Iterable[Any]]) -> Optional[Predicate]:
    """`column NOT IN (...)`; no predicate for an empty collection."""

    return _membership(Shape.NOT_IN, column, values)


def is_null(column: str) -> Predicate:
    """`column IS NULL`. Always produces a predicate."""

    return Predicate(shape=Shape.IS_NULL, column=column, is_null_test=True)


def is_not_null(column: str) -> Predicate:
    """`column IS NOT NULL`. Always produces a predicate."""

    return Predicate(shape=Shape.IS_NOT_NULL, column=column, is_null_test=True)


# Short aliases.
eq = equal
neq = not_equal
lt = less_than
lte = less_than_or_equal
gt = greater_than
gte = greater_than_or_equal
starts = starts_with
not_starts = not_starts_with
ends = ends_with
not_ends = not_ends_with


__all__ = [
    "Predicate",
    "Shape",
    "equal",
    "not_equal",
    "less_than",
    "less_than_or_equal",
    "greater_than",
    "greater_than_or_equal",
    "contains",
    "not_contains",
    "starts_with",
    "not_starts_with",
    "ends_with",
    "not_ends_with",
    "in_",
    "not_in",
    "is_null",
    "is_not_null",
    "eq",
    "neq",
    "lt",
    "lte",
    "gt",
    "gte",
    "starts",
    "not_starts",
    "ends",
    "not_ends",
]
