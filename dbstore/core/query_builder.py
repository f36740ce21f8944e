"""SQL fragment builders for predicates, ordering, and row limits.

This module centralizes SQL string compilation. Statements collect semantic
inputs (predicates, ordering, limit) and call into here at compile time, so
identifier quoting and placeholder style come from one dialect in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .contracts import DialectPort
from .filters import Predicate
from .types import QueryParams


@dataclass(frozen=True)
class OrderBy:
    """Represents one ordering expression."""

    col: str
    desc: bool = False


class ParamBinder:
    """Collects bound values for one statement in the dialect's param style.

    Named styles get unique, deterministic keys derived from a column hint;
    positional styles append values in the order placeholders are emitted.
    """

    def __init__(self, dialect: DialectPort) -> None:
        self.dialect = dialect
        self._counter = 0
        self._named = dialect.paramstyle == "named"
        self._params: Any = {} if self._named else []

    def _next_key(self, base: str) -> str:
        self._counter += 1
        safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in base)
        return f"{safe}_{self._counter}"

    def bind(self, hint: str, value: Any) -> str:
        """Register one value and return its placeholder."""

        if self._named:
            key = self._next_key(hint)
            self._params[key] = value
            return self.dialect.placeholder(key)
        self._params.append(value)
        return self.dialect.placeholder(hint)

    @property
    def params(self) -> QueryParams:
        return self._params if self._params else None


def compile_predicate(predicate: Predicate, binder: ParamBinder) -> str:
    """Compile one predicate into a SQL boolean expression."""

    col_sql = binder.dialect.q(predicate.column)

    if predicate.is_null_test:
        return f"{col_sql} {predicate.operator}"

    if predicate.is_set:
        placeholders = ", ".join(
            binder.bind(predicate.column, value) for value in predicate.value
        )
        return f"{col_sql} {predicate.operator} ({placeholders})"

    placeholder = binder.bind(predicate.column, predicate.value)
    if predicate.is_pattern:
        return f"lower({col_sql}) {predicate.operator} {placeholder}"
    return f"{col_sql} {predicate.operator} {placeholder}"


def compile_where(
    clauses: Sequence[Tuple[str, Predicate]],
    binder: ParamBinder,
) -> str:
    """Compile `(combinator, predicate)` pairs into a `WHERE` fragment.

    Clauses are joined in order with their own combinator; the first
    combinator is dropped. No parentheses are added, so the result follows
    the database's normal `AND`-before-`OR` precedence.

    Returns:
        SQL `WHERE` fragment or an empty string.
    """

    if not clauses:
        return ""

    parts: list[str] = []
    for index, (combinator, predicate) in enumerate(clauses):
        expr = compile_predicate(predicate, binder)
        parts.append(expr if index == 0 else f"{combinator} {expr}")
    return f" WHERE {' '.join(parts)}"


def compile_order_by(
    order_by: Optional[Sequence[OrderBy]], dialect: DialectPort
) -> str:
    """Compile `ORDER BY` clause from ordering inputs.

    Args:
        order_by: Ordering expressions or `None`.
        dialect: SQL dialect used for identifier quoting.

    Returns:
        SQL `ORDER BY` fragment or an empty string.
    """

    if not order_by:
        return ""

    ordered_cols = ", ".join(
        f"{dialect.q(item.col)} {'DESC' if item.desc else 'ASC'}" for item in order_by
    )
    return f" ORDER BY {ordered_cols}"


def compile_limit(limit: Optional[int], binder: ParamBinder) -> str:
    """Compile a bound `LIMIT` clause, or an empty string without a limit."""

    if limit is None:
        return ""
    return f" LIMIT {binder.bind('limit', limit)}"
