"""Statement builders that accept predicates, ordering, and limits.

`SelectStatement`, `UpdateStatement` and `DeleteStatement` share the
`WhereTarget` base, which is the one seam the composer needs: anything that
accepts a predicate. Statements hold semantic inputs only and render SQL in
`compile()`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .contracts import DialectPort
from .errors import ContractViolation
from .filters import Predicate
from .query_builder import (
    OrderBy,
    ParamBinder,
    compile_limit,
    compile_order_by,
    compile_where,
)
from .types import QueryParams


class Combinator(str, Enum):
    """Boolean operator joining a predicate to the accumulated expression."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: Combinator | str) -> Combinator:
        if isinstance(value, Combinator):
            return value
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized in cls.__members__:
                return cls[normalized]
        raise ContractViolation(f"invalid combinator {value!r}: should be 'AND' or 'OR'")


@dataclass(frozen=True)
class CompiledStatement:
    """Final SQL text and its bound parameters."""

    sql: str
    params: QueryParams


class WhereTarget(ABC):
    """Base for statements that accept `WHERE` predicates."""

    def __init__(self, table: str, dialect: DialectPort):
        self.table = table
        self.dialect = dialect
        self._where: List[Tuple[Combinator, Predicate]] = []

    def add_where(
        self,
        predicate: Predicate,
        combinator: Combinator = Combinator.AND,
    ) -> None:
        self._where.append((combinator, predicate))

    @property
    def where_clauses(self) -> Tuple[Tuple[Combinator, Predicate], ...]:
        return tuple(self._where)

    @property
    def has_where(self) -> bool:
        return bool(self._where)

    def _where_sql(self, binder: ParamBinder) -> str:
        return compile_where(
            [(combinator.value, predicate) for combinator, predicate in self._where],
            binder,
        )

    @abstractmethod
    def compile(self) -> CompiledStatement:
        """Render SQL text and bound parameters."""

    def __str__(self) -> str:
        return self.compile().sql

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table!r} where={len(self._where)}>"


class SelectStatement(WhereTarget):
    """`SELECT` over one table with ordering and an optional row limit."""

    def __init__(
        self,
        table: str,
        dialect: DialectPort,
        *,
        columns: Optional[Sequence[str]] = None,
    ):
        super().__init__(table, dialect)
        self.columns = list(columns) if columns else None
        self._order: List[OrderBy] = []
        self._limit: Optional[int] = None

    def add_order(self, column: str, *, desc: bool = False) -> None:
        self._order.append(OrderBy(column, desc=desc))

    def set_limit(self, limit: int) -> None:
        self._limit = limit

    @property
    def order(self) -> Tuple[OrderBy, ...]:
        return tuple(self._order)

    @property
    def row_limit(self) -> Optional[int]:
        return self._limit

    def compile(self) -> CompiledStatement:
        binder = ParamBinder(self.dialect)
        d = self.dialect
        column_sql = ", ".join(d.q(name) for name in self.columns) if self.columns else "*"
        sql = f"SELECT {column_sql} FROM {d.q(self.table)}"
        sql += self._where_sql(binder)
        sql += compile_order_by(self._order, d)
        sql += compile_limit(self._limit, binder)
        return CompiledStatement(sql + ";", binder.params)


class UpdateStatement(WhereTarget):
    """`UPDATE ... SET ...` over one table."""

    def __init__(
        self,
        table: str,
        dialect: DialectPort,
        values: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(table, dialect)
        self.values: Dict[str, Any] = dict(values or {})

    def set(self, column: str, value: Any) -> UpdateStatement:
        self.values[column] = value
        return self

    def only(self, *columns: str) -> UpdateStatement:
        """Restrict the `SET` list to the given columns."""

        unknown = [name for name in columns if name not in self.values]
        if unknown:
            raise ValueError(f"Unknown update columns: {unknown}")
        self.values = {name: self.values[name] for name in columns}
        return self

    def compile(self) -> CompiledStatement:
        if not self.values:
            raise ValueError("UPDATE requires at least one column to set.")

        binder = ParamBinder(self.dialect)
        d = self.dialect
        set_clause = ", ".join(
            f"{d.q(name)} = {binder.bind(f'set_{name}', value)}"
            for name, value in self.values.items()
        )
        sql = f"UPDATE {d.q(self.table)} SET {set_clause}"
        sql += self._where_sql(binder)
        return CompiledStatement(sql + ";", binder.params)


class DeleteStatement(WhereTarget):
    """`DELETE FROM` one table."""

    def compile(self) -> CompiledStatement:
        binder = ParamBinder(self.dialect)
        sql = f"DELETE FROM {self.dialect.q(self.table)}"
        sql += self._where_sql(binder)
        return CompiledStatement(sql + ";", binder.params)
