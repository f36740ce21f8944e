"""Core port contracts used by adapters, statements, and the repository."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Sequence

from .types import MaybeRow, QueryParams, RowMapping

if TYPE_CHECKING:
    from .context import Context


class DialectPort(Protocol):
    """Dialect behavior required by statement compilation and CRUD operations."""

    name: str
    paramstyle: str
    supports_returning: bool
    supports_drop_cascade: bool

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str) -> str: ...

    def auto_pk_sql(self, pk_name: str) -> str: ...

    def returning_clause(self, pk_name: str) -> str: ...

    def get_lastrowid(self, cursor: Any) -> Optional[int]: ...

    def insert_sql(self, table_sql: str, column_sql: str, values_sql: str, *, ignore: bool = False) -> str: ...

    def upsert_clause(self, pk_name: str, columns: Sequence[str]) -> str: ...


class DatabasePort(Protocol):
    """Statement execution and unit-of-work behavior required by the repository.

    `transaction()` yields the handle to run statements on inside the unit of
    work. Handles that are already inside a transaction yield themselves, so
    nested scopes join the outer one.
    """

    dialect: DialectPort

    @property
    def in_transaction(self) -> bool: ...

    def transaction(self, *, ctx: Optional[Context] = None) -> AbstractContextManager[DatabasePort]: ...

    def execute(self, sql: str, params: QueryParams = None, *, ctx: Optional[Context] = None) -> Any: ...

    def fetchone(self, sql: str, params: QueryParams = None, *, ctx: Optional[Context] = None) -> MaybeRow: ...

    def fetchall(self, sql: str, params: QueryParams = None, *, ctx: Optional[Context] = None) -> List[RowMapping]: ...


def close_cursor(cursor: Any) -> None:
    """Close a cursor returned by `DatabasePort.execute` if it can be closed."""

    close = getattr(cursor, "close", None)
    if callable(close):
        close()
