"""Repository for CRUD and transactional work over dataclass models.

One `Repository` serves every model type: the model is taken from the record
passed in, or given explicitly for the filtered lookups. Filters are
predicates from `dbstore.core.filters` or callables that receive the statement
being built (the escape hatch for ordering, `OR` joins, or column selection):

    repo.find_many_where(
        User,
        f.eq("country", "NG"),
        lambda stmt: order_by_desc(stmt, "created_at"),
        page=with_cursor(20, True, "id", last_id),
    )

Store errors propagate unchanged from the DB-API driver.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Iterator, List, Optional, Sequence, Type, TypeVar, Union

from . import composer
from .context import Context
from .contracts import DatabasePort, close_cursor
from .errors import NoRowsError
from .filters import Predicate, equal
from .metadata import ModelMetadata, build_model_metadata
from .models import DataclassModel, load_row, require_dataclass_model, row_to_model, to_dict
from .pagination import PaginationParams, paginate
from .query_builder import ParamBinder
from .statements import DeleteStatement, SelectStatement, UpdateStatement, WhereTarget
from .types import Criteria

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DataclassModel)
R = TypeVar("R")

CriteriaInput = Union[Predicate, Criteria, None]


class Repository:
    """CRUD repository backed by a `DatabasePort` implementation.

    Instances hold nothing but the execution handle and can be shared across
    threads for non-transactional work. A repository bound to a transaction
    (see `begin()`, `transaction()`, `with_tx()`) must stay on one thread.
    """

    def __init__(self, db: DatabasePort):
        """Create repository.

        Args:
            db: `Database` for autocommitted statements, or an open
                `Transaction` handle.
        """

        self.db = db
        self.d = db.dialect

    @property
    def in_transaction(self) -> bool:
        return bool(getattr(self.db, "in_transaction", False))

    def with_tx(self, tx: DatabasePort) -> Repository:
        """Return a repository bound to an existing transaction handle."""

        return type(self)(tx)

    @contextlib.contextmanager
    def begin(self, *, ctx: Optional[Context] = None) -> Iterator[Repository]:
        """Run a block in one unit of work.

        Yields a transaction-bound repository. The block commits when it exits
        normally and rolls back when it raises; the exception is re-raised.
        Inside a transaction-bound repository the block joins the current
        unit of work.
        """

        with self.db.transaction(ctx=ctx) as handle:
            yield self if handle is self.db else self.with_tx(handle)

    def transaction(
        self,
        fn: Callable[[Repository], R],
        *,
        ctx: Optional[Context] = None,
    ) -> R:
        """Call `fn(tx_repo)` in one unit of work and return its result.

        Commits when `fn` returns, rolls back and re-raises when it raises.
        """

        with self.begin(ctx=ctx) as tx_repo:
            return fn(tx_repo)

    def create(
        self,
        record: T,
        *,
        ignore_duplicates: bool = False,
        ctx: Optional[Context] = None,
    ) -> T:
        """Insert one record and populate its auto primary key.

        With `ignore_duplicates=True` a key conflict inserts nothing and
        raises nothing; the stored row is left as it was.
        """

        meta = self._meta(type(record))
        data = to_dict(record)
        columns = meta.insert_columns(data)
        binder = ParamBinder(self.d)

        values_sql = ", ".join(binder.bind(name, data[name]) for name in columns)
        sql = self.d.insert_sql(
            self.d.q(meta.table),
            ", ".join(self.d.q(name) for name in columns),
            values_sql,
            ignore=ignore_duplicates,
        )
        self._write_returning_pk(record, meta, sql, binder, ctx)
        return record

    def create_bulk(
        self,
        records: Sequence[T],
        *,
        ignore_duplicates: bool = False,
        ctx: Optional[Context] = None,
    ) -> List[T]:
        """Insert many records in one unit of work."""

        with self.begin(ctx=ctx) as tx_repo:
            for record in records:
                tx_repo.create(record, ignore_duplicates=ignore_duplicates, ctx=ctx)
        logger.debug("create_bulk: %d record(s)", len(records))
        return list(records)

    def find_one_by_pk(self, record: T, *, ctx: Optional[Context] = None) -> T:
        """Load the row matching the record's primary key into the record.

        Raises:
            NoRowsError: If no row has that primary key.
        """

        meta = self._meta(type(record))
        pk_value = self._require_pk(record, meta, "SELECT")

        stmt = SelectStatement(meta.table, self.d)
        composer.where(stmt, equal(meta.pk, pk_value))
        composer.limit(stmt, 1)
        compiled = stmt.compile()
        row = self.db.fetchone(compiled.sql, compiled.params, ctx=ctx)
        if row is None:
            raise NoRowsError(meta.table, f"{meta.pk}={pk_value!r}")
        return load_row(record, row)

    def find_one_where(
        self,
        model: Type[T],
        *criteria: CriteriaInput,
        ctx: Optional[Context] = None,
    ) -> T:
        """Return the first row matching all criteria.

        Raises:
            NoRowsError: If nothing matches.
        """

        meta = self._meta(model)
        stmt = SelectStatement(meta.table, self.d)
        self._apply_criteria(stmt, criteria)
        composer.limit(stmt, 1)
        compiled = stmt.compile()
        row = self.db.fetchone(compiled.sql, compiled.params, ctx=ctx)
        if row is None:
            raise NoRowsError(meta.table)
        return row_to_model(model, row)

    def find_many_where(
        self,
        model: Type[T],
        *criteria: CriteriaInput,
        page: Optional[PaginationParams] = None,
        ctx: Optional[Context] = None,
    ) -> List[T]:
        """Return rows matching all criteria, optionally as one keyset page.

        Without `page` the full filtered set is returned, in store order
        unless a criteria callable orders it.
        """

        meta = self._meta(model)
        stmt = SelectStatement(meta.table, self.d)
        self._apply_criteria(stmt, criteria)
        if page is not None:
            paginate(stmt, page)
        compiled = stmt.compile()
        rows = self.db.fetchall(compiled.sql, compiled.params, ctx=ctx)
        return [row_to_model(model, row) for row in rows]

    def update_one_by_pk(self, record: T, *, ctx: Optional[Context] = None) -> int:
        """Write every non-key column of the record to the row with its key.

        Returns:
            Number of affected rows.
        """

        meta = self._meta(type(record))
        pk_value = self._require_pk(record, meta, "UPDATE")
        if not meta.writable_columns:
            raise ValueError(
                "Cannot UPDATE model with no writable columns besides primary key."
            )

        stmt = UpdateStatement(meta.table, self.d, meta.writable_values(record))
        composer.where(stmt, equal(meta.pk, pk_value))
        return self._execute_rowcount(stmt, ctx)

    def update_many_by_pk(
        self,
        records: Sequence[T],
        *,
        ctx: Optional[Context] = None,
    ) -> int:
        """Update many records by primary key in one unit of work."""

        total = 0
        with self.begin(ctx=ctx) as tx_repo:
            for record in records:
                total += tx_repo.update_one_by_pk(record, ctx=ctx)
        return total

    def update_one_where(
        self,
        record: T,
        *criteria: CriteriaInput,
        ctx: Optional[Context] = None,
    ) -> int:
        """Write the record's non-key columns to rows matching the criteria.

        Criteria callables receive the `UpdateStatement` and may narrow the
        `SET` list with `stmt.only(...)` or add columns with `stmt.set(...)`.

        Raises:
            ValueError: If the criteria produce no `WHERE` clause.
        """

        meta = self._meta(type(record))
        stmt = UpdateStatement(meta.table, self.d, meta.writable_values(record))
        self._apply_criteria(stmt, criteria)
        if not stmt.has_where:
            raise ValueError("where is required for update_one_where().")
        return self._execute_rowcount(stmt, ctx)

    def upsert(
        self,
        records: Union[T, Sequence[T]],
        *,
        ctx: Optional[Context] = None,
    ) -> Union[T, List[T]]:
        """Insert records, overwriting every non-key column on a key conflict.

        Accepts one record or a sequence; a sequence runs in one unit of work.
        """

        if not isinstance(records, (list, tuple)):
            self._upsert_one(records, ctx)
            return records

        with self.begin(ctx=ctx) as tx_repo:
            for record in records:
                tx_repo._upsert_one(record, ctx)
        return list(records)

    def delete_by_pk(self, record: T, *, ctx: Optional[Context] = None) -> int:
        """Delete the row with the record's primary key."""

        meta = self._meta(type(record))
        pk_value = self._require_pk(record, meta, "DELETE")
        stmt = DeleteStatement(meta.table, self.d)
        composer.where(stmt, equal(meta.pk, pk_value))
        return self._execute_rowcount(stmt, ctx)

    def delete_where(
        self,
        model: Type[T],
        *criteria: CriteriaInput,
        ctx: Optional[Context] = None,
    ) -> int:
        """Delete rows matching the criteria.

        Raises:
            ValueError: If the criteria produce no `WHERE` clause.
        """

        meta = self._meta(model)
        stmt = DeleteStatement(meta.table, self.d)
        self._apply_criteria(stmt, criteria)
        if not stmt.has_where:
            raise ValueError("where is required for delete_where().")
        return self._execute_rowcount(stmt, ctx)

    def _upsert_one(self, record: T, ctx: Optional[Context]) -> None:
        meta = self._meta(type(record))
        data = to_dict(record)
        columns = meta.insert_columns(data)
        binder = ParamBinder(self.d)

        values_sql = ", ".join(binder.bind(name, data[name]) for name in columns)
        sql = self.d.insert_sql(
            self.d.q(meta.table),
            ", ".join(self.d.q(name) for name in columns),
            values_sql,
        )
        sql += self.d.upsert_clause(meta.pk, [name for name in columns if name != meta.pk])
        self._write_returning_pk(record, meta, sql, binder, ctx)

    def _write_returning_pk(
        self,
        record: T,
        meta: ModelMetadata[Any],
        sql: str,
        binder: ParamBinder,
        ctx: Optional[Context],
    ) -> None:
        """Run an insert and copy a store-assigned key back onto the record."""

        wants_pk = meta.auto_pk is not None and getattr(record, meta.auto_pk) is None
        if wants_pk and self.d.supports_returning:
            sql += self.d.returning_clause(meta.auto_pk)
            row = self.db.fetchone(sql + ";", binder.params, ctx=ctx)
            if row and meta.auto_pk in row:
                setattr(record, meta.auto_pk, row[meta.auto_pk])
            return

        cursor = self.db.execute(sql + ";", binder.params, ctx=ctx)
        try:
            if wants_pk and getattr(cursor, "rowcount", 1) != 0:
                new_id = self.d.get_lastrowid(cursor)
                if new_id:
                    setattr(record, meta.auto_pk, new_id)
        finally:
            close_cursor(cursor)

    def _execute_rowcount(self, stmt: WhereTarget, ctx: Optional[Context]) -> int:
        compiled = stmt.compile()
        cursor = self.db.execute(compiled.sql, compiled.params, ctx=ctx)
        try:
            return cursor.rowcount
        finally:
            close_cursor(cursor)

    def _apply_criteria(self, stmt: WhereTarget, criteria: Sequence[CriteriaInput]) -> None:
        for item in criteria:
            if item is None:
                continue
            if isinstance(item, Predicate):
                composer.where(stmt, item)
            elif callable(item):
                item(stmt)
            else:
                raise TypeError(
                    "criteria must be Predicate, callable, or None; "
                    f"got {type(item).__name__}."
                )

    def _meta(self, model: Type[T]) -> ModelMetadata[T]:
        if not isinstance(model, type):
            raise TypeError("A model class is required.")
        require_dataclass_model(model)
        return build_model_metadata(model)

    def _require_pk(self, record: T, meta: ModelMetadata[Any], verb: str) -> Any:
        pk_value = meta.pk_value(record)
        if pk_value is None:
            raise ValueError(f"Cannot {verb} without PK set on object.")
        return pk_value
