"""DB-API adapter implementation for the core database port."""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Iterator, Mapping, Optional

from ...core.context import Context
from ...core.contracts import close_cursor
from ...core.types import MaybeRow, QueryParams, RowMapping, Rows
from .dialects import Dialect

logger = logging.getLogger(__name__)

# Number of SQLite VM instructions between cancellation checks.
_PROGRESS_STEPS = 1000


class Database:
    """Thin DB-API wrapper that normalizes execute and row mapping behavior.

    Statements run outside a transaction are committed right away when
    `autocommit` is enabled, so every repository call is its own round trip.
    `transaction()` opens a unit of work and yields a `Transaction` handle
    bound to it.
    """

    def __init__(self, conn: Any, dialect: Dialect, *, autocommit: bool = True):
        """Create database adapter.

        Args:
            conn: DB-API connection object.
            dialect: Concrete SQL dialect instance.
            autocommit: Commit after each statement run outside a transaction.
        """

        self.conn: Any | None = conn
        self.dialect = dialect
        self.autocommit = autocommit
        self._closed = False
        self._lock = threading.RLock()
        self._active_tx: Transaction | None = None

    @property
    def in_transaction(self) -> bool:
        return False

    def _require_open_connection(self) -> Any:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    def _should_begin_sqlite_transaction(self, conn: Any) -> bool:
        if getattr(self.dialect, "name", "").lower() != "sqlite":
            return False
        return not bool(getattr(conn, "in_transaction", False))

    @contextlib.contextmanager
    def transaction(self, *, ctx: Optional[Context] = None) -> Iterator[Transaction]:
        """Provide commit/rollback transaction scope.

        A second `transaction()` entered by the thread that owns the active
        unit of work joins it instead of starting a new one.
        """

        with self._lock:
            if self._active_tx is not None:
                yield self._active_tx
                return

            conn = self._require_open_connection()
            if ctx is not None:
                ctx.raise_if_done()
            tx = Transaction(self, ctx=ctx)
            self._active_tx = tx
            try:
                if self._should_begin_sqlite_transaction(conn):
                    conn.execute("BEGIN")
                logger.debug("transaction begin")
                yield tx
                conn.commit()
                logger.debug("transaction commit")
            except BaseException as exc:
                logger.warning("transaction rollback: %s", type(exc).__name__)
                conn.rollback()
                raise
            finally:
                tx._closed = True
                self._active_tx = None

    @contextlib.contextmanager
    def _interruptible(self, conn: Any, ctx: Optional[Context]) -> Iterator[None]:
        """Abort the running statement once `ctx` is done.

        On drivers with a progress hook (sqlite3) the hook stays installed for
        the whole scope, so row fetching is interrupted as well as `execute`.
        Driver errors raised after the context is done become its error.
        """

        if ctx is None:
            yield
            return
        hooked = callable(getattr(conn, "set_progress_handler", None))
        if hooked:
            conn.set_progress_handler(lambda: 1 if ctx.done() else 0, _PROGRESS_STEPS)
        try:
            yield
        except Exception as exc:
            err = ctx.error()
            if err is not None and not isinstance(exc, type(err)):
                raise err from exc
            raise
        finally:
            if hooked:
                conn.set_progress_handler(None, _PROGRESS_STEPS)

    def _start(self, conn: Any, sql: str, params: QueryParams, ctx: Optional[Context]) -> Any:
        if ctx is not None:
            ctx.raise_if_done()

        logger.debug("execute: %s params=%r", sql, params)
        cur = conn.cursor()
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        return cur

    def _run(self, sql: str, params: QueryParams, ctx: Optional[Context]) -> Any:
        """Execute one statement on the connection and return its cursor."""

        conn = self._require_open_connection()
        with self._interruptible(conn, ctx):
            return self._start(conn, sql, params, ctx)

    def _standalone(self) -> bool:
        return self.autocommit and self._active_tx is None and self.conn is not None

    @contextlib.contextmanager
    def _statement_scope(self) -> Iterator[None]:
        """Serialize one statement and end its implicit transaction.

        Outside a unit of work the statement is committed on success and rolled
        back on failure, so the connection is never left in an aborted state.
        """

        with self._lock:
            try:
                yield
            except BaseException:
                if self._standalone():
                    self.conn.rollback()
                raise
            if self._standalone():
                self.conn.commit()

    def execute(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Any:
        """Execute SQL with optional parameters and return cursor."""

        with self._statement_scope():
            cur = self._run(sql, params, ctx)
        return cur

    def _row_to_mapping(self, cursor: Any, row: Any) -> RowMapping:
        """Normalize row object to mapping.

        Supports mapping rows directly and tuple/list rows via
        `cursor.description`.
        """

        if isinstance(row, Mapping):
            return row

        if isinstance(row, (tuple, list)):
            desc = getattr(cursor, "description", None)
            if not desc:
                raise TypeError(
                    "Cursor has no description; cannot map tuple rows to dict."
                )
            cols = [d[0] for d in desc]
            return dict(zip(cols, row))

        try:
            return dict(row)
        except (TypeError, ValueError):
            pass

        raise TypeError(f"Unsupported row type: {type(row)}")

    def _fetchone(self, sql: str, params: QueryParams, ctx: Optional[Context]) -> MaybeRow:
        conn = self._require_open_connection()
        with self._interruptible(conn, ctx):
            cur = self._start(conn, sql, params, ctx)
            try:
                row = cur.fetchone()
                if row is None:
                    return None
                return self._row_to_mapping(cur, row)
            finally:
                close_cursor(cur)

    def _fetchall(self, sql: str, params: QueryParams, ctx: Optional[Context]) -> Rows:
        conn = self._require_open_connection()
        with self._interruptible(conn, ctx):
            cur = self._start(conn, sql, params, ctx)
            try:
                rows = cur.fetchall()
                return [self._row_to_mapping(cur, r) for r in rows]
            finally:
                close_cursor(cur)

    def fetchone(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> MaybeRow:
        """Execute query and return one normalized row mapping."""

        with self._statement_scope():
            row = self._fetchone(sql, params, ctx)
        return row

    def fetchall(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Rows:
        """Execute query and return all rows as normalized mappings."""

        with self._statement_scope():
            rows = self._fetchall(sql, params, ctx)
        return rows

    def close(self) -> None:
        """Close the underlying connection."""

        if self._closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        close = getattr(conn, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class Transaction:
    """Handle for statements that run inside one open unit of work.

    Created by `Database.transaction()`; usable until that scope exits. Not
    safe for concurrent use from several threads.
    """

    def __init__(self, db: Database, *, ctx: Optional[Context] = None):
        self.db = db
        self.dialect = db.dialect
        self.ctx = ctx
        self._closed = False

    @property
    def in_transaction(self) -> bool:
        return not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("transaction has already been committed or rolled back")

    @contextlib.contextmanager
    def transaction(self, *, ctx: Optional[Context] = None) -> Iterator[Transaction]:
        """Join the current unit of work."""

        self._require_open()
        yield self

    def execute(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Any:
        self._require_open()
        return self.db._run(sql, params, ctx or self.ctx)

    def fetchone(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> MaybeRow:
        self._require_open()
        return self.db._fetchone(sql, params, ctx or self.ctx)

    def fetchall(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Rows:
        self._require_open()
        return self.db._fetchall(sql, params, ctx or self.ctx)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Transaction {state} dialect={self.dialect.name!r}>"
