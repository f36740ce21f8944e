from __future__ import annotations

import sqlite3
import threading
import time
import unittest
from dataclasses import dataclass, field
from typing import Optional

from dbstore import (
    Context,
    ContextCancelled,
    Database,
    DeadlineExceeded,
    OperationCancelled,
    Repository,
    Seeder,
    SQLiteDialect,
    background,
)
from dbstore import filters as f

# Never terminates on its own; only an interrupt stops it.
ENDLESS_QUERY = (
    "WITH RECURSIVE n(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM n) "
    "SELECT COUNT(*) FROM n;"
)

# Yields its first row at once, then millions more while being fetched.
STREAMING_QUERY = (
    "WITH RECURSIVE n(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM n LIMIT 5000000) "
    "SELECT x FROM n;"
)


@dataclass
class Event:
    id: Optional[int] = field(default=None, metadata={"pk": True, "auto": True})
    name: str = ""


class _RecordingConn:
    """Connection stand-in that records whether anything was executed."""

    def __init__(self) -> None:
        self.executed: list[str] = []
        self.commits = 0

    def cursor(self):  # noqa: ANN201
        conn = self

        class _Cursor:
            rowcount = 0
            lastrowid = None
            description = None

            def execute(self, sql, params=None):  # noqa: ANN001,ANN201
                conn.executed.append(sql)

            def fetchone(self):  # noqa: ANN201
                return None

            def fetchall(self):  # noqa: ANN201
                return []

        return _Cursor()

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        pass


class ContextTests(unittest.TestCase):
    def test_background_is_never_done(self) -> None:
        ctx = background()
        self.assertFalse(ctx.done())
        self.assertIsNone(ctx.error())
        self.assertIsNone(ctx.remaining())
        self.assertIsNot(background(), ctx)

    def test_cancel(self) -> None:
        ctx = Context()
        ctx.cancel()

        self.assertTrue(ctx.cancelled)
        self.assertIsInstance(ctx.error(), ContextCancelled)
        with self.assertRaises(ContextCancelled) as raised:
            ctx.raise_if_done()
        self.assertEqual(str(raised.exception), "context canceled")

    def test_deadline(self) -> None:
        ctx = Context(timeout=0)
        self.assertIsInstance(ctx.error(), DeadlineExceeded)
        self.assertEqual(ctx.remaining(), 0.0)

        later = Context(timeout=60)
        self.assertFalse(later.done())
        self.assertGreater(later.remaining(), 0)

    def test_with_timeout_takes_earlier_deadline(self) -> None:
        parent = Context(timeout=0.5)
        child = parent.with_timeout(60)
        self.assertEqual(child.deadline, parent.deadline)

        parent.cancel()
        self.assertTrue(parent.with_timeout(60).cancelled)

    def test_cancelling_parent_cancels_derived_child(self) -> None:
        parent = Context()
        child = parent.with_timeout(60)
        grandchild = child.with_timeout(60)
        self.assertFalse(child.done())

        parent.cancel()

        self.assertTrue(child.cancelled)
        self.assertIsInstance(grandchild.error(), ContextCancelled)

    def test_cancelling_child_leaves_parent_running(self) -> None:
        parent = Context()
        child = parent.with_timeout(60)
        child.cancel()

        self.assertTrue(child.done())
        self.assertFalse(parent.done())

    def test_cancellation_errors_share_a_base(self) -> None:
        self.assertTrue(issubclass(ContextCancelled, OperationCancelled))
        self.assertTrue(issubclass(DeadlineExceeded, OperationCancelled))


class DatabaseCancellationTests(unittest.TestCase):
    def test_done_context_prevents_execution(self) -> None:
        conn = _RecordingConn()
        db = Database(conn, SQLiteDialect())
        ctx = Context()
        ctx.cancel()

        with self.assertRaises(ContextCancelled):
            db.execute("SELECT 1;", ctx=ctx)
        with self.assertRaises(ContextCancelled):
            db.fetchall("SELECT 1;", ctx=ctx)
        with self.assertRaises(ContextCancelled):
            with db.transaction(ctx=ctx):
                pass  # pragma: no cover
        self.assertEqual(conn.executed, [])

    def test_expired_deadline_prevents_execution(self) -> None:
        conn = _RecordingConn()
        db = Database(conn, SQLiteDialect())

        with self.assertRaises(DeadlineExceeded):
            db.fetchone("SELECT 1;", ctx=Context(timeout=0))
        self.assertEqual(conn.executed, [])

    def test_running_query_is_interrupted_by_deadline(self) -> None:
        conn = sqlite3.connect(":memory:")
        db = Database(conn, SQLiteDialect())
        try:
            started = time.monotonic()
            with self.assertRaises(DeadlineExceeded) as raised:
                db.fetchone(ENDLESS_QUERY, ctx=Context(timeout=0.05))
            self.assertLess(time.monotonic() - started, 5)
            self.assertIsInstance(raised.exception.__cause__, sqlite3.OperationalError)

            self.assertEqual(db.fetchone("SELECT 1 AS one;"), {"one": 1})
        finally:
            conn.close()

    def test_row_streaming_is_interrupted_by_deadline(self) -> None:
        conn = sqlite3.connect(":memory:")
        db = Database(conn, SQLiteDialect())
        try:
            started = time.monotonic()
            with self.assertRaises(DeadlineExceeded) as raised:
                db.fetchall(STREAMING_QUERY, ctx=Context(timeout=0.05))
            self.assertLess(time.monotonic() - started, 3)
            self.assertIsInstance(raised.exception.__cause__, sqlite3.OperationalError)

            self.assertEqual(db.fetchone("SELECT 1 AS one;"), {"one": 1})
        finally:
            conn.close()

    def test_running_query_is_interrupted_by_cancel(self) -> None:
        conn = sqlite3.connect(":memory:", check_same_thread=False)
        db = Database(conn, SQLiteDialect())
        ctx = Context()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        try:
            with self.assertRaises(ContextCancelled):
                db.fetchone(ENDLESS_QUERY, ctx=ctx)
        finally:
            timer.cancel()
            conn.close()


class RepositoryCancellationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.conn = sqlite3.connect(":memory:")
        self.db = Database(self.conn, SQLiteDialect())
        Seeder(self.db).create_tables([Event])
        self.repo = Repository(self.db)

    def tearDown(self) -> None:
        self.conn.close()

    def test_cancelled_context_leaves_store_untouched(self) -> None:
        ctx = Context()
        ctx.cancel()

        with self.assertRaises(ContextCancelled):
            self.repo.create(Event(name="a"), ctx=ctx)
        self.assertEqual(self.repo.find_many_where(Event), [])

    def test_transaction_context_reaches_every_statement(self) -> None:
        ctx = Context()

        def work(tx_repo: Repository) -> None:
            tx_repo.create(Event(name="a"))
            ctx.cancel()
            tx_repo.create(Event(name="b"))

        with self.assertRaises(ContextCancelled):
            self.repo.transaction(work, ctx=ctx)
        self.assertEqual(self.repo.find_many_where(Event), [])

    def test_live_context_is_transparent(self) -> None:
        ctx = Context(timeout=60)
        event = self.repo.create(Event(name="a"), ctx=ctx)
        found = self.repo.find_one_where(Event, f.eq("name", "a"), ctx=ctx)
        self.assertEqual(found.id, event.id)


if __name__ == "__main__":
    unittest.main()
