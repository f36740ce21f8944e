from __future__ import annotations

import sqlite3
import unittest
from dataclasses import dataclass, field

from dbstore import Database, Repository, SQLiteDialect, Seeder
from dbstore import filters as f
from dbstore.core.errors import ConfigurationError
from dbstore.core.pagination import (
    Direction,
    PaginationParams,
    non_negative_limit,
    paginate,
    with_cursor,
)
from dbstore.core.statements import SelectStatement


@dataclass
class Ticket:
    id: int = field(default=0, metadata={"pk": True})
    title: str = ""


class PaginationParamsTests(unittest.TestCase):
    def test_blank_cursor_column_is_configuration_error(self) -> None:
        for column in ("", "   "):
            with self.subTest(column=column):
                with self.assertRaises(ConfigurationError) as ctx:
                    with_cursor(10, True, column, 5)
                self.assertIn("cursor column not specified", str(ctx.exception))

    def test_configuration_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            PaginationParams(limit=1, direction=Direction.NEXT_PAGE, cursor_column="")

    def test_flat_form_maps_direction(self) -> None:
        forward = with_cursor(10, True, "id", 3)
        backward = with_cursor(10, False, "id", 3)

        self.assertEqual(forward.direction, Direction.NEXT_PAGE)
        self.assertTrue(forward.next_page)
        self.assertEqual(backward.direction, Direction.PREVIOUS_PAGE)
        self.assertFalse(backward.next_page)

    def test_direction_accepts_its_value(self) -> None:
        params = PaginationParams(limit=1, direction="previous", cursor_column="id")  # type: ignore[arg-type]
        self.assertIs(params.direction, Direction.PREVIOUS_PAGE)

    def test_limit_is_clamped(self) -> None:
        self.assertEqual(with_cursor(-3, True, "id").limit, 0)
        self.assertEqual(non_negative_limit(-1), 0)
        self.assertEqual(non_negative_limit(7), 7)

    def test_empty_cursor_values(self) -> None:
        self.assertFalse(with_cursor(1, True, "id").has_cursor)
        self.assertFalse(with_cursor(1, True, "id", "").has_cursor)
        self.assertTrue(with_cursor(1, True, "id", 0).has_cursor)


class PaginateStatementTests(unittest.TestCase):
    def setUp(self) -> None:
        self.dialect = SQLiteDialect()

    def test_next_page_sql(self) -> None:
        stmt = paginate(SelectStatement("ticket", self.dialect), with_cursor(2, True, "id", 5))
        compiled = stmt.compile()

        self.assertEqual(
            compiled.sql,
            'SELECT * FROM "ticket" WHERE "id" >= :id_1 ORDER BY "id" ASC LIMIT :limit_2;',
        )
        self.assertEqual(compiled.params, {"id_1": 5, "limit_2": 2})

    def test_previous_page_sql(self) -> None:
        stmt = paginate(SelectStatement("ticket", self.dialect), with_cursor(2, False, "id", 5))

        self.assertEqual(
            stmt.compile().sql,
            'SELECT * FROM "ticket" WHERE "id" <= :id_1 ORDER BY "id" DESC LIMIT :limit_2;',
        )

    def test_no_cursor_means_no_boundary(self) -> None:
        for value in (None, ""):
            with self.subTest(value=value):
                stmt = paginate(
                    SelectStatement("ticket", self.dialect),
                    with_cursor(2, True, "id", value),
                )
                self.assertFalse(stmt.has_where)
                self.assertEqual(
                    stmt.compile().sql,
                    'SELECT * FROM "ticket" ORDER BY "id" ASC LIMIT :limit_1;',
                )

    def test_boundary_joins_existing_filters_with_and(self) -> None:
        stmt = SelectStatement("ticket", self.dialect)
        stmt.add_where(f.eq("title", "x"))
        paginate(stmt, with_cursor(2, True, "id", 5))

        self.assertEqual(
            stmt.compile().sql,
            'SELECT * FROM "ticket" WHERE "title" = :title_1 AND "id" >= :id_2'
            ' ORDER BY "id" ASC LIMIT :limit_3;',
        )


class PaginationSQLiteTests(unittest.TestCase):
    def setUp(self) -> None:
        self.conn = sqlite3.connect(":memory:")
        self.db = Database(self.conn, SQLiteDialect())
        Seeder(self.db).create_tables([Ticket])
        self.repo = Repository(self.db)
        self.repo.create_bulk([Ticket(id=n, title=f"t{n}") for n in (3, 1, 4, 2)])

    def tearDown(self) -> None:
        self.conn.close()

    def _ids(self, page: PaginationParams) -> list[int]:
        return [row.id for row in self.repo.find_many_where(Ticket, page=page)]

    def test_next_page_is_inclusive_and_ascending(self) -> None:
        self.assertEqual(self._ids(with_cursor(2, True, "id", 2)), [2, 3])

    def test_previous_page_is_inclusive_and_descending(self) -> None:
        self.assertEqual(self._ids(with_cursor(2, False, "id", 2)), [2, 1])

    def test_first_page_without_cursor(self) -> None:
        self.assertEqual(self._ids(with_cursor(3, True, "id")), [1, 2, 3])
        self.assertEqual(self._ids(with_cursor(3, False, "id", "")), [4, 3, 2])

    def test_walking_pages_forward(self) -> None:
        seen: list[int] = []
        cursor = None
        while True:
            ids = self._ids(with_cursor(2, True, "id", cursor))
            if cursor is not None:
                ids = ids[1:]
            if not ids:
                break
            seen.extend(ids)
            cursor = ids[-1]

        self.assertEqual(seen, [1, 2, 3, 4])

    def test_zero_limit_returns_nothing(self) -> None:
        self.assertEqual(self._ids(with_cursor(-1, True, "id", 1)), [])

    def test_page_respects_other_filters(self) -> None:
        rows = self.repo.find_many_where(
            Ticket,
            f.not_equal("title", "t3"),
            page=with_cursor(2, True, "id", 2),
        )
        self.assertEqual([row.id for row in rows], [2, 4])


if __name__ == "__main__":
    unittest.main()
