"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

from typing import Any, Optional, Sequence


class Dialect:
    """Base dialect that defines SQL quoting and placeholder behavior."""

    name: str = "generic"
    paramstyle: str = "named"
    quote_char: str = '"'
    supports_returning: bool = False
    supports_drop_cascade: bool = False

    def q(self, ident: str) -> str:
        """Quote SQL identifier."""

        escaped = ident.replace(self.quote_char, self.quote_char * 2)
        return f"{self.quote_char}{escaped}{self.quote_char}"

    def placeholder(self, key: str) -> str:
        """Return parameter placeholder for current param style."""

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def auto_pk_sql(self, pk_name: str) -> str:
        """Return SQL fragment for auto-increment primary key column."""

        return f"{self.q(pk_name)} INTEGER PRIMARY KEY"

    def returning_clause(self, pk_name: str) -> str:
        """Return `RETURNING` clause when dialect supports it."""

        if self.supports_returning:
            return f" RETURNING {self.q(pk_name)}"
        return ""

    def get_lastrowid(self, cursor: Any) -> Optional[int]:
        """Extract `lastrowid` from DB-API cursor when available."""

        return getattr(cursor, "lastrowid", None)

    def insert_sql(
        self,
        table_sql: str,
        column_sql: str,
        values_sql: str,
        *,
        ignore: bool = False,
    ) -> str:
        """Build `INSERT`; `ignore=True` turns key conflicts into no-ops."""

        if not column_sql:
            sql = f"INSERT INTO {table_sql} DEFAULT VALUES"
        else:
            sql = f"INSERT INTO {table_sql} ({column_sql}) VALUES ({values_sql})"
        if ignore:
            sql += " ON CONFLICT DO NOTHING"
        return sql

    def upsert_clause(self, pk_name: str, columns: Sequence[str]) -> str:
        """Return the conflict clause overwriting `columns` on a key conflict."""

        target = self.q(pk_name)
        if not columns:
            return f" ON CONFLICT ({target}) DO NOTHING"
        assignments = ", ".join(
            f"{self.q(name)} = excluded.{self.q(name)}" for name in columns
        )
        return f" ON CONFLICT ({target}) DO UPDATE SET {assignments}"


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters, supports `RETURNING`)."""

    name = "sqlite"
    paramstyle = "named"
    quote_char = '"'
    supports_returning = True

    def auto_pk_sql(self, pk_name: str) -> str:
        return f"{self.q(pk_name)} INTEGER PRIMARY KEY"


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` positional parameters)."""

    name = "postgres"
    paramstyle = "format"
    quote_char = '"'
    supports_returning = True
    supports_drop_cascade = True

    def auto_pk_sql(self, pk_name: str) -> str:
        return f"{self.q(pk_name)} SERIAL PRIMARY KEY"


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` positional parameters, no `RETURNING`)."""

    name = "mysql"
    paramstyle = "format"
    quote_char = "`"
    supports_returning = False
    supports_drop_cascade = True

    def auto_pk_sql(self, pk_name: str) -> str:
        return f"{self.q(pk_name)} INT AUTO_INCREMENT PRIMARY KEY"

    def insert_sql(
        self,
        table_sql: str,
        column_sql: str,
        values_sql: str,
        *,
        ignore: bool = False,
    ) -> str:
        verb = "INSERT IGNORE INTO" if ignore else "INSERT INTO"
        return f"{verb} {table_sql} ({column_sql}) VALUES ({values_sql})"

    def upsert_clause(self, pk_name: str, columns: Sequence[str]) -> str:
        if not columns:
            target = self.q(pk_name)
            return f" ON DUPLICATE KEY UPDATE {target} = {target}"
        assignments = ", ".join(
            f"{self.q(name)} = VALUES({self.q(name)})" for name in columns
        )
        return f" ON DUPLICATE KEY UPDATE {assignments}"


_DIALECTS = {
    "sqlite": SQLiteDialect,
    "sqlite3": SQLiteDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "mysql": MySQLDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return a dialect instance by name (`sqlite`, `postgres`, `mysql`)."""

    try:
        return _DIALECTS[name.strip().lower()]()
    except KeyError:
        allowed = ", ".join(sorted(_DIALECTS))
        raise ValueError(f"Unknown dialect {name!r}. Expected one of: {allowed}.") from None
