"""Public port exports for concrete adapter implementations."""

from .db_api import Database, Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, Transaction, get_dialect

__all__ = [
    "Database",
    "Transaction",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "get_dialect",
]
