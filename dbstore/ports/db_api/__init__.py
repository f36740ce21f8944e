"""DB-API adapter and dialect exports."""

from .database import Database, Transaction
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, get_dialect

__all__ = [
    "Database",
    "Dialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "Transaction",
    "get_dialect",
]
