"""dbstore: predicates, keyset pagination, and a generic repository over DB-API."""

import logging

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ports import Database, Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, Transaction, get_dialect

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    *_core_all,
    "Database",
    "Transaction",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "get_dialect",
]
