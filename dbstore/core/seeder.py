"""Table setup helpers for tests, fixtures, and first-run bootstrapping.

DDL is derived from dataclass fields. This is not a migration tool: tables are
created or dropped whole, never diffed or altered.
"""

from __future__ import annotations

import logging
from dataclasses import MISSING
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Type, get_args, get_origin

from .context import Context
from .contracts import DatabasePort, DialectPort, close_cursor
from .models import DataclassModel, model_fields, require_dataclass_model, table_name

logger = logging.getLogger(__name__)


def resolve_sql_type(annotation: Any) -> str:
    """Map Python annotation to SQL scalar type."""

    if isinstance(annotation, str):
        lowered = annotation.lower()
        for needle, sql_type in (
            ("bool", "BOOLEAN"),
            ("datetime", "TIMESTAMP"),
            ("date", "DATE"),
            ("time", "TIME"),
            ("decimal", "NUMERIC"),
            ("bytes", "BLOB"),
            ("int", "INTEGER"),
            ("float", "REAL"),
        ):
            if needle in lowered:
                return sql_type
        return "TEXT"

    base_type = _unwrap_optional(annotation)

    if base_type is bool:
        return "BOOLEAN"
    if base_type is datetime:
        return "TIMESTAMP"
    if base_type is date:
        return "DATE"
    if base_type is time:
        return "TIME"
    if base_type is Decimal:
        return "NUMERIC"
    if base_type in {bytes, bytearray, memoryview}:
        return "BLOB"
    if base_type is int:
        return "INTEGER"
    if base_type is float:
        return "REAL"
    return "TEXT"


def is_nullable(field: Any) -> bool:
    """Infer whether SQL column should allow NULL values."""

    if field.default is None:
        return True

    if field.default is not MISSING:
        return False

    if isinstance(field.type, str):
        lowered = field.type.lower()
        return (
            lowered.startswith("optional[")
            or "| none" in lowered
            or "none |" in lowered
            or "typing.optional[" in lowered
        )

    origin = get_origin(field.type)
    if origin is None:
        return False

    return any(arg is type(None) for arg in get_args(field.type))


def column_sql(field: Any, dialect: DialectPort) -> str:
    """Build one column definition SQL fragment."""

    if field.metadata.get("pk") and field.metadata.get("auto"):
        return dialect.auto_pk_sql(field.name)

    sql_parts = [dialect.q(field.name), resolve_sql_type(field.type)]
    sql_parts.append("NULL" if is_nullable(field) else "NOT NULL")

    if field.metadata.get("pk"):
        sql_parts.append("PRIMARY KEY")
    elif field.metadata.get("unique"):
        sql_parts.append("UNIQUE")

    return " ".join(sql_parts)


def create_table_sql(
    cls: Type[DataclassModel],
    dialect: DialectPort,
    *,
    if_not_exists: bool = False,
) -> str:
    """Build `CREATE TABLE` statement for a dataclass model."""

    require_dataclass_model(cls)

    table_sql = dialect.q(table_name(cls))
    column_definitions = [column_sql(field, dialect) for field in model_fields(cls)]
    prefix = "CREATE TABLE IF NOT EXISTS" if if_not_exists else "CREATE TABLE"
    return f"{prefix} {table_sql} (\n  " + ",\n  ".join(column_definitions) + "\n);"


def drop_table_sql(cls: Type[DataclassModel], dialect: DialectPort) -> str:
    """Build `DROP TABLE IF EXISTS` for a dataclass model.

    Dependent objects are dropped too (`CASCADE`) on dialects that accept it.
    """

    require_dataclass_model(cls)
    cascade = " CASCADE" if dialect.supports_drop_cascade else ""
    return f"DROP TABLE IF EXISTS {dialect.q(table_name(cls))}{cascade};"


def create_index_sql(
    cls: Type[DataclassModel],
    dialect: DialectPort,
    name: str,
    column: str,
    *,
    unique: bool = False,
) -> str:
    """Build one single-column index statement."""

    columns = {field.name for field in model_fields(cls)}
    if column not in columns:
        raise ValueError(f"Unknown index column {column!r} on {cls.__name__}.")
    if not name or not name.strip():
        raise ValueError("Index name must be a non-empty string.")

    prefix = "CREATE UNIQUE INDEX" if unique else "CREATE INDEX"
    return (
        f"{prefix} {dialect.q(name)} "
        f"ON {dialect.q(table_name(cls))} ({dialect.q(column)});"
    )


class Seeder:
    """Create and drop model tables, each batch in one unit of work."""

    def __init__(self, db: DatabasePort):
        self.db = db

    def _run_all(self, statements: List[str], ctx: Optional[Context]) -> List[str]:
        with self.db.transaction(ctx=ctx) as tx:
            for sql in statements:
                close_cursor(tx.execute(sql, ctx=ctx))
        logger.debug("seeder: ran %d statement(s)", len(statements))
        return statements

    def create_tables(
        self,
        models: Sequence[Type[DataclassModel]],
        *,
        if_not_exists: bool = False,
        ctx: Optional[Context] = None,
    ) -> List[str]:
        statements = [
            create_table_sql(model, self.db.dialect, if_not_exists=if_not_exists)
            for model in models
        ]
        return self._run_all(statements, ctx)

    def drop_tables(
        self,
        models: Sequence[Type[DataclassModel]],
        *,
        ctx: Optional[Context] = None,
    ) -> List[str]:
        statements = [drop_table_sql(model, self.db.dialect) for model in models]
        return self._run_all(statements, ctx)

    def drop_and_create_tables(
        self,
        models: Sequence[Type[DataclassModel]],
        *,
        ctx: Optional[Context] = None,
    ) -> List[str]:
        """Drop then recreate all tables; either everything happens or nothing."""

        statements = [drop_table_sql(model, self.db.dialect) for model in models]
        statements += [create_table_sql(model, self.db.dialect) for model in models]
        return self._run_all(statements, ctx)

    def create_index(
        self,
        model: Type[DataclassModel],
        name: str,
        column: str,
        *,
        unique: bool = False,
        ctx: Optional[Context] = None,
    ) -> str:
        sql = create_index_sql(model, self.db.dialect, name, column, unique=unique)
        self._run_all([sql], ctx)
        return sql


def _unwrap_optional(annotation: Any) -> Any:
    """Extract wrapped type from `Optional[T]` style annotations."""

    origin = get_origin(annotation)
    if origin is None:
        return annotation

    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if len(args) == 1:
        return args[0]
    return annotation
