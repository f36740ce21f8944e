"""Public core API for predicates, statements, pagination, and repository operations."""

from . import filters
from .composer import (
    apply_predicate,
    limit,
    or_where,
    order_by,
    order_by_asc,
    order_by_desc,
    where,
)
from .context import Context, background
from .errors import (
    ConfigurationError,
    ContextCancelled,
    ContractViolation,
    DbStoreError,
    DeadlineExceeded,
    NoRowsError,
    OperationCancelled,
)
from .filters import Predicate, Shape
from .metadata import ModelMetadata, build_model_metadata
from .models import DataclassModel, pk_fields, row_to_model, table_name, to_dict
from .pagination import Direction, PaginationParams, non_negative_limit, paginate, with_cursor
from .query_builder import OrderBy
from .repository import Repository
from .seeder import Seeder, create_index_sql, create_table_sql, drop_table_sql
from .statements import (
    Combinator,
    CompiledStatement,
    DeleteStatement,
    SelectStatement,
    UpdateStatement,
    WhereTarget,
)

__all__ = [
    "filters",
    "Predicate",
    "Shape",
    "apply_predicate",
    "where",
    "or_where",
    "limit",
    "order_by",
    "order_by_asc",
    "order_by_desc",
    "Combinator",
    "CompiledStatement",
    "OrderBy",
    "WhereTarget",
    "SelectStatement",
    "UpdateStatement",
    "DeleteStatement",
    "Direction",
    "PaginationParams",
    "non_negative_limit",
    "paginate",
    "with_cursor",
    "Repository",
    "Context",
    "background",
    "DbStoreError",
    "ConfigurationError",
    "ContractViolation",
    "NoRowsError",
    "OperationCancelled",
    "ContextCancelled",
    "DeadlineExceeded",
    "DataclassModel",
    "ModelMetadata",
    "build_model_metadata",
    "pk_fields",
    "row_to_model",
    "table_name",
    "to_dict",
    "Seeder",
    "create_index_sql",
    "create_table_sql",
    "drop_table_sql",
]
