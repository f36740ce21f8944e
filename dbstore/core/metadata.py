"""Model metadata extraction used by repository SQL generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from .models import DataclassModel, auto_pk_field, model_fields, pk_fields, table_name, to_dict

T = TypeVar("T", bound=DataclassModel)


@dataclass(frozen=True)
class ModelMetadata(Generic[T]):
    """Normalized model description used by repository operations."""

    model: Type[T]
    table: str
    pk: str
    auto_pk: Optional[str]
    columns: List[str]
    writable_columns: List[str]

    def pk_value(self, obj: T) -> Any:
        return getattr(obj, self.pk)

    def insert_columns(self, data: Dict[str, Any]) -> List[str]:
        """Columns to insert, leaving out an unset auto primary key."""

        if self.auto_pk and data.get(self.auto_pk) is None:
            return [name for name in self.columns if name != self.auto_pk]
        return list(self.columns)

    def writable_values(self, obj: T) -> Dict[str, Any]:
        data = to_dict(obj)
        return {name: data[name] for name in self.writable_columns}


def build_model_metadata(model: Type[T]) -> ModelMetadata[T]:
    """Build model metadata from dataclass annotations and field metadata.

    Raises:
        ValueError: If model has zero or multiple primary key fields.
    """

    pks = pk_fields(model)
    if len(pks) != 1:
        raise ValueError(f"{model.__name__}: exactly 1 PK field is supported.")

    pk_name = pks[0].name
    auto_pk = auto_pk_field(model)
    all_columns = [field.name for field in model_fields(model)]

    return ModelMetadata(
        model=model,
        table=table_name(model),
        pk=pk_name,
        auto_pk=auto_pk.name if auto_pk else None,
        columns=all_columns,
        writable_columns=[name for name in all_columns if name != pk_name],
    )
