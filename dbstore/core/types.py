"""Shared type aliases used across contracts, statements, and ports."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]

# Callable criteria receive the statement being built and mutate it in place.
Criteria = Callable[[Any], Any]
