"""Keyset (cursor) pagination over one ordering column.

A page is `limit` rows ordered by the cursor column, starting at the cursor
value inclusively. The row carrying the cursor value is returned again as the
first element, so callers advance past the last row they saw (or drop the
first row) when requesting the following page.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from . import composer
from .errors import ConfigurationError
from .filters import greater_than_or_equal, less_than_or_equal
from .statements import SelectStatement

S = TypeVar("S", bound=SelectStatement)


class Direction(str, Enum):
    """Paging direction relative to the cursor."""

    NEXT_PAGE = "next"
    PREVIOUS_PAGE = "previous"


def non_negative_limit(limit: int) -> int:
    """Clamp a row limit at zero."""

    return limit if limit > 0 else 0


@dataclass(frozen=True)
class PaginationParams:
    """Validated keyset pagination settings.

    Attributes:
        limit: Maximum rows per page, clamped at zero.
        direction: `NEXT_PAGE` orders ascending, `PREVIOUS_PAGE` descending.
        cursor_column: Column the page is ordered and bounded by.
        cursor_value: Boundary value; `None` or `""` starts from the first row.

    Raises:
        ConfigurationError: If `cursor_column` is blank.
    """

    limit: int
    direction: Direction
    cursor_column: str
    cursor_value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.cursor_column, str) or not self.cursor_column.strip():
            raise ConfigurationError("cursor column not specified: must be specified")
        object.__setattr__(self, "limit", non_negative_limit(int(self.limit)))
        object.__setattr__(self, "direction", Direction(self.direction))

    @property
    def next_page(self) -> bool:
        return self.direction is Direction.NEXT_PAGE

    @property
    def has_cursor(self) -> bool:
        return self.cursor_value is not None and self.cursor_value != ""


def with_cursor(
    limit: int,
    next_page: bool,
    cursor_column: str,
    cursor_value: Any = None,
) -> PaginationParams:
    """Build pagination params from the flat argument form."""

    return PaginationParams(
        limit=limit,
        direction=Direction.NEXT_PAGE if next_page else Direction.PREVIOUS_PAGE,
        cursor_column=cursor_column,
        cursor_value=cursor_value,
    )


def paginate(target: S, params: PaginationParams) -> S:
    """Apply ordering, limit, and the inclusive cursor boundary to a select."""

    column = params.cursor_column
    if params.next_page:
        composer.order_by(target, column, "asc")
        boundary = greater_than_or_equal
    else:
        composer.order_by(target, column, "desc")
        boundary = less_than_or_equal

    composer.limit(target, params.limit)
    if params.has_cursor:
        composer.where(target, boundary(column, params.cursor_value))
    return target
