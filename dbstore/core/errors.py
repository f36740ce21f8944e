"""Exception hierarchy for data-access operations."""

from __future__ import annotations


class DbStoreError(Exception):
    """Base class for recoverable errors raised by this package."""


class ConfigurationError(DbStoreError, ValueError):
    """Raised when caller-supplied configuration is unusable."""


class NoRowsError(DbStoreError, LookupError):
    """Raised when a single-row lookup matches nothing."""

    def __init__(self, table: str, detail: str | None = None):
        self.table = table
        self.detail = detail
        msg = f"no rows in result set for table {table!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class OperationCancelled(DbStoreError):
    """Raised when a statement is aborted because its context is done."""


class ContextCancelled(OperationCancelled):
    """The context was cancelled explicitly."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceeded(OperationCancelled):
    """The context deadline passed before the statement finished."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class ContractViolation(RuntimeError):
    """Programming error at an API seam.

    Raised for invalid ordering directions, unsupported statement targets and
    unknown combinators. Deliberately not a `DbStoreError`: callers handling
    recoverable failures should not catch it.
    """
