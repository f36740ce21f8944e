"""Cancellation and deadline carrier passed to every repository operation."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import ContextCancelled, DeadlineExceeded, OperationCancelled


class Context:
    """Carries an optional deadline and a cancellation flag.

    A context is done once `cancel()` has been called or its deadline has
    passed. Statements executed with a done context are not started, and
    statements already running are interrupted where the driver allows it.

    Args:
        timeout: Seconds from now until the deadline, or `None` for no deadline.
        deadline: Absolute `time.monotonic()` deadline. Takes precedence over
            `timeout` when both are given.
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        deadline: Optional[float] = None,
    ):
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._parent: Optional[Context] = None

    def cancel(self) -> None:
        """Mark the context cancelled. Safe to call from any thread."""

        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._parent is not None and self._parent.cancelled:
            return True
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, `None` without a deadline."""

        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> Optional[OperationCancelled]:
        """Return the error describing why the context is done, if it is."""

        if self.cancelled:
            return ContextCancelled()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    def with_timeout(self, timeout: float) -> Context:
        """Derive a context whose deadline is the earlier of both deadlines.

        The child is cancelled whenever the parent is; cancelling the child
        leaves the parent untouched.
        """

        child_deadline = time.monotonic() + timeout
        if self.deadline is not None:
            child_deadline = min(child_deadline, self.deadline)
        child = Context(deadline=child_deadline)
        child._parent = self
        return child

    def __repr__(self) -> str:
        return f"Context(deadline={self.deadline!r}, cancelled={self.cancelled})"


def background() -> Context:
    """Return a fresh context with no deadline."""

    return Context()
