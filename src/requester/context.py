"""Cancellation and deadline handle carried by a request.

The handle is passive: the transport checks it before sending and uses the
remaining time as an upper bound for the socket timeout.
"""

from __future__ import annotations

import threading
from time import monotonic


class ContextError(Exception):
    """Base class for context termination errors."""


class ContextCancelled(ContextError):
    """Raised when the context was cancelled explicitly."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceeded(ContextError):
    """Raised when the context deadline has passed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class Context:
    """Cancellation/deadline handle.

    Args:
        timeout: Seconds from now until the deadline. ``None`` means no
            deadline.
    """

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0 when provided")
        self._deadline = None if timeout is None else monotonic() + timeout
        self._cancelled = threading.Event()

    @property
    def deadline(self) -> float | None:
        """Monotonic deadline, or ``None``."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Return seconds left before the deadline (never negative)."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - monotonic())

    def err(self) -> ContextError | None:
        if self.cancelled:
            return ContextCancelled()
        if self._deadline is not None and monotonic() >= self._deadline:
            return DeadlineExceeded()
        return None

    def raise_if_done(self) -> None:
        error = self.err()
        if error is not None:
            raise error


class _BackgroundContext(Context):
    def cancel(self) -> None:
        return None


_BACKGROUND = _BackgroundContext()


def background() -> Context:
    """Return the shared context that is never cancelled."""
    return _BACKGROUND


def with_timeout(seconds: float) -> Context:
    return Context(timeout=seconds)
