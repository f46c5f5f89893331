"""Deadline propagation for database and blob storage calls.

A deadline is carried in a context variable so that every statement issued on
behalf of a request can check it without threading an extra argument through
each repository method. Scopes nest: an inner scope can only shorten the
deadline it inherits, never extend it. :func:`detached_deadline` is the one
exception and is meant for compensating work that has to run after the
request deadline already passed.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator

from ..exceptions import DeadlineExceededError

DEFAULT_TRANSACTION_TIMEOUT = 30.0
DEFAULT_QUERY_TIMEOUT = 3.0

_current: ContextVar["Deadline | None"] = ContextVar("vintage_deadline", default=None)


@dataclass(frozen=True, slots=True)
class Deadline:
    """Absolute expiry expressed on the monotonic clock."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        if seconds <= 0:
            raise ValueError("deadline timeout must be positive")
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        """Seconds left, never negative."""

        return max(self.expires_at - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self, operation: str) -> None:
        if self.expired:
            raise DeadlineExceededError(f"deadline exceeded before {operation}")

    def shorten(self, seconds: float | None) -> "Deadline":
        if seconds is None:
            return self
        candidate = Deadline.after(seconds)
        return candidate if candidate.expires_at < self.expires_at else self


def current_deadline() -> Deadline | None:
    return _current.get()


def check_deadline(operation: str) -> None:
    """Raise :class:`DeadlineExceededError` if the active deadline passed."""

    deadline = _current.get()
    if deadline is not None:
        deadline.check(operation)


@contextmanager
def deadline_scope(seconds: float | None) -> Iterator[Deadline | None]:
    """Run the block under a deadline no later than ``seconds`` from now."""

    parent = _current.get()
    if parent is None:
        deadline = Deadline.after(seconds) if seconds is not None else None
    else:
        deadline = parent.shorten(seconds)
    token = _current.set(deadline)
    try:
        yield deadline
    finally:
        _current.reset(token)


@contextmanager
def detached_deadline(seconds: float | None) -> Iterator[Deadline | None]:
    """Run the block under a fresh deadline that ignores the inherited one."""

    deadline = Deadline.after(seconds) if seconds is not None else None
    token = _current.set(deadline)
    try:
        yield deadline
    finally:
        _current.reset(token)


__all__ = [
    "DEFAULT_QUERY_TIMEOUT",
    "DEFAULT_TRANSACTION_TIMEOUT",
    "Deadline",
    "check_deadline",
    "current_deadline",
    "deadline_scope",
    "detached_deadline",
]
