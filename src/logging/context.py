# src/logging/context.py — v2
"""Contextual logging support: attach operation and cache key to log records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per save/restore call.
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    operation: str | None = None
    cache_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(operation=_operation.get(), cache_key=_cache_key.get())


def set_cache_context(operation: str, cache_key: str) -> None:
    """Set context for the current cache operation."""
    _operation.set(operation)
    _cache_key.set(cache_key)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _cache_key.set(None)


@contextmanager
def operation_context(operation: str, cache_key: str) -> Iterator[None]:
    """Set the cache context for the duration of a block, then restore it."""
    op_token = _operation.set(operation)
    key_token = _cache_key.set(cache_key)
    try:
        yield
    finally:
        _operation.reset(op_token)
        _cache_key.reset(key_token)
