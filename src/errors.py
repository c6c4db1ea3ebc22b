# src/errors.py — v1
"""Error taxonomy for cache operations.

Three kinds matter to callers:
  - ValidationError: malformed input, always propagated.
  - PathValidationError: nothing to cache on save, always propagated.
  - everything else: soft failure, logged and turned into a no-op result.
"""

from __future__ import annotations

from enum import StrEnum


class CacheError(Exception):
    """Base class for all fscache errors."""


class ValidationError(CacheError):
    """Raised when caller input (paths, keys) is malformed."""


class PathValidationError(CacheError):
    """Raised when none of the requested paths resolve to real files on save."""


class ReserveCacheError(CacheError):
    """Raised when a cache entry cannot be reserved for writing."""


class CacheNotFoundError(CacheError):
    """Raised internally when no key in the restore list matches an entry."""


class CommandFailedError(CacheError):
    """Raised when an external archive command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        super().__init__(f"Command failed ({returncode}): {command}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ErrorKind(StrEnum):
    """How a failure inside save/restore is reported."""

    VALIDATION = "validation"
    RESERVE = "reserve"
    OTHER = "other"


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised during save/restore to its ErrorKind."""
    match exc:
        case ValidationError():
            return ErrorKind.VALIDATION
        case ReserveCacheError():
            return ErrorKind.RESERVE
        case _:
            return ErrorKind.OTHER


__all__ = [
    "CacheError",
    "CacheNotFoundError",
    "CommandFailedError",
    "ErrorKind",
    "PathValidationError",
    "ReserveCacheError",
    "ValidationError",
    "classify_error",
]
