# src/storage/base_backend.py — v1
"""Abstract cache backend interface.

A backend stores archive files at string locations built by
``fscache.storage.layout``. Locations already include the backend root.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from pathlib import Path

from fscache.cache.models import Found


class BaseCacheBackend(ABC):
    """Unified interface for cache storage backends."""

    @property
    @abstractmethod
    def root(self) -> str:
        """Backend root used as the first layout segment."""

    @abstractmethod
    async def list_children(self, location: str) -> list[Found]:
        """List immediate children of a location.

        Raises:
            OSError or a backend-specific error if the location cannot be read.
        """

    @abstractmethod
    def staging(self, location: str) -> AbstractAsyncContextManager[Path]:
        """Yield a local directory to build an entry in; publish it on exit."""

    @abstractmethod
    def fetch(self, location: str, name: str) -> AbstractAsyncContextManager[Path]:
        """Yield a local path to the named file under a location."""

    @abstractmethod
    async def delete(self, location: str, name: str) -> None:
        """Remove the named file under a location."""
