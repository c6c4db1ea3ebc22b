# src/storage/local_backend.py — v3
"""Local filesystem cache backend (default CACHE_BACKEND=local).

Archives are written in place: the staging directory is the entry directory
itself, so a successful save leaves the archive where restores look for it.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fscache.cache.models import Found
from fscache.storage.base_backend import BaseCacheBackend


class LocalBackend(BaseCacheBackend):
    """Store cache entries as directories under a root on disk."""

    def __init__(self, root: str | Path) -> None:
        """Initialize with the cache root directory.

        The root is not created here; a restore against a missing root must
        be a plain miss.
        """
        self._root = Path(root).expanduser()

    @property
    def root(self) -> str:
        return str(self._root)

    async def list_children(self, location: str) -> list[Found]:
        """List regular files directly under a location, with their mtimes."""
        return await asyncio.to_thread(self._list_children, Path(location))

    @staticmethod
    def _list_children(directory: Path) -> list[Found]:
        children: list[Found] = []
        for entry in directory.iterdir():
            # Subdirectories belong to longer keys (e.g. "build/linux")
            if not entry.is_file():
                continue
            stat = entry.stat()
            children.append(
                Found(
                    name=entry.name,
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return children

    @asynccontextmanager
    async def staging(self, location: str) -> AsyncIterator[Path]:
        """Create the entry directory and build the archive directly in it."""
        directory = Path(location)
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        yield directory

    @asynccontextmanager
    async def fetch(self, location: str, name: str) -> AsyncIterator[Path]:
        """Yield the on-disk path of the file; nothing to download."""
        path = Path(location) / name
        if not path.is_file():
            raise FileNotFoundError(f"Cache archive not found: {path}")
        yield path

    async def delete(self, location: str, name: str) -> None:
        """Remove a file under a location."""
        await asyncio.to_thread((Path(location) / name).unlink)
