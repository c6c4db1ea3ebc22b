# src/archive/base_archiver.py — v1
"""Abstract archive codec interface.

An archiver packages workspace paths into one archive file and unpacks it
back into the workspace.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from fscache.cache.models import CompressionMethod
from fscache.storage.layout import cache_file_name


class BaseArchiver(ABC):
    """Unified interface for archive codecs."""

    @abstractmethod
    def resolve_paths(self, patterns: Sequence[str]) -> list[str]:
        """Expand path patterns into existing paths (workspace-relative when possible)."""

    @abstractmethod
    async def create(
        self,
        destination_dir: Path,
        paths: Sequence[str],
        compression: CompressionMethod,
    ) -> Path:
        """Write the manifest and the archive into destination_dir; return the archive path."""

    @abstractmethod
    async def extract(self, archive_path: Path, compression: CompressionMethod) -> None:
        """Unpack an archive into the workspace."""

    @abstractmethod
    async def list_members(self, archive_path: Path, compression: CompressionMethod) -> list[str]:
        """Return the member names of an archive."""

    def file_size_bytes(self, archive_path: Path) -> int:
        """Return the archive size in bytes."""
        return os.path.getsize(archive_path)

    def cache_file_name(self, compression: CompressionMethod) -> str:
        """Return the fixed archive file name for a compression method."""
        return cache_file_name(compression)
