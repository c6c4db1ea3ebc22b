# src/cache/store.py — v2
"""Save and restore path sets under cache keys.

Caching is an optimization: apart from invalid input and a save with nothing
to cache, every failure is logged as a warning and turned into a benign
result (``CACHE_NOT_SAVED`` from save, ``None`` from restore).

Each call re-derives everything it needs from its arguments and the
settings; the store keeps no state between calls.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from fscache.archive.base_archiver import BaseArchiver
from fscache.cache.index import CacheIndex
from fscache.cache.keys import check_key, check_keys, check_paths
from fscache.cache.models import CompressionMethod
from fscache.config.settings import Settings
from fscache.errors import (
    CacheNotFoundError,
    ErrorKind,
    PathValidationError,
    classify_error,
)
from fscache.logging.context import operation_context
from fscache.storage import layout
from fscache.storage.base_backend import BaseCacheBackend

logger = logging.getLogger(__name__)

CACHE_SAVED = 1
CACHE_NOT_SAVED = -1


class CacheStore:
    """Orchestrates fingerprinting, lookup, and archive transfer."""

    def __init__(
        self,
        settings: Settings,
        backend: BaseCacheBackend | None = None,
        archiver: BaseArchiver | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Application settings.
            backend: Cache backend. Defaults to ``create_backend(settings)``.
            archiver: Archive codec. Defaults to a TarArchiver on the workspace.
        """
        if backend is None:
            from fscache.storage.backend_factory import create_backend
            backend = create_backend(settings)
        if archiver is None:
            from fscache.archive.tar_archiver import TarArchiver
            archiver = TarArchiver(workspace=settings.workspace)
        self._settings = settings
        self._backend = backend
        self._archiver = archiver

    @property
    def backend(self) -> BaseCacheBackend:
        return self._backend

    def _compression(self, compression: CompressionMethod | None) -> CompressionMethod:
        if compression is not None:
            return CompressionMethod(compression)
        if self._settings.compression is not None:
            return self._settings.compression
        from fscache.archive.tar_archiver import detect_compression_method
        return detect_compression_method()

    def prefix_for(
        self,
        paths: Sequence[str],
        compression: CompressionMethod,
        cross_os_enabled: bool,
    ) -> str:
        """Return the layout prefix for a path set under current settings."""
        return layout.prefix_for(
            self._settings.repository, paths, compression, cross_os_enabled
        )

    async def save(
        self,
        paths: Sequence[str],
        key: str,
        compression: CompressionMethod | None = None,
        cross_os_enabled: bool | None = None,
    ) -> int:
        """Save paths under key.

        Returns:
            CACHE_SAVED on success, CACHE_NOT_SAVED on a soft failure.

        Raises:
            ValidationError: Empty path set or invalid key.
            PathValidationError: No path resolved to an existing file.
        """
        check_paths(paths)
        check_key(key)

        with operation_context("save", key):
            method = self._compression(compression)
            cross_os = self._cross_os(cross_os_enabled)

            cache_paths = self._archiver.resolve_paths(paths)
            logger.debug("Cache Paths: %s", json.dumps(cache_paths))
            if not cache_paths:
                raise PathValidationError(
                    "Path Validation Error: Path(s) specified for caching do(es) "
                    "not exist, hence no cache is being saved."
                )

            prefix = self.prefix_for(paths, method, cross_os)
            location = layout.location_for(self._backend.root, prefix, key)
            archive_name = self._archiver.cache_file_name(method)
            logger.debug("Archive location: %s", location)

            try:
                await self._delete_quietly(location, archive_name, "existing archive")
                async with self._backend.staging(location) as staging_dir:
                    archive_path = await self._archiver.create(
                        staging_dir, cache_paths, method
                    )
                    if logger.isEnabledFor(logging.DEBUG):
                        await self._log_members(archive_path, method)
                    size = self._archiver.file_size_bytes(archive_path)
                    logger.debug("File Size: %d", size)
                logger.info("Cache saved with key: %s", key)
                return CACHE_SAVED
            except Exception as e:
                # A half-written archive would shadow lower-priority restore keys
                await self._delete_quietly(location, archive_name, "partial archive")
                match classify_error(e):
                    case ErrorKind.VALIDATION:
                        raise
                    case ErrorKind.RESERVE:
                        logger.info("Failed to save: %s", e)
                    case _:
                        logger.warning("Failed to save: %s", e)
                return CACHE_NOT_SAVED
            finally:
                await self._delete_quietly(location, layout.MANIFEST_NAME, "manifest")

    async def restore(
        self,
        paths: Sequence[str],
        primary_key: str,
        restore_keys: Sequence[str] | None = None,
        compression: CompressionMethod | None = None,
        cross_os_enabled: bool | None = None,
    ) -> str | None:
        """Restore paths from the best matching key.

        Returns:
            The matched key, or None on a miss or soft failure.

        Raises:
            ValidationError: Empty path set, invalid key, or more than 10 keys.
        """
        check_paths(paths)
        keys = [primary_key, *(restore_keys or [])]
        logger.debug("Resolved Keys: %s", json.dumps(keys))
        check_keys(keys)

        with operation_context("restore", primary_key):
            try:
                method = self._compression(compression)
                cross_os = self._cross_os(cross_os_enabled)
                prefix = self.prefix_for(paths, method, cross_os)

                archive_name = self._archiver.cache_file_name(method)
                index = CacheIndex(self._backend)
                entry = await index.find_best_match(keys, prefix, archive_name)
                if entry is None:
                    raise CacheNotFoundError("cache entry not found")
                logger.debug("Cache entry: %s", entry.archive_path)

                async with self._backend.fetch(entry.location, entry.archive_name) as archive_path:
                    if logger.isEnabledFor(logging.DEBUG):
                        await self._log_members(archive_path, method)
                    size = self._archiver.file_size_bytes(archive_path)
                    entry = entry.model_copy(update={"size_bytes": size})
                    logger.info(
                        "Cache Size: ~%d MB (%d B)", round(size / (1024 * 1024)), size
                    )
                    await self._archiver.extract(archive_path, method)

                logger.info(
                    "Cache restored successfully",
                    extra={"data": entry.model_dump(mode="json")},
                )
                return entry.key
            except Exception as e:
                if classify_error(e) is ErrorKind.VALIDATION:
                    raise
                logger.warning("Failed to restore: %s", e)
                return None

    def _cross_os(self, cross_os_enabled: bool | None) -> bool:
        if cross_os_enabled is None:
            return self._settings.cross_os_archive
        return cross_os_enabled

    async def _log_members(self, archive_path: Path, method: CompressionMethod) -> None:
        members = await self._archiver.list_members(archive_path, method)
        logger.debug("Archive members (%d): %s", len(members), members)

    async def _delete_quietly(self, location: str, name: str, what: str) -> None:
        try:
            await self._backend.delete(location, name)
            logger.debug("Deleted %s: %s/%s", what, location, name)
        except Exception as e:
            logger.debug("Failed to delete %s: %s", what, e)
