# src/api/facade.py — v2
"""Public API facade: single entry point for saving and restoring caches.

Usage:
    from fscache.api.facade import restore_cache, save_cache
    hit = await restore_cache(["target"], "rust-abc", ["rust-"])
    await save_cache(["target"], "rust-abc")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from fscache.cache.keys import compute_fingerprint
from fscache.cache.models import CompressionMethod
from fscache.cache.store import CacheStore
from fscache.config.settings import Settings

if TYPE_CHECKING:
    from fscache.archive.base_archiver import BaseArchiver
    from fscache.storage.base_backend import BaseCacheBackend

logger = logging.getLogger(__name__)


async def restore_cache(
    paths: Sequence[str],
    primary_key: str,
    restore_keys: Sequence[str] | None = None,
    settings: Settings | None = None,
    compression: CompressionMethod | None = None,
    cross_os_enabled: bool | None = None,
    backend: BaseCacheBackend | None = None,
    archiver: BaseArchiver | None = None,
) -> str | None:
    """Restore a cache from the primary key or the first matching restore key.

    Args:
        paths: Path patterns to restore; part of the cache version.
        primary_key: Exact key to look up first.
        restore_keys: Ordered fallback keys.
        settings: Global settings. Loaded from env/.env if None.
        compression: Compression method. Auto-detected if None.
        cross_os_enabled: Share entries between Windows and other platforms.
        backend: Cache backend. Built from settings if None.
        archiver: Archive codec. TarArchiver on the workspace if None.

    Returns:
        The key of the restored entry, or None on a miss.

    Raises:
        ValidationError: Invalid paths or keys.
    """
    store = CacheStore(settings or Settings(), backend=backend, archiver=archiver)
    return await store.restore(
        paths,
        primary_key,
        restore_keys,
        compression=compression,
        cross_os_enabled=cross_os_enabled,
    )


async def save_cache(
    paths: Sequence[str],
    key: str,
    settings: Settings | None = None,
    compression: CompressionMethod | None = None,
    cross_os_enabled: bool | None = None,
    backend: BaseCacheBackend | None = None,
    archiver: BaseArchiver | None = None,
) -> int:
    """Save paths under key.

    Returns:
        1 if the cache was saved, -1 on a soft failure.

    Raises:
        ValidationError: Invalid paths or key.
        PathValidationError: No path resolved to an existing file.
    """
    store = CacheStore(settings or Settings(), backend=backend, archiver=archiver)
    return await store.save(
        paths, key, compression=compression, cross_os_enabled=cross_os_enabled
    )


def is_feature_available(settings: Settings | None = None) -> bool:
    """Return True when the configured backend can be constructed."""
    from fscache.storage.backend_factory import create_backend

    try:
        create_backend(settings or Settings())
    except Exception as e:
        logger.debug("Cache backend unavailable: %s", e)
        return False
    return True


def get_cache_version(
    paths: Sequence[str],
    compression: CompressionMethod | None = None,
    cross_os_enabled: bool = False,
) -> str:
    """Return the version fingerprint for a path set."""
    return compute_fingerprint(paths, compression, cross_os_enabled)
