# src/storage/layout.py — v2
"""Cache store layout.

Entries live at::

    {root}/cache/{repository}/{fingerprint}/{key}/{cache file name}

The fingerprint segment keeps entries written under one build configuration
out of restores for any other configuration.
"""

from __future__ import annotations

from collections.abc import Sequence

from fscache.cache.keys import compute_fingerprint
from fscache.cache.models import CompressionMethod

CACHE_NAMESPACE = "cache"

# Auxiliary file the archiver writes next to the archive (list of paths).
MANIFEST_NAME = "manifest.txt"

_ARCHIVE_NAMES = {
    CompressionMethod.GZIP: "cache.tgz",
    CompressionMethod.ZSTD_WITHOUT_LONG: "cache.tzst",
    CompressionMethod.ZSTD: "cache.tzst",
}


def _join(*parts: str) -> str:
    """Join non-empty segments with '/', without doubling separators."""
    cleaned: list[str] = []
    for i, part in enumerate(parts):
        if not part:
            continue
        part = part.rstrip("/") if i == 0 else part.strip("/")
        if part or i == 0:
            cleaned.append(part)
    return "/".join(cleaned)


def cache_file_name(compression: CompressionMethod) -> str:
    """Return the fixed archive file name for a compression method."""
    return _ARCHIVE_NAMES[CompressionMethod(compression)]


def prefix_for(
    repository: str,
    paths: Sequence[str],
    compression: CompressionMethod | None = None,
    cross_os_enabled: bool = False,
) -> str:
    """Return ``cache/{repository}/{fingerprint}`` for a path set."""
    version = compute_fingerprint(paths, compression, cross_os_enabled)
    return _join(CACHE_NAMESPACE, repository, version)


def location_for(root: str, prefix: str, key: str) -> str:
    """Return the store location of a key under a prefix."""
    return _join(root, prefix, key)


def archive_path_for(location: str, compression: CompressionMethod) -> str:
    """Return the archive path inside a store location."""
    return _join(location, cache_file_name(compression))
