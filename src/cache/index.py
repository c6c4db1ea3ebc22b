# src/cache/index.py — v2
"""Restore-key lookup over a cache backend.

Keys are tried in caller order (primary key first, then fallbacks). The
first key whose location holds a usable entry wins; within it, the most
recently modified entry is selected.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fscache.cache.models import CacheEntry, Empty, Found, ScanResult, Unreadable
from fscache.storage import layout
from fscache.storage.base_backend import BaseCacheBackend

logger = logging.getLogger(__name__)


class CacheIndex:
    """Find the best cache entry for an ordered key list."""

    def __init__(
        self,
        backend: BaseCacheBackend,
        ignore: Sequence[str] = (layout.MANIFEST_NAME,),
    ) -> None:
        self._backend = backend
        self._ignore = frozenset(ignore)

    async def scan(
        self, location: str, archive_name: str | None = None
    ) -> list[ScanResult]:
        """Scan one location.

        Args:
            location: Store location of one key.
            archive_name: When set, only a child with this name is usable.

        Returns:
            Found values for each usable child, or a single Empty/Unreadable.
        """
        try:
            children = await self._backend.list_children(location)
        except Exception as e:
            return [Unreadable(reason=str(e))]

        found: list[ScanResult] = [
            c for c in children
            if c.name not in self._ignore
            and (archive_name is None or c.name == archive_name)
        ]
        return found or [Empty()]

    async def find_best_match(
        self,
        keys: Sequence[str],
        prefix: str,
        archive_name: str | None = None,
    ) -> CacheEntry | None:
        """Return the entry for the first key with a usable child, or None.

        Args:
            keys: Primary key followed by restore keys, in priority order.
            prefix: Layout prefix (``cache/{repository}/{fingerprint}``).
            archive_name: Archive file name for the compression method. Other
                children of a key location (nested keys, leftovers) are
                ignored when it is set.
        """
        for key in keys:
            location = layout.location_for(self._backend.root, prefix, key)
            results = await self.scan(location, archive_name)
            found = [r for r in results if isinstance(r, Found)]

            match results[0]:
                case Unreadable(reason=reason):
                    logger.info("Cache not found with prefix %s", key)
                    logger.debug("Listing %s failed: %s", location, reason)
                    continue
                case Empty():
                    logger.info("Cache not found with prefix %s", key)
                    continue

            best = select_most_recent(found)
            logger.info("Cache found with prefix %s", key)
            return CacheEntry(
                key=key,
                location=location,
                archive_name=best.name,
                modified_at=best.modified_at,
            )

        return None


def select_most_recent(found: Sequence[Found]) -> Found:
    """Pick the most recently modified entry; name breaks ties."""
    return max(found, key=lambda f: (f.modified_at, f.name))
