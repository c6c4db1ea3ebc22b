# src/cache/keys.py — v1
"""Cache key validation and version fingerprint derivation.

The fingerprint captures the build-configuration identity an entry is valid
for: the path patterns (in order), the compression method, a Windows marker
unless cross-OS sharing is enabled, and a salt bumped on breaking changes.
"""

from __future__ import annotations

import hashlib
import sys
from collections.abc import Sequence

from fscache.cache.models import CompressionMethod
from fscache.errors import ValidationError

VERSION_SALT = "1.0"
WINDOWS_MARKER = "windows-only"
COMPONENT_SEPARATOR = "|"

MAX_KEY_LENGTH = 512
MAX_KEYS = 10


def compute_fingerprint(
    paths: Sequence[str],
    compression: CompressionMethod | None = None,
    cross_os_enabled: bool = False,
    platform: str | None = None,
) -> str:
    """Compute the SHA-256 version fingerprint for a path set.

    Args:
        paths: Path patterns, in caller order. Order is significant.
        compression: Compression method, if known.
        cross_os_enabled: Allow entries written on Windows to be shared.
        platform: Override for ``sys.platform`` (testing).

    Returns:
        64-char lowercase hex digest.
    """
    platform = sys.platform if platform is None else platform
    components = list(paths)

    if compression:
        components.append(str(compression))

    if platform == "win32" and not cross_os_enabled:
        components.append(WINDOWS_MARKER)

    components.append(VERSION_SALT)

    joined = COMPONENT_SEPARATOR.join(components)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def check_paths(paths: Sequence[str] | None) -> None:
    """Reject an empty path set."""
    if not paths:
        raise ValidationError(
            "Path Validation Error: At least one directory or file path is required"
        )


def check_key(key: str) -> None:
    """Reject keys longer than 512 characters or containing a comma."""
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(
            f"Key Validation Error: {key} cannot be larger than "
            f"{MAX_KEY_LENGTH} characters."
        )
    if "," in key:
        raise ValidationError(
            f"Key Validation Error: {key} cannot contain commas."
        )


def check_keys(keys: Sequence[str]) -> None:
    """Validate a combined [primary, *restore_keys] list."""
    if len(keys) > MAX_KEYS:
        raise ValidationError(
            f"Key Validation Error: Keys are limited to a maximum of {MAX_KEYS}."
        )
    for key in keys:
        check_key(key)
