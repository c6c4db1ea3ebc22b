# src/cache/models.py — v1
"""Cache domain models: CompressionMethod, CacheEntry, ScanResult variants."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class CompressionMethod(StrEnum):
    """Archive encoding. Part of the fingerprint and of the archive file name."""

    GZIP = "gzip"
    ZSTD_WITHOUT_LONG = "zstd-without-long"
    ZSTD = "zstd"


class CacheEntry(BaseModel):
    """Best match found for a restore lookup. Never persisted."""

    key: str
    location: str
    archive_name: str
    modified_at: datetime
    size_bytes: int | None = None

    @property
    def archive_path(self) -> str:
        return f"{self.location}/{self.archive_name}"


# --- Scan results for one store location ---


@dataclass(frozen=True, slots=True)
class Found:
    """One child object under a scanned location."""

    name: str
    modified_at: datetime


@dataclass(frozen=True, slots=True)
class Empty:
    """Location exists but holds no usable children."""


@dataclass(frozen=True, slots=True)
class Unreadable:
    """Location is missing or could not be listed."""

    reason: str


ScanResult = Found | Empty | Unreadable
