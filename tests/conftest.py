# tests/conftest.py — v3
"""Shared test fixtures for unit and integration tests.

Provides settings pointed at temp directories, a populated workspace, an
in-memory archiver, and an in-memory S3 client. No network access.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from fscache.archive.base_archiver import BaseArchiver
from fscache.cache.models import CompressionMethod
from fscache.config.settings import Settings
from fscache.storage.layout import MANIFEST_NAME


# === Fakes ===


class FakeArchiver(BaseArchiver):
    """Archiver that writes a fixed payload instead of a real archive."""

    def __init__(
        self,
        resolved: Sequence[str] = ("target",),
        payload: bytes = b"archive-bytes",
        fail_with: Exception | None = None,
        partial: bool = False,
    ) -> None:
        self.resolved = list(resolved)
        self.payload = payload
        self.fail_with = fail_with
        self.partial = partial
        self.created: list[tuple[Path, list[str], CompressionMethod]] = []
        self.extracted: list[bytes] = []

    def resolve_paths(self, patterns: Sequence[str]) -> list[str]:
        return list(self.resolved)

    async def create(self, destination_dir, paths, compression) -> Path:
        destination_dir = Path(destination_dir)
        (destination_dir / MANIFEST_NAME).write_text("\n".join(paths), encoding="utf-8")
        archive = destination_dir / self.cache_file_name(compression)
        if self.fail_with is not None:
            if self.partial:
                archive.write_bytes(self.payload[: len(self.payload) // 2])
            raise self.fail_with
        archive.write_bytes(self.payload)
        self.created.append((destination_dir, list(paths), compression))
        return archive

    async def extract(self, archive_path, compression) -> None:
        self.extracted.append(Path(archive_path).read_bytes())

    async def list_members(self, archive_path, compression) -> list[str]:
        return list(self.resolved)


class FakeS3Client:
    """In-memory subset of the boto3 S3 client used by S3Backend."""

    def __init__(self, page_size: int = 1000) -> None:
        self.objects: dict[str, tuple[bytes, datetime]] = {}
        self.page_size = page_size

    def put(self, key: str, body: bytes, modified_at: datetime | None = None) -> None:
        self.objects[key] = (body, modified_at or datetime.now(timezone.utc))

    def list_objects_v2(self, Bucket, Prefix, Delimiter="/", ContinuationToken=None):
        contents = []
        prefixes: set[str] = set()
        for key in sorted(self.objects):
            if not key.startswith(Prefix):
                continue
            rest = key[len(Prefix):]
            if Delimiter in rest:
                prefixes.add(Prefix + rest.split(Delimiter)[0] + Delimiter)
            else:
                contents.append({"Key": key, "LastModified": self.objects[key][1]})

        start = int(ContinuationToken or 0)
        page = contents[start:start + self.page_size]
        response: dict[str, Any] = {
            "Contents": page,
            "CommonPrefixes": [{"Prefix": p} for p in sorted(prefixes)],
            "IsTruncated": start + self.page_size < len(contents),
        }
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + self.page_size)
        return response

    def upload_file(self, Filename, Bucket, Key):
        self.put(Key, Path(Filename).read_bytes())

    def download_file(self, Bucket, Key, Filename):
        if Key not in self.objects:
            raise FileNotFoundError(f"NoSuchKey: {Key}")
        Path(Filename).write_bytes(self.objects[Key][0])

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)


# === FIXTURES ===


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace with a small target/ tree."""
    ws = tmp_path / "workspace"
    (ws / "target" / "debug").mkdir(parents=True)
    (ws / "target" / "debug" / "app.bin").write_bytes(bytes(range(256)) * 4)
    (ws / "target" / "CACHEDIR.TAG").write_text("Signature: 8a477f597d28d172789f06886806bc55\n")
    (ws / "Cargo.lock").write_text("# lockfile\n")
    return ws


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache-root"


@pytest.fixture
def settings(cache_dir: Path, workspace: Path) -> Settings:
    """Local-backend settings with gzip pinned so fingerprints are stable."""
    return Settings(
        _env_file=None,
        cache_backend="local",
        cache_dir=str(cache_dir),
        workspace=workspace,
        repository="acme/widgets",
        compression="gzip",
    )


@pytest.fixture
def fake_archiver() -> FakeArchiver:
    return FakeArchiver()


@pytest.fixture
def fake_s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def wipe():
    """Remove a path (file or tree) if present."""

    def _wipe(path: Path) -> None:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()

    return _wipe


@pytest.fixture
def make_archiver():
    """FakeArchiver factory, for tests that need custom behavior."""
    return FakeArchiver


@pytest.fixture
def make_s3_client():
    """FakeS3Client factory (e.g. to force pagination)."""
    return FakeS3Client
