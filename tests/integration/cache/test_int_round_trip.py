# tests/integration/cache/test_int_round_trip.py — v2
"""Integration tests: real tar archives through the local and S3 backends.

Coverage:
- gzip round trip restores identical bytes
- paths outside the workspace come back to their absolute location
- fallback keys and misses against real entries
- a key nested under another key restores independently
- S3 backend round trip over an in-memory client
- zstd round trip (skipped when tar/zstd are not installed)
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from fscache.archive.tar_archiver import TarArchiver
from fscache.cache.models import CompressionMethod
from fscache.cache.store import CACHE_SAVED, CacheStore
from fscache.storage.local_backend import LocalBackend
from fscache.storage.s3_backend import S3Backend

pytestmark = pytest.mark.integration


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def local_store(settings, cache_dir, workspace) -> CacheStore:
    return CacheStore(
        settings, backend=LocalBackend(cache_dir), archiver=TarArchiver(workspace)
    )


class TestLocalRoundTrip:
    @pytest.mark.asyncio
    async def test_gzip_bytes_identical(self, local_store, workspace, wipe):
        before = _snapshot(workspace / "target")
        assert await local_store.save(["target"], "rust-abc") == CACHE_SAVED

        wipe(workspace / "target")
        assert await local_store.restore(["target"], "rust-abc") == "rust-abc"
        assert _snapshot(workspace / "target") == before

    @pytest.mark.asyncio
    async def test_absolute_path_outside_workspace(self, local_store, tmp_path, workspace, wipe):
        registry = tmp_path / "home" / ".cargo" / "registry"
        (registry / "index").mkdir(parents=True)
        (registry / "index" / "config.json").write_text('{"dl": "https://example"}')
        paths = [str(registry), "target"]

        assert await local_store.save(paths, "deps-1") == CACHE_SAVED
        wipe(registry)
        wipe(workspace / "target")

        assert await local_store.restore(paths, "deps-1") == "deps-1"
        assert (registry / "index" / "config.json").read_text() == '{"dl": "https://example"}'
        assert (workspace / "target" / "debug" / "app.bin").is_file()

    @pytest.mark.asyncio
    async def test_glob_pattern_save(self, local_store, workspace, wipe):
        assert await local_store.save(["target/**/*.bin"], "bins") == CACHE_SAVED
        wipe(workspace / "target")

        assert await local_store.restore(["target/**/*.bin"], "bins") == "bins"
        assert (workspace / "target" / "debug" / "app.bin").is_file()
        assert not (workspace / "target" / "CACHEDIR.TAG").exists()

    @pytest.mark.asyncio
    async def test_fallback_key(self, local_store, workspace, wipe):
        await local_store.save(["target"], "build-a")
        wipe(workspace / "target")

        assert await local_store.restore(["target"], "build-abc", ["build-a"]) == "build-a"
        assert (workspace / "target" / "CACHEDIR.TAG").is_file()

    @pytest.mark.asyncio
    async def test_miss_leaves_workspace_alone(self, local_store, workspace):
        before = _snapshot(workspace)
        assert await local_store.restore(["target"], "never-saved") is None
        assert _snapshot(workspace) == before

    @pytest.mark.asyncio
    async def test_only_archive_left_in_entry(self, local_store, cache_dir):
        await local_store.save(["target"], "rust-abc")
        entries = [p.name for p in cache_dir.rglob("*") if p.is_file()]
        assert entries == ["cache.tgz"]

    @pytest.mark.asyncio
    async def test_nested_keys_are_separate_entries(self, local_store, workspace, wipe):
        marker = workspace / "target" / "CACHEDIR.TAG"
        marker.write_text("parent")
        await local_store.save(["target"], "build")
        marker.write_text("child")
        await local_store.save(["target"], "build/linux")

        wipe(workspace / "target")
        assert await local_store.restore(["target"], "build") == "build"
        assert marker.read_text() == "parent"

        wipe(workspace / "target")
        assert await local_store.restore(["target"], "build/linux") == "build/linux"
        assert marker.read_text() == "child"


class TestS3RoundTrip:
    @pytest.mark.asyncio
    async def test_round_trip(self, settings, workspace, fake_s3_client, wipe):
        backend = S3Backend(bucket="builds", client=fake_s3_client, prefix="ci")
        store = CacheStore(settings, backend=backend, archiver=TarArchiver(workspace))
        before = _snapshot(workspace / "target")

        assert await store.save(["target"], "rust-abc") == CACHE_SAVED
        keys = list(fake_s3_client.objects)
        assert len(keys) == 1
        assert keys[0].startswith("ci/cache/acme/widgets/")
        assert keys[0].endswith("/rust-abc/cache.tgz")

        wipe(workspace / "target")
        assert await store.restore(["target"], "rust-xyz", ["rust-abc"]) == "rust-abc"
        assert _snapshot(workspace / "target") == before


@pytest.mark.skipif(
    shutil.which("tar") is None or shutil.which("zstd") is None,
    reason="tar and zstd required",
)
class TestZstdRoundTrip:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method", [CompressionMethod.ZSTD, CompressionMethod.ZSTD_WITHOUT_LONG]
    )
    async def test_round_trip(self, local_store, workspace, cache_dir, wipe, method):
        before = _snapshot(workspace / "target")
        assert await local_store.save(["target"], "z", compression=method) == CACHE_SAVED
        assert any(cache_dir.rglob("cache.tzst"))

        wipe(workspace / "target")
        assert await local_store.restore(["target"], "z", compression=method) == "z"
        assert _snapshot(workspace / "target") == before
