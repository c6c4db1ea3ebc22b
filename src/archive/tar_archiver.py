# src/archive/tar_archiver.py — v1
"""Tar-based archive codec.

gzip archives are built in-process with ``tarfile``. zstd archives go
through the ``tar`` CLI with ``zstd`` as the compression program, so the
``zstd`` binary is needed only when that method is selected.

Paths inside the workspace are stored relative to it; paths outside the
workspace (e.g. ``~/.cargo/registry``) are stored absolute and restored to
the same absolute location.
"""

from __future__ import annotations

import asyncio
import glob
import logging
import os
import shutil
import tarfile
from collections.abc import Iterator, Sequence
from pathlib import Path, PurePosixPath

from fscache.archive.base_archiver import BaseArchiver
from fscache.cache.models import CompressionMethod
from fscache.errors import CommandFailedError
from fscache.storage.layout import MANIFEST_NAME

logger = logging.getLogger(__name__)


def detect_compression_method() -> CompressionMethod:
    """Pick zstd when the binary is available, gzip otherwise."""
    if shutil.which("zstd"):
        return CompressionMethod.ZSTD
    return CompressionMethod.GZIP


def _zstd_program(compression: CompressionMethod, decompress: bool) -> str:
    parts = ["zstd", "-d" if decompress else "-T0"]
    if compression == CompressionMethod.ZSTD:
        parts.append("--long=30")
    return " ".join(parts)


class TarArchiver(BaseArchiver):
    """Package workspace paths as tar archives."""

    def __init__(self, workspace: str | Path = ".") -> None:
        """Initialize with the workspace that relative paths refer to."""
        self._workspace = Path(workspace).expanduser().absolute()

    @property
    def workspace(self) -> Path:
        return self._workspace

    # --- Path resolution ---

    def resolve_paths(self, patterns: Sequence[str]) -> list[str]:
        """Expand glob patterns; a leading ``!`` excludes matches.

        Returns:
            Existing paths in pattern order, de-duplicated.
        """
        resolved: list[str] = []
        excluded: set[str] = set()
        for raw in patterns:
            pattern = raw.strip()
            if not pattern:
                continue
            negate = pattern.startswith("!")
            if negate:
                pattern = pattern[1:]
            for match in self._glob(pattern):
                if negate:
                    excluded.add(match)
                elif match not in resolved:
                    resolved.append(match)
        return [p for p in resolved if p not in excluded]

    def _glob(self, pattern: str) -> list[str]:
        expanded = os.path.expanduser(pattern)
        if os.path.isabs(expanded):
            matches = glob.glob(expanded, recursive=True, include_hidden=True)
        else:
            matches = [
                os.path.join(self._workspace, m)
                for m in glob.glob(
                    expanded,
                    root_dir=self._workspace,
                    recursive=True,
                    include_hidden=True,
                )
            ]
        return sorted(self._relative(Path(m)) for m in matches)

    def _relative(self, path: Path) -> str:
        path = path.absolute()
        try:
            return path.relative_to(self._workspace).as_posix()
        except ValueError:
            return path.as_posix()

    def _absolute(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self._workspace / p

    # --- Create ---

    async def create(
        self,
        destination_dir: Path,
        paths: Sequence[str],
        compression: CompressionMethod,
    ) -> Path:
        """Write ``manifest.txt`` and the archive into destination_dir."""
        destination_dir = Path(destination_dir)
        archive_path = destination_dir / self.cache_file_name(compression)
        manifest_path = destination_dir / MANIFEST_NAME
        manifest_path.write_text("\n".join(paths) + "\n", encoding="utf-8")

        if compression == CompressionMethod.GZIP:
            await asyncio.to_thread(
                self._create_gzip, archive_path, manifest_path, list(paths)
            )
        else:
            await self._run_tar(
                "--posix",
                "--use-compress-program",
                _zstd_program(compression, decompress=False),
                "-cf",
                str(archive_path),
                "--exclude",
                str(archive_path),
                "--exclude",
                str(manifest_path),
                "-P",
                "-C",
                str(self._workspace),
                "--files-from",
                str(manifest_path),
            )
        return archive_path

    def _create_gzip(
        self, archive_path: Path, manifest_path: Path, paths: list[str]
    ) -> None:
        skip = {archive_path.absolute(), manifest_path.absolute()}
        with tarfile.open(archive_path, "w:gz") as tf:
            for name, source in self._iter_members(paths):
                if source.absolute() in skip:
                    continue
                info = tf.gettarinfo(str(source), arcname=name)
                # gettarinfo strips the leading '/' of absolute names
                info.name = name
                if info.isreg():
                    with open(source, "rb") as f:
                        tf.addfile(info, fileobj=f)
                else:
                    tf.addfile(info)

    def _iter_members(self, paths: list[str]) -> Iterator[tuple[str, Path]]:
        """Yield (member name, source path) for every entry under paths."""
        for rel in paths:
            source = self._absolute(rel)
            yield rel, source
            if source.is_symlink() or not source.is_dir():
                continue
            for cur_root, dirs, files in os.walk(source):
                dirs.sort()
                files.sort()
                cur = Path(cur_root)
                base = PurePosixPath(rel) / cur.relative_to(source).as_posix()
                for d in dirs:
                    yield str(base / d), cur / d
                for f in files:
                    yield str(base / f), cur / f

    # --- Extract / list ---

    async def extract(self, archive_path: Path, compression: CompressionMethod) -> None:
        """Unpack an archive into the workspace."""
        self._workspace.mkdir(parents=True, exist_ok=True)
        if compression == CompressionMethod.GZIP:
            await asyncio.to_thread(self._extract_gzip, Path(archive_path))
            return
        await self._run_tar(
            "--use-compress-program",
            _zstd_program(compression, decompress=True),
            "-xf",
            str(archive_path),
            "-P",
            "-C",
            str(self._workspace),
        )

    def _extract_gzip(self, archive_path: Path) -> None:
        with tarfile.open(archive_path, "r:gz") as tf:
            members = tf.getmembers()
            for member in members:
                if ".." in PurePosixPath(member.name).parts:
                    raise ValueError(
                        f"Refusing to extract member outside target: {member.name}"
                    )
            # Absolute member names are restored to their absolute location.
            tf.extractall(self._workspace, members=members, filter="fully_trusted")

    async def list_members(
        self, archive_path: Path, compression: CompressionMethod
    ) -> list[str]:
        """Return member names of an archive."""
        if compression == CompressionMethod.GZIP:
            return await asyncio.to_thread(self._list_gzip, Path(archive_path))
        output = await self._run_tar(
            "--use-compress-program",
            _zstd_program(compression, decompress=True),
            "-tf",
            str(archive_path),
            "-P",
        )
        return [line for line in output.splitlines() if line]

    @staticmethod
    def _list_gzip(archive_path: Path) -> list[str]:
        with tarfile.open(archive_path, "r:gz") as tf:
            return tf.getnames()

    # --- tar CLI ---

    async def _run_tar(self, *args: str) -> str:
        """Run ``tar`` and return its stdout.

        Raises:
            CommandFailedError: On a non-zero exit status.
        """
        command = ["tar", *args]
        logger.debug("Running: %s", " ".join(command))
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise CommandFailedError(
                " ".join(command),
                proc.returncode or -1,
                stderr.decode("utf-8", errors="replace"),
            )
        return stdout.decode("utf-8", errors="replace")
