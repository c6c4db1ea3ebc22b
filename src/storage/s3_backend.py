# src/storage/s3_backend.py — v3
"""S3-compatible cache backend (CACHE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage. A store location
maps to an object key prefix; the children of a location are the objects
directly under ``{location}/``.

boto3 is synchronous, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fscache.cache.models import Found
from fscache.storage.base_backend import BaseCacheBackend
from fscache.storage.layout import MANIFEST_NAME

logger = logging.getLogger(__name__)


class S3Backend(BaseCacheBackend):
    """Store cache entries as objects in an S3 bucket."""

    def __init__(self, bucket: str, client: Any, prefix: str = "") -> None:
        """Initialize S3 backend.

        Args:
            bucket: S3 bucket name.
            client: boto3 S3 client (see ``create_s3_client``).
            prefix: Key prefix for all objects; acts as the backend root.
        """
        self._bucket = bucket
        self._s3 = client
        self._prefix = prefix.strip("/")

    @property
    def root(self) -> str:
        return self._prefix

    @staticmethod
    def _object_key(location: str, name: str) -> str:
        return f"{location.strip('/')}/{name}"

    async def list_children(self, location: str) -> list[Found]:
        """List objects directly under a location prefix."""
        return await asyncio.to_thread(self._list_children, location)

    def _list_children(self, location: str) -> list[Found]:
        prefix = location.strip("/") + "/"
        children: list[Found] = []
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Prefix": prefix,
            "Delimiter": "/",
        }
        while True:
            response = self._s3.list_objects_v2(**kwargs)
            for obj in response.get("Contents", []):
                name = obj["Key"][len(prefix):]
                if name:
                    children.append(Found(name=name, modified_at=obj["LastModified"]))
            if not response.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = response["NextContinuationToken"]
        return children

    @asynccontextmanager
    async def staging(self, location: str) -> AsyncIterator[Path]:
        """Build the entry in a temp dir, then upload its files.

        The archiver's manifest is not uploaded.
        """
        with tempfile.TemporaryDirectory(prefix="fscache-") as tmp:
            staging_dir = Path(tmp)
            yield staging_dir
            for path in sorted(staging_dir.iterdir()):
                if path.name == MANIFEST_NAME or not path.is_file():
                    continue
                key = self._object_key(location, path.name)
                await asyncio.to_thread(
                    self._s3.upload_file, str(path), self._bucket, key
                )
                logger.debug("S3 upload: s3://%s/%s", self._bucket, key)

    @asynccontextmanager
    async def fetch(self, location: str, name: str) -> AsyncIterator[Path]:
        """Download an object into a temp dir for the duration of the block."""
        key = self._object_key(location, name)
        with tempfile.TemporaryDirectory(prefix="fscache-") as tmp:
            path = Path(tmp) / name
            await asyncio.to_thread(
                self._s3.download_file, self._bucket, key, str(path)
            )
            logger.debug("S3 download: s3://%s/%s", self._bucket, key)
            yield path

    async def delete(self, location: str, name: str) -> None:
        """Delete an object. Deleting a missing key is not an error in S3."""
        key = self._object_key(location, name)
        await asyncio.to_thread(
            self._s3.delete_object, Bucket=self._bucket, Key=key
        )


def create_s3_client(
    region: str | None = None,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    session_token: str | None = None,
    force_path_style: bool = False,
) -> Any:
    """Build a boto3 S3 client.

    Credentials left empty fall back to the boto3 default chain (env, IAM).
    """
    try:
        import boto3
        from botocore.config import Config
    except ImportError as e:
        raise ImportError(
            "boto3 package required for S3 backend: pip install boto3"
        ) from e

    kwargs: dict[str, Any] = {}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if access_key_id and secret_access_key:
        kwargs["aws_access_key_id"] = access_key_id
        kwargs["aws_secret_access_key"] = secret_access_key
        if session_token:
            kwargs["aws_session_token"] = session_token

    if force_path_style:
        kwargs["config"] = Config(s3={"addressing_style": "path"})

    return boto3.client("s3", **kwargs)
