# src/storage/backend_factory.py — v2
"""Factory: instantiate the cache backend from configuration."""

from __future__ import annotations

from fscache.config.settings import Settings
from fscache.storage.base_backend import BaseCacheBackend
from fscache.storage.local_backend import LocalBackend


def create_backend(settings: Settings) -> BaseCacheBackend:
    """Create the appropriate cache backend based on settings.

    Args:
        settings: Application settings (CACHE_BACKEND env var).

    Returns:
        BaseCacheBackend instance.

    Raises:
        ValueError: If the backend is not supported or misconfigured.
    """
    if settings.cache_backend == "local":
        return LocalBackend(root=settings.cache_dir)

    if settings.cache_backend == "s3":
        from fscache.storage.s3_backend import S3Backend, create_s3_client
        if not settings.s3_bucket:
            raise ValueError("AWS_S3_BUCKET must be set when CACHE_BACKEND=s3")
        client = create_s3_client(
            region=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint or None,
            access_key_id=settings.s3_access_key_id or None,
            secret_access_key=settings.s3_secret_access_key or None,
            session_token=settings.s3_session_token or None,
            force_path_style=settings.s3_force_path_style,
        )
        return S3Backend(
            bucket=settings.s3_bucket, client=client, prefix=settings.s3_prefix
        )

    raise ValueError(f"Unsupported cache backend: {settings.cache_backend!r}")
