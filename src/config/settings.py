# src/config/settings.py — v2
"""Typed configuration loaded from the environment and .env via pydantic-settings.

Built once at the process boundary (CLI) and passed into the cache
components; nothing below this module reads the environment directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fscache.cache.models import CompressionMethod


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Backend ===
    cache_backend: Literal["local", "s3"] = "local"
    cache_dir: str = Field(
        "/runner/rust_cache",
        validation_alias=AliasChoices("RUST_CACHE_DIR", "CACHE_DIR", "cache_dir"),
    )

    # === Build environment ===
    repository: str = Field(
        "", validation_alias=AliasChoices("GITHUB_REPOSITORY", "repository")
    )
    workspace: Path = Field(
        Path("."), validation_alias=AliasChoices("GITHUB_WORKSPACE", "workspace")
    )

    # === Archive ===
    compression: CompressionMethod | None = Field(
        None, validation_alias=AliasChoices("CACHE_COMPRESSION", "compression")
    )
    cross_os_archive: bool = Field(
        False,
        validation_alias=AliasChoices("CACHE_CROSS_OS_ARCHIVE", "cross_os_archive"),
    )

    # === S3 ===
    s3_bucket: str = Field(
        "", validation_alias=AliasChoices("AWS_S3_BUCKET", "s3_bucket")
    )
    s3_prefix: str = Field(
        "", validation_alias=AliasChoices("AWS_S3_PREFIX", "s3_prefix")
    )
    s3_region: str = Field(
        "", validation_alias=AliasChoices("AWS_S3_REGION", "AWS_REGION", "s3_region")
    )
    s3_endpoint: str = Field(
        "", validation_alias=AliasChoices("AWS_S3_ENDPOINT", "AWS_ENDPOINT", "s3_endpoint")
    )
    s3_access_key_id: str = Field(
        "",
        validation_alias=AliasChoices(
            "AWS_S3_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID", "s3_access_key_id"
        ),
    )
    s3_secret_access_key: str = Field(
        "",
        validation_alias=AliasChoices(
            "AWS_S3_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY", "s3_secret_access_key"
        ),
    )
    s3_session_token: str = Field(
        "",
        validation_alias=AliasChoices(
            "AWS_S3_SESSION_TOKEN", "AWS_SESSION_TOKEN", "s3_session_token"
        ),
    )
    s3_force_path_style: bool = Field(
        False,
        validation_alias=AliasChoices("AWS_S3_FORCE_PATH_STYLE", "s3_force_path_style"),
    )

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json", "github"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:  # noqa: N805
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "s3" and not self.s3_bucket:
            errors.append("CACHE_BACKEND=s3 requires AWS_S3_BUCKET")

        if self.cache_backend == "local" and not self.cache_dir.strip():
            errors.append("CACHE_BACKEND=local requires a non-empty RUST_CACHE_DIR")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from env / .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
