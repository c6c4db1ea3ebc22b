# src/main.py — v2
"""CLI entry point: save, restore, fingerprint, available commands.

Usage:
    fscache save <key> <path>... [options]
    fscache restore <key> <path>... [--restore-key KEY]... [options]
    fscache fingerprint <path>... [options]
    fscache available

Exit codes: 0 success / hit, 1 soft failure / miss, 2 invalid input.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from fscache.errors import CommandFailedError, PathValidationError, ValidationError
from fscache.version import __version__

if TYPE_CHECKING:
    from fscache.config.settings import Settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISS = 1
EXIT_INVALID = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_MISS

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return asyncio.run(args.func(args, settings))
    except (ValidationError, PathValidationError) as exc:
        logger.error("%s", exc)
        return EXIT_INVALID
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        report_error(exc)
        return EXIT_MISS


def report_error(exc: BaseException) -> None:
    """Log a failure; external commands also get their stderr logged."""
    if isinstance(exc, CommandFailedError):
        logger.error("Command failed: %s", exc.command)
        logger.error("%s", exc.stderr)
    else:
        logger.error("Fatal error: %s", exc, exc_info=True)


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="fscache",
        description=f"fscache v{__version__}, key-addressed build artifact cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    archive_opts = argparse.ArgumentParser(add_help=False)
    archive_opts.add_argument(
        "--compression", choices=["gzip", "zstd", "zstd-without-long"], default=None,
        help="Compression method (default: zstd if available, else gzip)",
    )
    archive_opts.add_argument(
        "--cross-os", action="store_true", default=None,
        help="Share entries between Windows and other platforms",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- save ---
    p_save = subparsers.add_parser(
        "save", parents=[archive_opts], help="Save paths under a key",
    )
    p_save.add_argument("key", help="Cache key")
    p_save.add_argument("paths", nargs="+", help="Path patterns to cache")
    p_save.set_defaults(func=_cmd_save)

    # --- restore ---
    p_restore = subparsers.add_parser(
        "restore", parents=[archive_opts], help="Restore paths from a key",
    )
    p_restore.add_argument("key", help="Primary cache key")
    p_restore.add_argument("paths", nargs="+", help="Path patterns to restore")
    p_restore.add_argument(
        "-r", "--restore-key", dest="restore_keys", action="append", default=[],
        help="Fallback key, in priority order (repeatable)",
    )
    p_restore.set_defaults(func=_cmd_restore)

    # --- fingerprint ---
    p_fp = subparsers.add_parser(
        "fingerprint", parents=[archive_opts], help="Print the cache version",
    )
    p_fp.add_argument("paths", nargs="+", help="Path patterns")
    p_fp.set_defaults(func=_cmd_fingerprint)

    # --- available ---
    p_avail = subparsers.add_parser(
        "available", help="Check that the configured backend is usable",
    )
    p_avail.set_defaults(func=_cmd_available)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    from fscache.config.settings import load_settings

    overrides: dict[str, object] = {}
    if getattr(args, "compression", None):
        overrides["compression"] = args.compression
    if getattr(args, "cross_os", None):
        overrides["cross_os_archive"] = True
    return load_settings(**overrides)


async def _cmd_save(args: argparse.Namespace, settings: Settings) -> int:
    """Save paths under a key."""
    from fscache.api.facade import save_cache
    from fscache.cache.store import CACHE_SAVED

    result = await save_cache(args.paths, args.key, settings=settings)
    return EXIT_OK if result == CACHE_SAVED else EXIT_MISS


async def _cmd_restore(args: argparse.Namespace, settings: Settings) -> int:
    """Restore paths and print the matched key."""
    from fscache.api.facade import restore_cache

    matched = await restore_cache(
        args.paths, args.key, args.restore_keys, settings=settings
    )
    if matched is None:
        return EXIT_MISS
    print(matched)
    return EXIT_OK


async def _cmd_fingerprint(args: argparse.Namespace, settings: Settings) -> int:
    """Print the version fingerprint for a path set."""
    from fscache.archive.tar_archiver import detect_compression_method
    from fscache.cache.keys import compute_fingerprint

    compression = settings.compression or detect_compression_method()
    print(compute_fingerprint(args.paths, compression, settings.cross_os_archive))
    return EXIT_OK


async def _cmd_available(args: argparse.Namespace, settings: Settings) -> int:
    """Print whether the cache backend is usable."""
    from fscache.api.facade import is_feature_available

    available = is_feature_available(settings)
    print("true" if available else "false")
    return EXIT_OK if available else EXIT_MISS


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from fscache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
