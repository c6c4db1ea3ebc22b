# src/logging/logger.py — v3
"""Logger factory and formatters.

Three output formats:
  - text: one line per record with the cache operation and key, for humans.
  - json: one object per line, for log shippers.
  - github: GitHub Actions workflow commands, so warnings surface as
    annotations and debug lines only show with step debugging enabled.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from fscache.logging.context import get_context

LOG_FORMATS = ("text", "json", "github")

_WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def _timestamp() -> datetime:
    return datetime.now(timezone.utc)


class JsonFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        # Set through logger.x(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable single-line formatter."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        line = f"{_timestamp():%Y-%m-%d %H:%M:%S} [{record.levelname:8s}] {record.name}"
        if ctx.operation:
            line += f" [{ctx.operation}]"
        if ctx.cache_key:
            line += f" ({ctx.cache_key})"
        line += f" - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


class GithubActionsFormatter(logging.Formatter):
    """Emit ``::warning::`` / ``::error::`` / ``::debug::`` workflow commands.

    INFO records are printed as plain lines. Multi-line messages are escaped
    the way the runner expects (``%``, CR and LF are percent-encoded).
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info and record.exc_info[1] is not None:
            message += "\n" + self.formatException(record.exc_info)
        command = _WORKFLOW_COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape(message)}"


def _escape(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _make_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if log_format == "github":
        return GithubActionsFormatter()
    return TextFormatter()


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the ``fscache`` hierarchy."""
    return logging.getLogger(f"fscache.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Configure the ``fscache`` logger. Safe to call more than once.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: One of ``LOG_FORMATS``.
        log_file: Optional log file, written in addition to stderr.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root_logger = logging.getLogger("fscache")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = _make_formatter(log_format)

    # stdout is reserved for command output (matched key, fingerprint)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from fscache.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention
        )
        # Workflow commands mean nothing outside the runner's stdout/stderr
        file_handler.setFormatter(
            TextFormatter() if log_format == "github" else formatter
        )
        root_logger.addHandler(file_handler)
