# tests/unit/logging/test_logger.py — v2
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from fscache.logging.context import clear_context, operation_context, set_cache_context
from fscache.logging.logger import (
    GithubActionsFormatter,
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
)


def _record(msg: str = "Hello", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


@pytest.fixture(autouse=True)
def reset_fscache_logger():
    yield
    root = logging.getLogger("fscache")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_cache_context("restore", "rust-abc")
        parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"] == {"operation": "restore", "cache_key": "rust-abc"}

    def test_format_with_data(self):
        record = _record()
        record.data = {"size": 12}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"size": 12}

    def test_format_exception(self):
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            record = _record("failed", logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(JsonFormatter().format(record))
        assert "kaboom" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        with operation_context("save", "rust-abc"):
            output = TextFormatter().format(_record("Cache saved"))
        assert "[save]" in output
        assert "(rust-abc)" in output
        assert output.endswith("- Cache saved")


class TestGetLogger:
    def test_returns_logger(self):
        assert get_logger("test_module").name == "fscache.test_module"


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("fscache")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("fscache")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("fscache").handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "fscache.log"
        setup_logging(log_file=str(log_file), rotation="1MB", retention=2)
        get_logger("test").info("written to file")
        for handler in logging.getLogger("fscache").handlers:
            handler.flush()
        assert "written to file" in log_file.read_text()


class TestGithubActionsFormatter:
    def test_info_is_plain(self):
        assert GithubActionsFormatter().format(_record("Cache saved")) == "Cache saved"

    def test_warning_command(self):
        output = GithubActionsFormatter().format(_record("Failed to save", logging.WARNING))
        assert output == "::warning::Failed to save"

    def test_debug_command(self):
        output = GithubActionsFormatter().format(_record("Resolved Keys", logging.DEBUG))
        assert output == "::debug::Resolved Keys"

    def test_escapes_multiline(self):
        output = GithubActionsFormatter().format(_record("50% done\nnext", logging.ERROR))
        assert output == "::error::50%25 done%0Anext"

    def test_file_handler_uses_text(self, tmp_path):
        setup_logging(log_format="github", log_file=str(tmp_path / "f.log"))
        console, file_handler = logging.getLogger("fscache").handlers
        assert isinstance(console.formatter, GithubActionsFormatter)
        assert isinstance(file_handler.formatter, TextFormatter)
