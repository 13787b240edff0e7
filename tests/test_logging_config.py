"""Tests for logging configuration module."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest

from efmucontainer.logging_config import (
    MAX_LIST_ITEMS,
    JsonFormatter,
    SimpleFormatter,
    _normalize_value,
    get_logger,
    setup_logging,
)


def _record(msg: str = "test", level: int = logging.INFO, name: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestNormalizeValue:
    """Tests for _normalize_value."""

    def test_scalars_unchanged(self) -> None:
        assert _normalize_value(3) == 3
        assert _normalize_value("x") == "x"
        assert _normalize_value(None) is None

    def test_path_as_posix(self) -> None:
        assert _normalize_value(Path("eFMU") / "m1") == "eFMU/m1"

    def test_small_list_preserved(self) -> None:
        assert _normalize_value(["a", "b"]) == ["a", "b"]

    def test_long_list_summarised(self) -> None:
        value = list(range(MAX_LIST_ITEMS + 1))
        assert _normalize_value(value) == f"[list:{MAX_LIST_ITEMS + 1} items]"


class TestJsonFormatter:
    """Test the JSON log formatter."""

    def test_contains_required_fields(self) -> None:
        """JSON output should contain required fields."""
        output = JsonFormatter().format(_record("hello world", name="mylogger"))
        parsed = json.loads(output)
        assert "ts" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "mylogger"
        assert parsed["msg"] == "hello world"

    def test_warning_includes_location(self) -> None:
        """WARNING+ logs should include file/line info."""
        parsed = json.loads(JsonFormatter().format(_record(level=logging.WARNING)))
        assert parsed["file"] == "test.py"
        assert parsed["line"] == 42

    def test_extra_fields_included(self) -> None:
        """Extra fields from record should be included."""
        record = _record()
        record.container = Path("out") / "demo.fmu"
        record.entries = 2
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["container"] == "out/demo.fmu"
        assert parsed["entries"] == 2


class TestSimpleFormatter:
    """Test the simple human-readable formatter."""

    def test_basic_format(self) -> None:
        output = SimpleFormatter().format(_record("hello"))
        assert output.startswith("INFO")
        assert "hello" in output

    def test_debug_includes_logger_name(self) -> None:
        output = SimpleFormatter().format(_record("detail", level=logging.DEBUG, name="efmucontainer.x"))
        assert "efmucontainer.x: detail" in output

    def test_extra_fields_appended(self) -> None:
        record = _record("message")
        record.mr_name = "m1"
        output = SimpleFormatter().format(record)
        assert output.endswith("| mr_name=m1")


class TestSetupLogging:
    """Test the setup_logging function."""

    def test_setup_logging_json(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=True, stream=stream)

        get_logger("test_json").info("test message", extra={"key": "value"})

        parsed = json.loads(stream.getvalue().strip())
        assert parsed["msg"] == "test message"
        assert parsed["key"] == "value"

    def test_setup_logging_simple(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=False, stream=stream)

        get_logger("test_simple").info("simple test")

        output = stream.getvalue()
        assert "simple test" in output
        with pytest.raises(json.JSONDecodeError):
            json.loads(output.strip())

    def test_verbose_enables_debug(self) -> None:
        stream = io.StringIO()
        setup_logging(verbose=True, stream=stream)

        get_logger("test_verbose").debug("debug message")

        assert "debug message" in stream.getvalue()

    def test_setup_logging_level(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, stream=stream)

        logger = get_logger("test_level")
        logger.info("info message")
        logger.warning("warning message")

        output = stream.getvalue()
        assert "info message" not in output
        assert "warning message" in output
