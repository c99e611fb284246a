"""Tests for logging configuration."""

import json
import logging
import sys

from faultline.config import DEFAULT_LOG_PATH
from faultline.logging_config import SDK_LOGGER_NAME, JSONFormatter, set_debug, setup_logging


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_record(self):
        """Test the structured fields."""
        record = logging.LogRecord(
            "faultline.client.client", logging.WARNING, __file__, 12, "dropped %s", ("event",), None
        )
        record.context = {"event_id": "abc"}

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "faultline.client.client"
        assert data["message"] == "dropped event"
        assert data["line"] == 12
        assert data["context"] == {"event_id": "abc"}
        assert "exception" not in data

    def test_includes_exception(self):
        """Test that exception info is rendered."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


class TestSetup:
    """Tests for setup helpers."""

    def test_set_debug_only_touches_sdk_logger(self):
        """Test that debug mode raises the SDK logger level and resets it."""
        root_level = logging.getLogger().level
        try:
            set_debug(True)
            assert logging.getLogger(SDK_LOGGER_NAME).level == logging.DEBUG
            assert logging.getLogger().level == root_level
        finally:
            set_debug(False)

        assert logging.getLogger(SDK_LOGGER_NAME).level == logging.NOTSET

    def test_setup_logging_creates_log_file(self, tmp_path):
        """Test that the log directory is created and records are written."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_file = tmp_path / "logs" / "faultline.log"
        try:
            setup_logging("debug", str(log_file))
            logging.getLogger("faultline.test").info("hello")
            for handler in root.handlers:
                handler.flush()

            lines = log_file.read_text(encoding="utf-8").splitlines()
            assert json.loads(lines[-1])["message"] == "hello"
            assert root.level == logging.DEBUG
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)

    def test_default_log_path(self):
        """Test that logs default to the project's 04_logs directory."""
        assert DEFAULT_LOG_PATH.parent.name == "04_logs"
        assert DEFAULT_LOG_PATH.name == "faultline.log"
