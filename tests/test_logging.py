"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from tollgate.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_context_fields_are_top_level(self):
        record = _record("Rate limit exceeded")
        record.client_key = "ratelimit:ip:abc"
        record.path = "/me"
        record.status_code = 429

        data = json.loads(JSONFormatter().format(record))

        assert data["client_key"] == "ratelimit:ip:abc"
        assert data["path"] == "/me"
        assert data["status_code"] == 429
        assert "extra" not in data

    def test_unset_context_fields_are_omitted(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))
        assert "jti" not in data
        assert "subject" not in data

    def test_other_extra_fields(self):
        record = _record("Unhandled exception")
        record.exception_type = "RuntimeError"

        data = json.loads(JSONFormatter().format(record))
        assert data["extra"]["exception_type"] == "RuntimeError"

    def test_exception_info(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text


class TestContextFilter:
    def test_adds_default_fields(self):
        record = _record()
        assert ContextFilter().filter(record) is True

        for field in JSONFormatter.CONTEXT_FIELDS:
            assert hasattr(record, field)

    def test_preserves_existing_values(self):
        record = _record()
        record.jti = "abc123"
        ContextFilter().filter(record)
        assert record.jti == "abc123"


class TestGetLoggingConfig:
    """Test logging configuration generation."""

    def test_default_text_format(self):
        with patch("tollgate.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"

            config = get_logging_config()

        assert "json" not in config["formatters"]
        assert config["handlers"]["console"]["formatter"] == "standard"
        assert "tollgate" in config["loggers"]

    def test_json_format(self):
        with patch("tollgate.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "warning"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["handlers"]["console"]["level"] == "WARNING"

    def test_context_filter_added(self):
        config = get_logging_config()
        assert "context" in config["handlers"]["console"]["filters"]


class TestGetLogContext:
    def test_filters_none(self):
        context = get_log_context(subject="user-1", jti=None, client_key="ratelimit:ip:abc")
        assert context == {"subject": "user-1", "client_key": "ratelimit:ip:abc"}

    def test_extra_fields(self):
        context = get_log_context(jti="abc", path="/auth/refresh")
        assert context == {"jti": "abc", "path": "/auth/refresh"}


def test_get_logger_default_name():
    assert get_logger().name == "tollgate"


def test_json_logging_output(capsys):
    with patch("tollgate.app.core.logging.settings") as mock_settings:
        mock_settings.log_format = "json"
        mock_settings.log_level = "INFO"

        setup_logging()
        get_logger("tollgate.test").info(
            "Issued token pair",
            extra=get_log_context(subject="user-1", jti="abc123"),
        )

    data = json.loads(capsys.readouterr().out.strip().splitlines()[-1])

    assert data["logger"] == "tollgate.test"
    assert data["message"] == "Issued token pair"
    assert data["subject"] == "user-1"
    assert data["jti"] == "abc123"
