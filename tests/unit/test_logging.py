"""Unit tests for structured logging utilities.

This module tests the logging configuration and utilities including:
- Logging setup with different levels, formats and outputs
- Logger instance creation
- Error logging with context
"""

from __future__ import annotations

import logging
import sys
from unittest.mock import MagicMock

import pytest
import structlog

from clusterlogin.utils.logging import get_logger, log_error, setup_logging


class TestSetupLogging:
    """Test setup_logging function."""

    @pytest.fixture(autouse=True)
    def reset_logging(self):
        """Reset logging configuration before each test."""
        logging.root.handlers = []
        structlog.reset_defaults()
        yield
        logging.root.handlers = []
        structlog.reset_defaults()

    def test_setup_logging_default_parameters(self):
        """Test setup_logging defaults to WARNING on stderr."""
        setup_logging()

        assert len(logging.root.handlers) > 0
        assert logging.root.level == logging.WARNING
        assert logging.root.handlers[0].stream is sys.stderr

    def test_setup_logging_debug_level(self):
        """Test setup_logging with DEBUG level."""
        setup_logging(level="DEBUG")

        assert logging.root.level == logging.DEBUG

    def test_setup_logging_lowercase_level(self):
        """Test setup_logging accepts lowercase level names."""
        setup_logging(level="info")

        assert logging.root.level == logging.INFO

    def test_setup_logging_invalid_level_defaults_to_warning(self):
        """Test setup_logging with invalid level defaults to WARNING."""
        setup_logging(level="INVALID")

        assert logging.root.level == logging.WARNING

    def test_setup_logging_stdout_output(self):
        """Test setup_logging can log to stdout."""
        setup_logging(output="stdout")

        assert logging.root.handlers[0].stream is sys.stdout

    def test_setup_logging_json_format(self):
        """Test setup_logging with JSON format."""
        setup_logging(format="json")

        processors = structlog.get_config()["processors"]
        assert isinstance(
            processors[-1], structlog.processors.JSONRenderer
        ), "JSONRenderer should be last processor"

    def test_setup_logging_console_format(self):
        """Test setup_logging with console format."""
        setup_logging(format="console")

        processors = structlog.get_config()["processors"]
        assert isinstance(
            processors[-1], structlog.dev.ConsoleRenderer
        ), "ConsoleRenderer should be last processor"

    def test_setup_logging_includes_timestamp_processor(self):
        """Test setup_logging includes timestamp processor."""
        setup_logging()

        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.processors.TimeStamper) for p in processors)

    def test_setup_logging_caches_logger(self):
        """Test setup_logging configures logger caching."""
        setup_logging()

        assert structlog.get_config()["cache_logger_on_first_use"] is True

    def test_setup_logging_keeps_client_libraries_quiet(self):
        """Test kubernetes client debug output stays off at DEBUG level."""
        setup_logging(level="DEBUG")

        assert logging.getLogger("kubernetes").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_setup_logging_client_libraries_follow_higher_level(self):
        """Test client libraries follow a level above WARNING."""
        setup_logging(level="ERROR")

        assert logging.getLogger("kubernetes").level == logging.ERROR


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_returns_logger(self):
        """Test get_logger returns a usable logger."""
        logger = get_logger(__name__)

        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "error")

    def test_get_logger_without_name(self):
        """Test get_logger works without a name."""
        assert get_logger() is not None


class TestLogError:
    """Test log_error function."""

    def test_log_error_basic(self):
        """Test log_error logs type and message."""
        logger = MagicMock()
        error = ValueError("bad value")

        log_error(logger, error)

        logger.error.assert_called_once_with(
            "error_occurred", error_type="ValueError", error_message="bad value"
        )

    def test_log_error_with_operation(self):
        """Test log_error includes the operation."""
        logger = MagicMock()

        log_error(logger, RuntimeError("boom"), operation="merging")

        assert logger.error.call_args[1]["operation"] == "merging"

    def test_log_error_with_additional_context(self):
        """Test log_error passes extra fields through."""
        logger = MagicMock()

        log_error(logger, RuntimeError("boom"), cluster="prod/team-a")

        assert logger.error.call_args[1]["cluster"] == "prod/team-a"
