"""Tests for core logging module."""

import logging
from io import StringIO

import pytest

from .lib import NOISY_LOGGERS, get_logger, parse_level, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        """Verify logger instance creation."""
        logger = get_logger("test")
        assert logger.name == "test"
        assert isinstance(logger, logging.Logger)

    @pytest.mark.unit
    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        logger = get_logger()
        assert logger.name == "scapekit"

    @pytest.mark.unit
    def test_setup_logging(self) -> None:
        """Verify logging setup accepts a level name."""
        stream = StringIO()
        setup_logging(level="debug", stream=stream)
        logger = get_logger("test_setup")
        logger.debug("test message")

        # basicConfig is a no-op once the root logger has handlers,
        # so only the API contract is checked here.
        assert logger.level == logging.NOTSET

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            (" error ", logging.ERROR),
            (logging.CRITICAL, logging.CRITICAL),
            ("nonsense", logging.INFO),
        ],
    )
    def test_parse_level(self, value, expected) -> None:
        """Level names resolve case-insensitively with an INFO fallback."""
        assert parse_level(value) == expected

    @pytest.mark.unit
    def test_server_loggers_quieted(self) -> None:
        """Server-stack loggers sit at WARNING unless debugging."""
        setup_logging(level="info", stream=StringIO())
        assert all(
            logging.getLogger(name).level == logging.WARNING for name in NOISY_LOGGERS
        )

        setup_logging(level="debug", stream=StringIO())
        assert all(
            logging.getLogger(name).level == logging.NOTSET for name in NOISY_LOGGERS
        )
