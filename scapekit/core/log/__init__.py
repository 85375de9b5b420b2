"""Logging micro API for scapekit."""

from .lib import LOG_FORMAT, get_logger, parse_level, setup_logging

__all__ = ["get_logger", "setup_logging", "parse_level", "LOG_FORMAT"]
