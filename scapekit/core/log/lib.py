"""Core logging implementation for scapekit."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging", "parse_level", "LOG_FORMAT", "NOISY_LOGGERS"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Server-stack loggers that flood INFO with per-request lines
NOISY_LOGGERS = ("mcp", "fastmcp", "uvicorn.access", "httpx")


def parse_level(level: int | str) -> int:
    """Resolve a level name such as ``"debug"`` to its numeric value.

    Unknown names fall back to INFO.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Below DEBUG verbosity the MCP server stack is held at WARNING so scape
    activity stays readable.

    Args:
        level: Logging level, numeric or by name.
        stream: Output stream.
    """
    numeric = parse_level(level)
    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        stream=stream,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.NOTSET if numeric <= logging.DEBUG else logging.WARNING
        )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "scapekit")
