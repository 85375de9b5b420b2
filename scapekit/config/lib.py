"""Environment-driven settings for scapekit.

Every setting is an ``EnvVar`` member carrying its own ``EnvConfig``: the
variable name, the default, how raw text is parsed and which category it
belongs to. Values resolve as override, then environment, then default.
Environment text that does not parse (or falls outside its allowed range) is
logged and replaced by the default, so a typo in ``.env`` never stops the
editor or the server from starting.

Example:
    >>> from scapekit.config import EnvVar, get_environment
    >>> get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS)
    500
    >>> get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS, override=50)
    50
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

logger = logging.getLogger(__name__)

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


# =============================================================================
# Setting Definitions
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """One environment setting.

    Attributes:
        name: Variable name, e.g. "SCAPE_DB_PATH".
        default: Value used when the variable is unset or unusable.
        var_type: str, int, bool or Path.
        description: Shown by ``python . env``.
        category: store, editor, service or logging.
        minimum: Smallest accepted int, if bounded.
        maximum: Largest accepted int, if bounded.
        choices: Accepted values for str settings (compared upper-cased).
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"
    minimum: int | None = None
    maximum: int | None = None
    choices: tuple[str, ...] | None = None

    def parse(self, raw: str) -> Any:
        """Parse environment text.

        Raises:
            ValueError: If the text is not a valid value for this setting.
        """
        text = raw.strip()
        if self.var_type is bool:
            word = text.lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise ValueError("expected true/false, yes/no, on/off or 1/0")

        if self.var_type is int:
            number = int(text)
            if self.minimum is not None and number < self.minimum:
                raise ValueError(f"must be >= {self.minimum}")
            if self.maximum is not None and number > self.maximum:
                raise ValueError(f"must be <= {self.maximum}")
            return number

        if self.var_type is Path:
            if not text:
                raise ValueError("empty path")
            return Path(text).expanduser()

        if self.choices is not None:
            text = text.upper()
            if text not in self.choices:
                raise ValueError(f"must be one of {', '.join(self.choices)}")
        return text


class EnvVar(Enum):
    """Settings read by scapekit, grouped by category."""

    # -------------------------------------------------------------------------
    # Store
    # -------------------------------------------------------------------------
    SCAPE_DB_PATH = EnvConfig(
        name="SCAPE_DB_PATH",
        default=Path("data/scapes.db"),
        var_type=Path,
        description="SQLite database file holding scapes and widgets",
        category="store",
    )

    # -------------------------------------------------------------------------
    # Editor
    # -------------------------------------------------------------------------
    SCAPE_TITLE_DEBOUNCE_MS = EnvConfig(
        name="SCAPE_TITLE_DEBOUNCE_MS",
        default=500,
        var_type=int,
        description="Quiet period before a title uniqueness check is issued",
        category="editor",
        minimum=0,
    )
    SCAPE_REQUIRE_UNIQUE_TITLE = EnvConfig(
        name="SCAPE_REQUIRE_UNIQUE_TITLE",
        default=True,
        var_type=bool,
        description="Block publishing when the title is taken by another scape",
        category="editor",
    )

    # -------------------------------------------------------------------------
    # Service
    # -------------------------------------------------------------------------
    MCP_HOST = EnvConfig(
        name="MCP_HOST",
        default="0.0.0.0",
        var_type=str,
        description="Bind address for the HTTP and SSE transports",
        category="service",
    )
    MCP_PORT = EnvConfig(
        name="MCP_PORT",
        default=18080,
        var_type=int,
        description="Port for the HTTP and SSE transports",
        category="service",
        minimum=1,
        maximum=65535,
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    SCAPE_LOG_LEVEL = EnvConfig(
        name="SCAPE_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Root log level for the CLI and MCP server",
        category="logging",
        choices=LOG_LEVEL_NAMES,
    )


# =============================================================================
# Resolution
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Resolve a setting.

    An explicit ``override`` wins and is returned as given. Otherwise the
    environment is parsed; unset or unusable text yields the default.
    """
    config: EnvConfig = env_var.value
    if override is not None:
        return override

    raw = os.environ.get(config.name)
    if raw is None:
        return config.default
    try:
        return config.parse(raw)
    except ValueError as e:
        logger.warning(
            f"Ignoring {config.name}={raw!r} ({e}); using default {config.default!r}"
        )
        return config.default


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """Settings in declaration order, optionally limited to one category."""
    return [var for var in EnvVar if category is None or var.value.category == category]


def describe_environment(category: str | None = None) -> list[dict[str, Any]]:
    """Current value of every setting, for display.

    Returns:
        One dict per setting with name, value, default, is_set, category and
        description.
    """
    rows = []
    for var in list_environment_variables(category):
        config: EnvConfig = var.value
        rows.append(
            {
                "name": config.name,
                "value": get_environment(var),
                "default": config.default,
                "is_set": config.name in os.environ,
                "category": config.category,
                "description": config.description,
            }
        )
    return rows


# =============================================================================
# Typed Getters
# =============================================================================


def get_db_path(override: Path | str | None = None) -> Path:
    """Scape database file: override, SCAPE_DB_PATH, then data/scapes.db."""
    if override is not None:
        return Path(override)
    return get_environment(EnvVar.SCAPE_DB_PATH)


def get_title_debounce_seconds(override: int | None = None) -> float:
    """Title uniqueness debounce in seconds."""
    millis = get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS, override=override)
    return max(0, millis) / 1000.0


def get_require_unique_title(override: bool | None = None) -> bool:
    """Whether a taken title blocks publishing."""
    return bool(get_environment(EnvVar.SCAPE_REQUIRE_UNIQUE_TITLE, override=override))


def get_log_level(override: str | None = None) -> str:
    """Configured log level name, upper-cased."""
    return get_environment(EnvVar.SCAPE_LOG_LEVEL, override=override).upper()


__all__ = [
    "EnvConfig",
    "EnvVar",
    "LOG_LEVEL_NAMES",
    "get_environment",
    "get_environment_info",
    "list_environment_variables",
    "describe_environment",
    "get_db_path",
    "get_title_debounce_seconds",
    "get_require_unique_title",
    "get_log_level",
]
