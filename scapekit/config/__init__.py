"""Centralized configuration management for scapekit.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from scapekit.config import EnvVar, get_environment
    >>>
    >>> debounce = get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS)  # Returns int: 500
    >>> debounce = get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS, override=50)
    >>>
    >>> for var in list_environment_variables("editor"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    store: Database location
    editor: Title debounce and uniqueness enforcement
    service: MCP server host and port
    logging: Log level
"""

from .lib import (
    EnvConfig,
    LOG_LEVEL_NAMES,
    EnvVar,
    describe_environment,
    get_db_path,
    get_environment,
    get_environment_info,
    get_log_level,
    get_require_unique_title,
    get_title_debounce_seconds,
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    "LOG_LEVEL_NAMES",
    # Main interface
    "get_environment",
    "get_environment_info",
    "describe_environment",
    # Convenience functions
    "get_db_path",
    "get_title_debounce_seconds",
    "get_require_unique_title",
    "get_log_level",
    # Introspection
    "list_environment_variables",
]
