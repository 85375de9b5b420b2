"""Server configuration for the scapekit MCP server."""

from dataclasses import dataclass, field
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from scapekit.config import (
    EnvVar,
    get_db_path,
    get_environment,
    get_require_unique_title,
)

SERVER_NAME = "scapekit"

# Tools registered by scapekit.mcp.server, in the order clients usually need them
SCAPE_TOOLS: tuple[str, ...] = (
    "status",
    "list_widget_types",
    "validate_scape",
    "move_widget",
    "check_title",
    "save_scape",
    "publish_scape",
    "get_scape",
    "list_scapes",
    "delete_scape",
)


class TransportType(str, Enum):
    """Supported MCP transport types."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


@dataclass
class ServerConfig:
    """Configuration for MCP server.

    Attributes:
        name: Server display name.
        transport: Transport type for communication.
        host: Bind address for HTTP/SSE transports.
        port: Port for HTTP/SSE transports.
        path: URL path for HTTP transport.
        db_path: Scape database opened at startup.
        require_unique_title: Whether publish refuses duplicate titles.
    """

    name: str = SERVER_NAME
    transport: TransportType = TransportType.STDIO
    host: str = "0.0.0.0"
    port: int = 18080
    path: str = "/mcp"
    db_path: Path = field(default_factory=get_db_path)
    require_unique_title: bool = field(default_factory=get_require_unique_title)

    @classmethod
    def from_env(
        cls,
        transport: TransportType | None = None,
    ) -> "ServerConfig":
        """Create config from MCP_HOST, MCP_PORT and the scape settings.

        Args:
            transport: Override transport type (default: STDIO).
        """
        return cls(
            transport=transport or TransportType.STDIO,
            host=get_environment(EnvVar.MCP_HOST),
            port=get_environment(EnvVar.MCP_PORT),
        )


def get_server_version() -> str:
    """Installed package version, or the source tree version when not installed."""
    try:
        return version("scapekit")
    except PackageNotFoundError:
        return "0.1.0"


def get_server_capabilities() -> dict:
    """Get server capabilities for MCP protocol."""
    return {
        "tools": True,
        "resources": True,
        "prompts": False,
        "logging": True,
        "persistence": True,
    }


__all__ = [
    "SERVER_NAME",
    "SCAPE_TOOLS",
    "TransportType",
    "ServerConfig",
    "get_server_version",
    "get_server_capabilities",
]
