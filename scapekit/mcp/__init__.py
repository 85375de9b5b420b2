"""MCP (Model Context Protocol) server for scapekit.

Exposes scape validation, reordering and persistence to MCP clients.

Example:
    # Start server in STDIO mode
    >>> from scapekit.mcp import run_server
    >>> run_server()

    # Start server in HTTP mode
    >>> from scapekit.mcp import ServerConfig, TransportType, run_server
    >>> run_server(ServerConfig(transport=TransportType.HTTP, port=18080))

    # Create server for testing
    >>> from scapekit.mcp import create_server
    >>> server = create_server()
"""

from .lib import (
    SCAPE_TOOLS,
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import create_server, mcp, run_server

__all__ = [
    # Server instance
    "mcp",
    "create_server",
    "run_server",
    # Configuration
    "SERVER_NAME",
    "SCAPE_TOOLS",
    "ServerConfig",
    "TransportType",
    # Utilities
    "get_server_version",
    "get_server_capabilities",
]
