"""FastMCP server instance for scapekit.

Exposes the scape composition engine to MCP clients:

    1. list_widget_types: what can go into a scape
    2. validate_scape / move_widget: stateless document checks and edits
    3. save_scape / publish_scape / get_scape: stored scapes
    4. check_title / list_scapes / delete_scape: creator-scoped helpers

Usage:
    # STDIO mode
    python -m scapekit.mcp.server

    # HTTP mode
    python -m scapekit.mcp.server --transport http --port 18080

    # Via CLI (repository root)
    python . mcp serve --transport http
"""

import argparse
import json
import logging
import sys
from typing import Any

from fastmcp import FastMCP

from scapekit.config import get_db_path, get_log_level, get_require_unique_title
from scapekit.core.log import setup_logging
from scapekit.schema import export_widget_catalog

from .lib import (
    SCAPE_TOOLS,
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_version,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Server Instructions (LLM Guidance)
# =============================================================================

SERVER_INSTRUCTIONS = """\
## Scape Composition Server

Builds and stores "scapes": pages made of ordered, typed widgets with an
optional featured widget and color channels.

### Quick Start
1. `status()` → check readiness
2. `list_widget_types()` → pick widget types and variants
3. Build a scape JSON: {"id": "new", "title": ..., "widgets": [...]}
4. `validate_scape(scape)` → see can_save_draft / can_publish
5. `save_scape(scape, creator_id)` → returns the stored id
6. `publish_scape(scape, creator_id)` → make it live

### Rules
- A title is required to save; publishing also needs at least one widget.
- A featured widget needs a caption (75 characters max) to publish.
- Titles must be unique among a creator's scapes to publish; use
  `check_title(title, creator_id, exclude_id)` while editing.
- Reorders go through `move_widget(scape, from_index, to_index)`; positions
  are always recomputed as 0..N-1.
"""

# =============================================================================
# Server Instance
# =============================================================================

mcp = FastMCP(
    name=SERVER_NAME,
    instructions=SERVER_INSTRUCTIONS,
)


# =============================================================================
# Document Tools
# =============================================================================


@mcp.tool
def list_widget_types() -> dict[str, Any]:
    """List widget types with their variants, sizes and default payloads.

    Use the returned variant ids when adding widgets to a scape.
    """
    from .tools.catalog import list_widget_types as _list

    return _list()


@mcp.tool
def validate_scape(
    scape: dict[str, Any],
    name_status: str = "unknown",
) -> dict[str, Any]:
    """Validate a scape before saving or publishing.

    Args:
        scape: Scape JSON (id, title, tagline, widgets, ...).
        name_status: Known title uniqueness (unknown, checking, unique, taken).

    Returns:
        Dictionary with:
        - can_save_draft: True if the scape can be saved
        - can_publish: True if the scape can be published
        - errors: Human-readable problems
        - issues: Problems with code and widget_id
    """
    from .tools.document import validate_scape as _validate

    return _validate(
        scape=scape,
        name_status=name_status,
        require_unique_title=get_require_unique_title(),
    )


@mcp.tool
def move_widget(
    scape: dict[str, Any],
    from_index: int,
    to_index: int,
) -> dict[str, Any]:
    """Move a widget within a scape and return the updated scape.

    Args:
        scape: Scape JSON.
        from_index: Current index of the widget.
        to_index: Index the widget should end up at (clamped).
    """
    from .tools.document import move_widget as _move

    return _move(scape=scape, from_index=from_index, to_index=to_index)


# =============================================================================
# Stored Scape Tools
# =============================================================================


@mcp.tool
async def get_scape(scape_id: str, viewer_id: str | None = None) -> dict[str, Any]:
    """Get a stored scape by id.

    Unpublished and private scapes are only returned to their creator.
    """
    from .tools.scapes import get_scape as _get

    return await _get(scape_id=scape_id, viewer_id=viewer_id)


@mcp.tool
async def save_scape(
    scape: dict[str, Any],
    creator_id: str,
    preserve_published_state: bool = False,
) -> dict[str, Any]:
    """Save a scape as a draft, or update a live one.

    Args:
        scape: Scape JSON; id "new" creates a scape.
        creator_id: Owner of the scape.
        preserve_published_state: Keep a live scape live (update).

    Returns:
        Dictionary with scape_id and the saved scape (use it for later saves).
    """
    from .tools.scapes import save_scape as _save

    return await _save(
        scape=scape,
        creator_id=creator_id,
        preserve_published_state=preserve_published_state,
    )


@mcp.tool
async def publish_scape(
    scape: dict[str, Any],
    creator_id: str,
    visibility: str | None = None,
    permissions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Publish a scape.

    Args:
        scape: Scape JSON.
        creator_id: Owner of the scape.
        visibility: public, private or unlisted (default: keep).
        permissions: Permission flags stored with the scape.
    """
    from .tools.scapes import publish_scape as _publish

    return await _publish(
        scape=scape,
        creator_id=creator_id,
        visibility=visibility,
        permissions=permissions,
    )


@mcp.tool
async def check_title(
    title: str,
    creator_id: str,
    exclude_id: str | None = None,
) -> dict[str, Any]:
    """Check whether a title is free among the creator's scapes.

    Pass the scape's own id as exclude_id when renaming an existing scape.
    """
    from .tools.scapes import check_title as _check

    return await _check(title=title, creator_id=creator_id, exclude_id=exclude_id)


@mcp.tool
async def list_scapes(creator_id: str) -> dict[str, Any]:
    """List a creator's scapes, most recently updated first."""
    from .tools.scapes import list_scapes as _list

    return await _list(creator_id=creator_id)


@mcp.tool
async def delete_scape(scape_id: str, creator_id: str) -> dict[str, Any]:
    """Delete a scape owned by creator_id."""
    from .tools.scapes import delete_scape as _delete

    return await _delete(scape_id=scape_id, creator_id=creator_id)


# =============================================================================
# Status
# =============================================================================


@mcp.tool
def status() -> dict[str, Any]:
    """Report server health and configuration."""
    from scapekit.persistence import get_persistence

    store_status = "ok"
    require_unique_title = get_require_unique_title()
    try:
        require_unique_title = get_persistence().require_unique_title
    except Exception as e:
        logger.warning(f"Scape store unavailable: {e}")
        store_status = f"error: {e}"

    return {
        "status": "healthy" if store_status == "ok" else "unhealthy",
        "version": get_server_version(),
        "store": {"path": str(get_db_path()), "status": store_status},
        "require_unique_title": require_unique_title,
        "capabilities": sorted(name for name in SCAPE_TOOLS if name != "status"),
    }


# =============================================================================
# Resources
# =============================================================================


@mcp.resource("schema://widgets")
def get_widget_catalog() -> str:
    """Widget registry as JSON."""
    return json.dumps(export_widget_catalog(), indent=2)


# =============================================================================
# Server Factory & Runner
# =============================================================================


def create_server() -> FastMCP:
    """Create and configure the MCP server instance."""
    return mcp


def run_server(config: ServerConfig | None = None) -> None:
    """Run the MCP server.

    Args:
        config: Server configuration; from environment when omitted.
    """
    from scapekit.persistence import get_persistence

    config = config or ServerConfig.from_env()
    logger.info(f"Starting {config.name} server v{get_server_version()}")
    logger.info(f"Transport: {config.transport.value}")

    persistence = get_persistence(config.db_path)
    persistence.require_unique_title = config.require_unique_title
    logger.info(f"Scape store: {config.db_path}")

    if config.transport == TransportType.STDIO:
        mcp.run()
    elif config.transport == TransportType.HTTP:
        logger.info(f"Running in HTTP mode at http://{config.host}:{config.port}{config.path}")
        mcp.run(
            transport="http",
            host=config.host,
            port=config.port,
            path=config.path,
        )
    elif config.transport == TransportType.SSE:
        logger.info(f"Running in SSE mode at http://{config.host}:{config.port}")
        mcp.run(
            transport="sse",
            host=config.host,
            port=config.port,
        )
    else:
        raise ValueError(f"Unknown transport: {config.transport}")


# =============================================================================
# CLI Entry Point
# =============================================================================


def build_parser(parser: argparse.ArgumentParser | None = None) -> argparse.ArgumentParser:
    """Add server options to a parser (a fresh one when omitted)."""
    defaults = ServerConfig.from_env()
    parser = parser or argparse.ArgumentParser(
        prog="scapekit-mcp",
        description="MCP server for scape composition",
    )
    parser.add_argument(
        "--transport",
        "-t",
        type=str,
        choices=[t.value for t in TransportType],
        default=TransportType.STDIO.value,
        help="Transport type (default: stdio)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=defaults.host,
        help=f"Bind address for HTTP/SSE (default: {defaults.host})",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=defaults.port,
        help=f"Port for HTTP/SSE (default: {defaults.port})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def serve(args: argparse.Namespace) -> int:
    """Run the server from parsed arguments."""
    setup_logging(logging.DEBUG if args.verbose else get_log_level())
    config = ServerConfig(
        transport=TransportType(args.transport),
        host=args.host,
        port=args.port,
    )
    try:
        run_server(config)
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for MCP server.

    Args:
        argv: Command line arguments (uses sys.argv if None).

    Returns:
        Exit code (0 for success).
    """
    return serve(build_parser().parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
