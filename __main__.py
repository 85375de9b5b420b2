"""CLI entry point for scapekit.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from scapekit.config import (
    describe_environment,
    get_db_path,
    get_log_level,
    get_require_unique_title,
)
from scapekit.core import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Validate Command
# =============================================================================


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a scape JSON file and print the result."""
    from scapekit.mcp.tools import validate_scape

    path = Path(args.file)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.error(f"File not found: {path}")
        return 1
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}: {e}")
        return 1

    result = validate_scape(
        payload,
        name_status=args.name_status,
        require_unique_title=get_require_unique_title(),
    )
    print(json.dumps(result, indent=2))
    return 0 if result["is_valid"] else 1


# =============================================================================
# Widgets Command
# =============================================================================


def cmd_widgets(args: argparse.Namespace) -> int:
    """List widget types and variants."""
    from scapekit.mcp.tools import list_widget_types

    catalog = list_widget_types()
    if args.json:
        print(json.dumps(catalog, indent=2))
        return 0

    for entry in catalog["widget_types"]:
        print(f"{entry['type']:<8} {entry['name']} (channel priority {entry['channel_priority']})")
        for variant in entry["variants"]:
            print(f"    {variant['id']:<18} {variant['size']:<7} {variant['name']}")
    return 0


# =============================================================================
# Scapes Command
# =============================================================================


def cmd_scapes(args: argparse.Namespace) -> int:
    """List a creator's stored scapes."""
    from scapekit.persistence import ScapeError, close_persistence, get_persistence

    try:
        persistence = get_persistence(args.db)
        summaries = asyncio.run(persistence.list_user_scapes(args.user))
    except ScapeError as e:
        logger.error(str(e))
        return 1
    finally:
        close_persistence()

    if args.json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return 0

    if not summaries:
        print(f"No scapes for {args.user}")
        return 0
    for summary in summaries:
        state = "published" if summary.is_published else "draft"
        print(
            f"{summary.id}  {summary.title:<30} {state:<9} "
            f"{summary.visibility:<8} {summary.widget_count} widgets"
        )
    return 0


# =============================================================================
# Env Command
# =============================================================================


def cmd_env(args: argparse.Namespace) -> int:
    """Show configuration variables and their current values."""
    rows = describe_environment(args.category)
    if args.json:
        print(json.dumps(rows, indent=2, default=str))
        return 0

    for row in rows:
        marker = "*" if row["is_set"] else " "
        print(f"{marker} {row['name']:<28} {row['value']!s:<20} {row['description']}")
    print(f"\nDatabase: {get_db_path()}")
    print("(* set in environment)")
    return 0


# =============================================================================
# MCP Command
# =============================================================================


def handle_mcp_command(argv: list[str]) -> int:
    """Handle MCP server commands.

    Usage:
        python . mcp run              # Start in STDIO mode
        python . mcp serve            # Start in HTTP mode
        python . mcp serve --port 8080
        python . mcp info             # Show server info
    """
    if not argv:
        print("MCP Server Commands")
        print("\nUsage: python . mcp {command} [options]")
        print("\nCommands:")
        print("  run                 Start server in STDIO mode")
        print("  serve               Start server in HTTP mode")
        print("  info                Show server information")
        print("\nOptions for 'serve':")
        print("  --host HOST         Bind address (default: MCP_HOST)")
        print("  --port PORT         Port number (default: MCP_PORT)")
        print("  --transport TYPE    Transport: http or sse (default: http)")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    if subcommand == "run":
        from scapekit.mcp.server import build_parser, serve

        parser = build_parser(argparse.ArgumentParser(prog="python . mcp run"))
        args = parser.parse_args(subargs)
        args.transport = "stdio"
        return serve(args)

    if subcommand == "serve":
        from scapekit.mcp.server import build_parser, serve

        parser = build_parser(argparse.ArgumentParser(prog="python . mcp serve"))
        parser.set_defaults(transport="http")
        return serve(parser.parse_args(subargs))

    if subcommand == "info":
        from scapekit.mcp import get_server_capabilities, get_server_version, mcp

        print("Scapekit MCP Server")
        print("=" * 40)
        print(f"Version: {get_server_version()}")
        print("\nCapabilities:")
        for cap, enabled in get_server_capabilities().items():
            print(f"  {cap}: {'enabled' if enabled else 'disabled'}")
        print(f"\nServer name: {mcp.name}")
        return 0

    logger.error(f"Unknown mcp command: {subcommand}")
    return handle_mcp_command([])


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="python .",
        description="Scape composition engine tools",
    )
    subparsers = parser.add_subparsers(dest="command")

    validate_parser = subparsers.add_parser(
        "validate", help="Validate a scape JSON file"
    )
    validate_parser.add_argument("file", help="Path to scape JSON")
    validate_parser.add_argument(
        "--name-status",
        choices=["unknown", "checking", "unique", "taken"],
        default="unknown",
        help="Known title uniqueness (default: unknown)",
    )
    validate_parser.set_defaults(func=cmd_validate)

    widgets_parser = subparsers.add_parser("widgets", help="List widget types")
    widgets_parser.add_argument("--json", action="store_true", help="Print JSON")
    widgets_parser.set_defaults(func=cmd_widgets)

    scapes_parser = subparsers.add_parser("scapes", help="List a creator's scapes")
    scapes_parser.add_argument("--user", "-u", required=True, help="Creator id")
    scapes_parser.add_argument("--db", help="Database path (default: SCAPE_DB_PATH)")
    scapes_parser.add_argument("--json", action="store_true", help="Print JSON")
    scapes_parser.set_defaults(func=cmd_scapes)

    env_parser = subparsers.add_parser("env", help="Show configuration")
    env_parser.add_argument(
        "--category",
        choices=["store", "editor", "service", "logging"],
        help="Only show one category",
    )
    env_parser.add_argument("--json", action="store_true", help="Print JSON")
    env_parser.set_defaults(func=cmd_env)

    return parser


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) >= 2 and sys.argv[1] == "mcp":
        return handle_mcp_command(sys.argv[2:])

    parser = build_parser()
    args = parser.parse_args(sys.argv[1:])
    if not getattr(args, "func", None):
        parser.print_help()
        print("\n  mcp                 Run MCP server (python . mcp)")
        return 1

    setup_logging(get_log_level())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
