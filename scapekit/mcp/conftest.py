"""Pytest fixtures for MCP server tests.

This module provides:
- An isolated SQLite database per test for the global persistence
- Server and client fixtures for protocol testing
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastmcp import Client, FastMCP

from scapekit.persistence import ScapePersistence, close_persistence, get_persistence

# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point SCAPE_DB_PATH at a temporary file and reset the global store."""
    db_path = tmp_path / "scapes.db"
    monkeypatch.setenv("SCAPE_DB_PATH", str(db_path))
    close_persistence()
    yield db_path
    close_persistence()


@pytest.fixture
def persistence(isolated_db: Path) -> ScapePersistence:
    """Global persistence bound to the temporary database."""
    return get_persistence()


# =============================================================================
# Server Fixtures
# =============================================================================


@pytest.fixture
def mcp_server() -> FastMCP:
    """Create MCP server instance for testing."""
    from .server import create_server

    return create_server()


@pytest.fixture
async def mcp_client(
    mcp_server: FastMCP, isolated_db: Path
) -> AsyncGenerator[Client, None]:
    """Create connected MCP client for testing.

    Args:
        mcp_server: The MCP server instance.
        isolated_db: Temporary database for stored-scape tools.

    Yields:
        Connected Client instance for testing.
    """
    async with Client(mcp_server) as client:
        yield client
