"""Unit tests for MCP server module.

Tests cover:
- Server configuration
- Server instance creation and tool registration
- Tool functionality without the protocol
- Tool calls through an in-memory MCP client
"""

import pytest

from scapekit.persistence import ScapeNotFoundError, ScapePersistence, StructuralValidationError
from scapekit.store import InMemoryScapeStore

from .lib import (
    SCAPE_TOOLS,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import build_parser, create_server, mcp
from .tools import (
    check_title,
    delete_scape,
    get_scape,
    list_scapes,
    list_widget_types,
    move_widget,
    publish_scape,
    save_scape,
    validate_scape,
)

EXPECTED_TOOLS = {
    "status",
    "list_widget_types",
    "validate_scape",
    "move_widget",
    "get_scape",
    "save_scape",
    "publish_scape",
    "check_title",
    "list_scapes",
    "delete_scape",
}


def _scape(title: str = "Night Drive", widget_ids: tuple[str, ...] = ("w1", "w2", "w3")) -> dict:
    return {
        "id": "new",
        "title": title,
        "widgets": [
            {"id": wid, "type": "text", "variant": "text-small", "position": i}
            for i, wid in enumerate(widget_ids)
        ],
    }


@pytest.fixture
def memory_persistence():
    store = InMemoryScapeStore()
    store.initialize()
    return ScapePersistence(store, require_unique_title=True)


# =============================================================================
# Configuration Tests
# =============================================================================


class TestServerConfig:
    """Tests for ServerConfig dataclass."""

    @pytest.mark.unit
    def test_default_config(self):
        """Default config has expected values."""
        config = ServerConfig()

        assert config.name == "scapekit"
        assert config.transport == TransportType.STDIO
        assert config.host == "0.0.0.0"
        assert config.port == 18080
        assert config.path == "/mcp"

    @pytest.mark.unit
    def test_config_reads_store_settings(self, monkeypatch, tmp_path):
        """Database path and title rule come from the scape settings."""
        monkeypatch.setenv("SCAPE_DB_PATH", str(tmp_path / "srv.db"))
        monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", "false")
        config = ServerConfig.from_env()

        assert config.db_path == tmp_path / "srv.db"
        assert config.require_unique_title is False

    @pytest.mark.unit
    def test_from_env(self, monkeypatch):
        """from_env reads host and port from the environment."""
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("MCP_PORT", "9100")
        config = ServerConfig.from_env(transport=TransportType.HTTP)

        assert config.transport == TransportType.HTTP
        assert (config.host, config.port) == ("127.0.0.1", 9100)

    @pytest.mark.unit
    def test_transport_from_string(self):
        """Transport can be created from string."""
        assert TransportType("stdio") == TransportType.STDIO
        assert TransportType("http") == TransportType.HTTP
        assert TransportType("sse") == TransportType.SSE

    @pytest.mark.unit
    def test_parser(self):
        """The server parser accepts transport, host and port."""
        args = build_parser().parse_args(["--transport", "http", "--port", "9000"])
        assert (args.transport, args.port, args.verbose) == ("http", 9000, False)

    @pytest.mark.unit
    def test_version_and_capabilities(self):
        """Version is semver-like and tools are advertised."""
        assert len(get_server_version().split(".")) >= 2
        assert get_server_capabilities()["tools"] is True


class TestServerInstance:
    """Tests for FastMCP server instance."""

    @pytest.mark.unit
    def test_create_server_returns_mcp(self):
        """create_server returns the module-level instance."""
        assert create_server() is mcp
        assert mcp.name == "scapekit"


# =============================================================================
# Tool Functionality Tests (no MCP protocol)
# =============================================================================


class TestDocumentTools:
    """Tests for stateless document tools."""

    @pytest.mark.unit
    def test_list_widget_types(self):
        """The catalog lists every widget type and channel."""
        result = list_widget_types()
        types = {entry["type"] for entry in result["widget_types"]}
        assert {"text", "image", "gallery", "button", "llm"} <= types
        assert result["channels"] == ["red", "green", "blue", "neutral"]

    @pytest.mark.unit
    def test_validate_publishable(self):
        """A titled scape with widgets can be published."""
        result = validate_scape(_scape())
        assert result["can_save_draft"] and result["can_publish"]

    @pytest.mark.unit
    def test_validate_taken_title(self):
        """A known-taken title blocks publishing."""
        result = validate_scape(_scape(), name_status="taken")
        assert result["can_save_draft"]
        assert not result["can_publish"]
        assert result["issues"][0]["code"] == "title_taken"

    @pytest.mark.unit
    def test_validate_bad_payload(self):
        """Unparseable scapes are reported, not raised."""
        bad = _scape()
        bad["widgets"][0]["type"] = "hologram"
        result = validate_scape(bad)
        assert result["is_valid"] is False
        assert result["issues"][0]["code"] == "schema_validation"

    @pytest.mark.unit
    def test_validate_without_positions(self):
        """Widgets sent without positions take them from list order."""
        scape = _scape()
        for widget in scape["widgets"]:
            del widget["position"]
        scape["widgets"][0]["position"] = 5
        result = validate_scape(scape)
        assert result["can_publish"]

    @pytest.mark.unit
    def test_move_widget(self):
        """Reordering returns the new order with dense positions."""
        result = move_widget(_scape(), 0, 2)
        assert [w["id"] for w in result["widgets"]] == ["w2", "w3", "w1"]
        assert [w["position"] for w in result["widgets"]] == [0, 1, 2]

    @pytest.mark.unit
    def test_move_widget_bad_payload(self):
        """Invalid scapes raise ValueError."""
        with pytest.raises(ValueError, match="Invalid scape"):
            move_widget({"widgets": "nope"}, 0, 1)


class TestScapeTools:
    """Tests for stored-scape tools against an in-memory store."""

    @pytest.mark.asyncio
    async def test_save_get_round_trip(self, memory_persistence):
        """A saved scape loads back for its creator."""
        saved = await save_scape(_scape(), "u1", persistence=memory_persistence)
        assert saved["scape"]["id"] == saved["scape_id"]
        loaded = await get_scape(saved["scape_id"], "u1", persistence=memory_persistence)
        assert [w["id"] for w in loaded["widgets"]] == ["w1", "w2", "w3"]

    @pytest.mark.asyncio
    async def test_publish_and_check_title(self, memory_persistence):
        """Published titles are reported as taken, except for the scape itself."""
        published = await publish_scape(
            _scape("Mix"), "u1", visibility="unlisted", persistence=memory_persistence
        )
        assert published["scape"]["is_draft"] is False
        assert published["scape"]["visibility"] == "unlisted"

        taken = await check_title("Mix", "u1", persistence=memory_persistence)
        assert taken["status"] == "taken"
        own = await check_title(
            "Mix", "u1", exclude_id=published["scape_id"], persistence=memory_persistence
        )
        assert own["status"] == "unique"
        blank = await check_title("  ", "u1", persistence=memory_persistence)
        assert blank["status"] == "unknown"

    @pytest.mark.asyncio
    async def test_publish_duplicate_refused(self, memory_persistence):
        """Publishing a second scape with a used title fails."""
        await save_scape(_scape("Mix"), "u1", persistence=memory_persistence)
        with pytest.raises(StructuralValidationError):
            await publish_scape(_scape("Mix"), "u1", persistence=memory_persistence)

    @pytest.mark.asyncio
    async def test_list_and_delete(self, memory_persistence):
        """Scapes are listed per creator and can be deleted by them."""
        saved = await save_scape(_scape(), "u1", persistence=memory_persistence)
        listing = await list_scapes("u1", persistence=memory_persistence)
        assert listing["count"] == 1

        await delete_scape(saved["scape_id"], "u1", persistence=memory_persistence)
        with pytest.raises(ScapeNotFoundError):
            await get_scape(saved["scape_id"], "u1", persistence=memory_persistence)


# =============================================================================
# MCP Protocol Integration Tests
# =============================================================================


@pytest.mark.mcp
class TestMCPProtocol:
    """Integration tests using the MCP client protocol."""

    @pytest.mark.asyncio
    async def test_client_can_list_tools(self, mcp_client):
        """All tools are registered."""
        tools = await mcp_client.list_tools()
        assert {t.name for t in tools} == EXPECTED_TOOLS
        assert set(SCAPE_TOOLS) == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_client_can_call_status(self, mcp_client, isolated_db):
        """status reports a healthy store at the configured path."""
        result = await mcp_client.call_tool("status", {})
        assert result.data["status"] == "healthy"
        assert result.data["store"]["path"] == str(isolated_db)
        assert "save_scape" in result.data["capabilities"]

    @pytest.mark.asyncio
    async def test_save_then_get(self, mcp_client):
        """Scapes saved through the server can be fetched again."""
        saved = await mcp_client.call_tool(
            "save_scape", {"scape": _scape(), "creator_id": "u1"}
        )
        scape_id = saved.data["scape_id"]
        fetched = await mcp_client.call_tool(
            "get_scape", {"scape_id": scape_id, "viewer_id": "u1"}
        )
        assert fetched.data["title"] == "Night Drive"

    @pytest.mark.asyncio
    async def test_get_missing_scape(self, mcp_client):
        """Unknown ids surface as tool errors."""
        with pytest.raises(Exception, match="not found"):
            await mcp_client.call_tool("get_scape", {"scape_id": "nonexistent-id"})
