"""Tests for the command line entry point."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from scapekit.persistence import ScapePersistence
from scapekit.store import SQLiteScapeStore

pytestmark = pytest.mark.integration

REPO_ROOT = Path(__file__).resolve().parents[2]


def run_cli(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, ".", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        env=dict(os.environ),
        timeout=60,
    )


def test_no_command_prints_help():
    """Running without a command shows usage and fails."""
    result = run_cli()
    assert result.returncode == 1
    assert "validate" in result.stdout
    assert "mcp" in result.stdout


def test_widgets_lists_catalog():
    result = run_cli("widgets")
    assert result.returncode == 0
    assert "gallery-grid" in result.stdout
    assert "button-three" in result.stdout


def test_widgets_json():
    result = run_cli("widgets", "--json")
    catalog = json.loads(result.stdout)
    assert {"widget_types", "channels", "visibilities"} <= catalog.keys()
    assert "neutral" in catalog["channels"]


def test_validate_publishable_file(sample_scape_file):
    """A complete scape validates with exit code 0."""
    result = run_cli("validate", str(sample_scape_file), "--name-status", "unique")
    assert result.returncode == 0
    payload = json.loads(result.stdout)
    assert payload["can_publish"] is True


def test_validate_reports_taken_title(sample_scape_file):
    result = run_cli("validate", str(sample_scape_file), "--name-status", "taken")
    assert result.returncode == 1
    payload = json.loads(result.stdout)
    assert payload["can_save_draft"] is True
    assert payload["can_publish"] is False
    assert "Scape name is already taken" in payload["errors"]


def test_validate_missing_file(tmp_path):
    result = run_cli("validate", str(tmp_path / "nope.json"))
    assert result.returncode == 1
    assert "File not found" in result.stderr


def test_validate_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    result = run_cli("validate", str(path))
    assert result.returncode == 1
    assert "Invalid JSON" in result.stderr


async def test_scapes_lists_saved(scape_db_path, sample_draft):
    """scapes --user shows what the creator has saved."""
    store = SQLiteScapeStore(scape_db_path)
    store.initialize()
    try:
        await ScapePersistence(store).save(sample_draft, "creator-1")
    finally:
        store.close()

    result = run_cli("scapes", "--user", "creator-1", "--json")
    assert result.returncode == 0
    listing = json.loads(result.stdout)
    assert [s["title"] for s in listing] == ["Night Market"]
    assert listing[0]["widget_count"] == 3


def test_scapes_empty_user():
    result = run_cli("scapes", "--user", "nobody")
    assert result.returncode == 0
    assert "No scapes for nobody" in result.stdout


def test_env_lists_variables():
    result = run_cli("env")
    assert result.returncode == 0
    assert "SCAPE_DB_PATH" in result.stdout
    assert "SCAPE_TITLE_DEBOUNCE_MS" in result.stdout


def test_mcp_without_subcommand_prints_usage():
    result = run_cli("mcp")
    assert result.returncode == 1
    assert "MCP Server Commands" in result.stdout


def test_mcp_info():
    result = run_cli("mcp", "info")
    assert result.returncode == 0
    assert "Scapekit MCP Server" in result.stdout
    assert "Server name: scapekit" in result.stdout


def test_mcp_serve_help():
    result = run_cli("mcp", "serve", "--help")
    assert result.returncode == 0
    assert "--port" in result.stdout


def test_env_json_by_category(monkeypatch):
    monkeypatch.setenv("MCP_PORT", "9100")
    result = run_cli("env", "--category", "service", "--json")
    rows = {row["name"]: row for row in json.loads(result.stdout)}
    assert set(rows) == {"MCP_HOST", "MCP_PORT"}
    assert rows["MCP_PORT"]["value"] == 9100
