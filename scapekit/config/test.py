"""Tests for configuration management."""

import logging
from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
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

# =============================================================================
# Resolution
# =============================================================================


class TestGetEnvironment:
    """override > environment > default."""

    @pytest.mark.unit
    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("SCAPE_TITLE_DEBOUNCE_MS", raising=False)
        assert get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS) == 500

    @pytest.mark.unit
    def test_override_beats_environment(self, monkeypatch):
        monkeypatch.setenv("SCAPE_TITLE_DEBOUNCE_MS", "900")
        assert get_environment(EnvVar.SCAPE_TITLE_DEBOUNCE_MS, override=10) == 10

    @pytest.mark.unit
    def test_environment_parsed_to_int(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", " 12345 ")
        result = get_environment(EnvVar.MCP_PORT)
        assert result == 12345
        assert isinstance(result, int)

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["true", "1", "yes", "ON", "Yes"])
    def test_truthy_words(self, monkeypatch, text):
        monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", text)
        assert get_environment(EnvVar.SCAPE_REQUIRE_UNIQUE_TITLE) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["false", "0", "no", "OFF", "No"])
    def test_falsy_words(self, monkeypatch, text):
        monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", text)
        assert get_environment(EnvVar.SCAPE_REQUIRE_UNIQUE_TITLE) is False

    @pytest.mark.unit
    def test_path_setting(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCAPE_DB_PATH", str(tmp_path / "x.db"))
        result = get_environment(EnvVar.SCAPE_DB_PATH)
        assert result == tmp_path / "x.db"
        assert isinstance(result, Path)


class TestInvalidValues:
    """Unusable environment text falls back to the default and is logged."""

    @pytest.mark.unit
    def test_unknown_bool_word(self, monkeypatch, caplog):
        monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", "maybe")
        with caplog.at_level(logging.WARNING, logger="scapekit.config.lib"):
            assert get_environment(EnvVar.SCAPE_REQUIRE_UNIQUE_TITLE) is True
        assert "SCAPE_REQUIRE_UNIQUE_TITLE" in caplog.text

    @pytest.mark.unit
    def test_non_numeric_port(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "not-a-number")
        assert get_environment(EnvVar.MCP_PORT) == 18080

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["0", "70000"])
    def test_port_out_of_range(self, monkeypatch, text):
        monkeypatch.setenv("MCP_PORT", text)
        assert get_environment(EnvVar.MCP_PORT) == 18080

    @pytest.mark.unit
    def test_negative_debounce_rejected(self, monkeypatch):
        monkeypatch.setenv("SCAPE_TITLE_DEBOUNCE_MS", "-20")
        assert get_title_debounce_seconds() == 0.5

    @pytest.mark.unit
    def test_unknown_log_level(self, monkeypatch, caplog):
        monkeypatch.setenv("SCAPE_LOG_LEVEL", "chatty")
        with caplog.at_level(logging.WARNING, logger="scapekit.config.lib"):
            assert get_log_level() == "INFO"
        assert "must be one of" in caplog.text

    @pytest.mark.unit
    def test_empty_path(self, monkeypatch):
        monkeypatch.setenv("SCAPE_DB_PATH", "  ")
        assert get_db_path() == Path("data/scapes.db")


class TestEnvConfigParse:
    """Direct parsing rules."""

    @pytest.mark.unit
    def test_bounded_int(self):
        config = EnvConfig("X", 5, int, minimum=1, maximum=9)
        assert config.parse("9") == 9
        with pytest.raises(ValueError):
            config.parse("10")

    @pytest.mark.unit
    def test_choices_upper_cased(self):
        config = EnvConfig("X", "A", str, choices=("A", "B"))
        assert config.parse(" b ") == "B"

    @pytest.mark.unit
    def test_unbounded_str_kept(self):
        assert EnvConfig("X", "", str).parse("127.0.0.1") == "127.0.0.1"


# =============================================================================
# Introspection
# =============================================================================


class TestIntrospection:
    @pytest.mark.unit
    def test_info_is_env_config(self):
        info = get_environment_info(EnvVar.SCAPE_TITLE_DEBOUNCE_MS)
        assert isinstance(info, EnvConfig)
        assert (info.name, info.default, info.var_type) == (
            "SCAPE_TITLE_DEBOUNCE_MS",
            500,
            int,
        )
        assert info.category == "editor"

    @pytest.mark.unit
    def test_list_all_and_by_category(self):
        assert list_environment_variables() == list(EnvVar)
        editor_vars = list_environment_variables("editor")
        assert EnvVar.SCAPE_REQUIRE_UNIQUE_TITLE in editor_vars
        assert EnvVar.MCP_PORT not in editor_vars

    @pytest.mark.unit
    def test_describe_environment(self, monkeypatch):
        """Rows show the resolved value and whether the variable is set."""
        monkeypatch.setenv("MCP_PORT", "9000")
        monkeypatch.delenv("MCP_HOST", raising=False)
        rows = {row["name"]: row for row in describe_environment("service")}

        assert set(rows) == {"MCP_HOST", "MCP_PORT"}
        assert rows["MCP_PORT"]["value"] == 9000
        assert rows["MCP_PORT"]["is_set"] is True
        assert rows["MCP_HOST"]["is_set"] is False
        assert rows["MCP_HOST"]["value"] == rows["MCP_HOST"]["default"]


# =============================================================================
# Typed getters
# =============================================================================


class TestTypedGetters:
    @pytest.mark.unit
    def test_db_path_default(self, monkeypatch):
        monkeypatch.delenv("SCAPE_DB_PATH", raising=False)
        assert get_db_path() == Path("data/scapes.db")

    @pytest.mark.unit
    def test_db_path_override(self, monkeypatch):
        monkeypatch.setenv("SCAPE_DB_PATH", "/tmp/env.db")
        assert get_db_path("/tmp/override.db") == Path("/tmp/override.db")

    @pytest.mark.unit
    def test_debounce_in_seconds(self, monkeypatch):
        monkeypatch.delenv("SCAPE_TITLE_DEBOUNCE_MS", raising=False)
        assert get_title_debounce_seconds() == 0.5
        assert get_title_debounce_seconds(override=0) == 0.0

    @pytest.mark.unit
    def test_require_unique_title(self, monkeypatch):
        monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", "no")
        assert get_require_unique_title() is False
        assert get_require_unique_title(override=True) is True

    @pytest.mark.unit
    def test_log_level(self, monkeypatch):
        monkeypatch.delenv("SCAPE_LOG_LEVEL", raising=False)
        assert get_log_level() == "INFO"
        assert get_log_level(override="debug") == "DEBUG"
