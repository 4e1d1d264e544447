"""
Tests for settings loading.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from config import (
    DEFAULT_SETTINGS,
    BridgeSettings,
    env_overrides,
    load_config_file,
    load_settings,
    merge_configs,
    strip_jsonc_comments,
)


class TestStripJSONComments:
    """Test JSONC comment stripping."""

    def test_single_line_comments(self):
        """Test that single-line comments are stripped."""
        jsonc = """
        {
            // The server to run
            "language_server": "pyright-langserver"
        }
        """
        assert json.loads(strip_jsonc_comments(jsonc)) == {"language_server": "pyright-langserver"}

    def test_multi_line_and_trailing_comments(self):
        """Test that block and trailing comments are stripped."""
        jsonc = """
        {
            /* Timeouts
               in seconds */
            "init_timeout": 60,  // slow indexing
            "request_timeout": 5
        }
        """
        assert json.loads(strip_jsonc_comments(jsonc)) == {"init_timeout": 60, "request_timeout": 5}

    def test_comment_markers_inside_strings_survive(self):
        """Test that // and /* inside string values are not treated as comments."""
        jsonc = '{"url": "http://example.com/a", "glob": "src/*.rs", "quote": "say \\"//hi\\""}'

        data = json.loads(strip_jsonc_comments(jsonc))

        assert data == {"url": "http://example.com/a", "glob": "src/*.rs", "quote": 'say "//hi"'}


class TestConfigFiles:
    """Test reading individual config files."""

    def test_missing_file(self, tmp_path):
        assert load_config_file(tmp_path / "absent.jsonc") is None

    def test_invalid_json_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        assert load_config_file(path) is None

    def test_non_object_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")

        assert load_config_file(path) is None

    def test_plain_json_is_not_comment_stripped(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"language_server": "clangd" // no comments in .json\n}')

        assert load_config_file(path) is None

    def test_merge_is_deep(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        merged = merge_configs(base, {"a": {"y": 3}, "c": 4})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
        assert base == {"a": {"x": 1, "y": 2}, "b": 1}


class TestEnvironment:
    """Test environment variable overrides."""

    def test_all_variables(self):
        environ = {
            "LSP_BRIDGE_SERVER": "gopls",
            "LSP_BRIDGE_SERVER_ARGS": "serve --mode 'stdio only'",
            "LSP_BRIDGE_INIT_TIMEOUT": "45",
            "LSP_BRIDGE_REQUEST_TIMEOUT": "2.5",
            "LOG_LEVEL": "debug",
        }

        assert env_overrides(environ) == {
            "language_server": "gopls",
            "language_server_args": ["serve", "--mode", "stdio only"],
            "init_timeout": "45",
            "request_timeout": "2.5",
            "log_level": "debug",
        }

    def test_empty_values_ignored(self):
        assert env_overrides({"LSP_BRIDGE_SERVER": "", "HOME": "/root"}) == {}


class TestLoadSettings:
    """Test precedence across all sources."""

    @pytest.fixture
    def no_global(self, tmp_path) -> Path:
        return tmp_path / "no-global.jsonc"

    def test_defaults(self, tmp_path, no_global):
        settings = load_settings(workspace=tmp_path, environ={}, global_config_path=no_global)

        assert settings.workspace == tmp_path
        assert settings.language_server == DEFAULT_SETTINGS["language_server"]
        assert settings.language_server_args == []
        assert settings.init_timeout == 30.0
        assert settings.request_timeout == 10.0
        assert settings.context_lines == 2
        assert settings.log_level == "INFO"

    def test_global_then_project_then_env_then_overrides(self, tmp_path):
        global_path = tmp_path / "global.jsonc"
        global_path.write_text('{"language_server": "global-ls", "init_timeout": 5, "context_lines": 4}')
        workspace = tmp_path / "project"
        workspace.mkdir()
        (workspace / ".lsp-bridge.jsonc").write_text(
            '{\n  // project choice\n  "language_server": "project-ls",\n  "request_timeout": 3\n}'
        )

        settings = load_settings(
            workspace=workspace,
            overrides={"request_timeout": 1.5, "log_level": None},
            environ={"LSP_BRIDGE_INIT_TIMEOUT": "7", "LOG_LEVEL": "warn"},
            global_config_path=global_path,
        )

        assert settings.language_server == "project-ls"
        assert settings.context_lines == 4
        assert settings.init_timeout == 7.0
        assert settings.request_timeout == 1.5
        assert settings.log_level == "WARNING"

    def test_jsonc_project_file_wins_over_json(self, tmp_path, no_global):
        (tmp_path / ".lsp-bridge.jsonc").write_text('{"language_server": "from-jsonc"}')
        (tmp_path / ".lsp-bridge.json").write_text('{"language_server": "from-json"}')

        settings = load_settings(workspace=tmp_path, environ={}, global_config_path=no_global)

        assert settings.language_server == "from-jsonc"

    def test_unknown_keys_ignored(self, tmp_path, no_global):
        (tmp_path / ".lsp-bridge.json").write_text('{"theme": "dark", "context_lines": 0}')

        settings = load_settings(workspace=tmp_path, environ={}, global_config_path=no_global)

        assert settings.context_lines == 0

    def test_invalid_timeout_rejected(self, tmp_path, no_global):
        with pytest.raises(ValidationError):
            load_settings(
                workspace=tmp_path,
                overrides={"request_timeout": 0},
                environ={},
                global_config_path=no_global,
            )


class TestBridgeSettings:
    """Test the settings model."""

    @pytest.mark.parametrize("given, expected", [
        ("debug", "DEBUG"),
        ("Info", "INFO"),
        ("WARN", "WARNING"),
        ("trace", "DEBUG"),
        ("error", "ERROR"),
    ])
    def test_log_level_normalized(self, given, expected):
        assert BridgeSettings(log_level=given).log_level == expected

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            BridgeSettings(log_level="verbose")

    def test_empty_language_server_rejected(self):
        with pytest.raises(ValidationError):
            BridgeSettings(language_server="")
