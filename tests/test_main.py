"""
Tests for the command-line entry point.
"""

from unittest.mock import AsyncMock, patch

from core.exceptions import ServerStartError
from main import EXIT_BAD_CONFIG, EXIT_FAILURE, EXIT_OK, build_parser, cli


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.command is None
        assert args.workspace is None
        assert args.language_server is None
        assert args.language_server_args is None

    def test_repeated_server_args(self):
        args = build_parser().parse_args([
            "-l", "pyright-langserver",
            "--language-server-args=--stdio",
            "--language-server-args=--verbose",
            "serve",
        ])

        assert args.command == "serve"
        assert args.language_server == "pyright-langserver"
        assert args.language_server_args == ["--stdio", "--verbose"]

    def test_config_directory(self):
        args = build_parser().parse_args(["config", "--directory", "/tmp/project"])

        assert args.command == "config"
        assert args.directory == "/tmp/project"


class TestCli:
    """Test exit codes."""

    def test_config_creates_file(self, tmp_path, capsys):
        assert cli(["config", "--directory", str(tmp_path)]) == EXIT_OK

        assert (tmp_path / ".mcp.json").exists()
        assert "Created" in capsys.readouterr().out

    def test_config_twice_fails(self, tmp_path):
        cli(["config", "--directory", str(tmp_path)])

        assert cli(["config", "--directory", str(tmp_path)]) == EXIT_FAILURE

    def test_invalid_settings(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert cli(["--workspace", str(tmp_path), "--request-timeout", "-1"]) == EXIT_BAD_CONFIG

    def test_serve_runs_with_loaded_settings(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LSP_BRIDGE_SERVER", raising=False)
        serve = AsyncMock()

        with patch("main.serve", serve):
            code = cli(["--workspace", str(tmp_path), "-l", "clangd", "--init-timeout", "12"])

        assert code == EXIT_OK
        [settings] = serve.await_args.args
        assert settings.language_server == "clangd"
        assert settings.init_timeout == 12.0
        assert settings.workspace == tmp_path

    def test_serve_startup_failure(self, tmp_path):
        with patch("main.serve", AsyncMock(side_effect=ServerStartError("not found"))):
            assert cli(["--workspace", str(tmp_path)]) == EXIT_FAILURE
