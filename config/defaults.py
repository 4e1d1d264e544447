"""Default configuration values."""

from core.constants import (
    CONTEXT_LINES,
    DEFAULT_INIT_TIMEOUT,
    DEFAULT_LANGUAGE_SERVER,
    DEFAULT_REQUEST_TIMEOUT,
)

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Config file locations
GLOBAL_CONFIG_PATH = "~/.config/lsp-bridge/config.jsonc"
PROJECT_CONFIG_NAMES = (".lsp-bridge.jsonc", ".lsp-bridge.json")

# Environment variable -> settings field
ENV_LANGUAGE_SERVER = "LSP_BRIDGE_SERVER"
ENV_LANGUAGE_SERVER_ARGS = "LSP_BRIDGE_SERVER_ARGS"
ENV_INIT_TIMEOUT = "LSP_BRIDGE_INIT_TIMEOUT"
ENV_REQUEST_TIMEOUT = "LSP_BRIDGE_REQUEST_TIMEOUT"
ENV_LOG_LEVEL = "LOG_LEVEL"

DEFAULT_SETTINGS = {
    "language_server": DEFAULT_LANGUAGE_SERVER,
    "language_server_args": [],
    "init_timeout": DEFAULT_INIT_TIMEOUT,
    "request_timeout": DEFAULT_REQUEST_TIMEOUT,
    "context_lines": CONTEXT_LINES,
    "log_level": DEFAULT_LOG_LEVEL,
}

# .mcp.json
MCP_JSON_FILENAME = ".mcp.json"
MCP_SERVER_NAME = "lsp-bridge"
MCP_SERVER_COMMAND = "lsp-bridge"
