"""
Configuration module for the bridge.

Exports the settings model and the loading helpers.
"""

from .defaults import DEFAULT_SETTINGS, MCP_SERVER_NAME
from .loader import env_overrides, load_config_file, load_settings, merge_configs, strip_jsonc_comments
from .mcp_json import MCPServerConfig, bridge_server_config, configure
from .settings import BridgeSettings

__all__ = [
    # Constants
    "DEFAULT_SETTINGS",
    "MCP_SERVER_NAME",
    # Config models
    "BridgeSettings",
    "MCPServerConfig",
    # Loader functions
    "load_settings",
    "load_config_file",
    "merge_configs",
    "strip_jsonc_comments",
    "env_overrides",
    # .mcp.json
    "configure",
    "bridge_server_config",
]
