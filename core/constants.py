"""
Core constants for the bridge.

This module defines system-wide constants used across the codebase.
Following the style guide: no magic constants in code.
"""

# Identity reported to the language server and the MCP client
CLIENT_NAME = "lsp-bridge"
CLIENT_VERSION = "0.1.0"

# Language server timeouts (seconds)
DEFAULT_INIT_TIMEOUT = 30.0  # indexing servers can be slow to answer initialize
DEFAULT_REQUEST_TIMEOUT = 10.0
SHUTDOWN_GRACE_PERIOD = 2.0  # wait between terminate() and kill()

# Default language server
DEFAULT_LANGUAGE_SERVER = "rust-analyzer"

# Tool output
CONTEXT_LINES = 2  # source lines shown on each side of a location
DEFAULT_MAX_RESULTS = 50  # workspace_symbols truncation
