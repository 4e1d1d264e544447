"""
MCP server for the bridge.

Exposes language server navigation as MCP tools over stdio.
"""

from .app import create_server, serve
from .router import ToolResult, ToolRouter
from .tools import TOOLS, ToolSpec, validate_registry

__all__ = ["create_server", "serve", "ToolRouter", "ToolResult", "TOOLS", "ToolSpec", "validate_registry"]
