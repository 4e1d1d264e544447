"""
MCP server setup: the tool registry served over stdio.
"""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from config import BridgeSettings
from core.constants import CLIENT_NAME, CLIENT_VERSION
from core.exceptions import ToolExecutionError
from lsp.session import Session
from server.logging_config import timed
from server.router import ToolRouter

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SERVER_INSTRUCTIONS = (
    "Semantic code navigation backed by a language server. Positions are "
    "1-indexed (line, column). Tools that take a position also accept "
    "{symbol, file_path?} to look a symbol up by exact name."
)


# =============================================================================
# MCP Server
# =============================================================================


def create_server(router: ToolRouter) -> Server:
    """Build an MCP server exposing every tool in the router's registry."""
    server = Server(CLIENT_NAME, version=CLIENT_VERSION, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
            for spec in router.list_tools()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        logger.info("call_tool: %s", name)
        result = await router.call(name, arguments)
        if not result.success:
            # The MCP server turns a raised exception into an isError result
            raise ToolExecutionError(name, result.text)
        return [TextContent(type="text", text=result.text)]

    return server


# =============================================================================
# Lifecycle
# =============================================================================


@timed("Language server startup", logging.INFO)
async def start_session(settings: BridgeSettings) -> Session:
    return await Session.create(
        settings.language_server,
        settings.language_server_args,
        settings.workspace,
        init_timeout=settings.init_timeout,
        request_timeout=settings.request_timeout,
    )


async def serve(settings: BridgeSettings) -> None:
    """Start the language server and serve MCP over stdio until stdin closes.

    Raises:
        LSPError: If the language server cannot be started or initialized
    """
    logger.info("Workspace: %s", settings.workspace)
    session = await start_session(settings)
    try:
        router = ToolRouter(session, context_lines=settings.context_lines)
        server = create_server(router)
        logger.info("Serving %d tools over stdio", len(router.list_tools()))
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await session.shutdown()
