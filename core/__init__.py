"""
Core package.

Transport-agnostic pieces shared by the language server layer and the MCP
server layer: the exception hierarchy and system-wide constants.
"""

from .exceptions import (
    CapabilityNotSupportedError,
    CoreError,
    DocumentNotFoundError,
    InitializationError,
    InvalidOperationError,
    InvalidPositionError,
    InvalidToolArgumentsError,
    LSPError,
    LSPTimeoutError,
    NotFoundError,
    RequestFailedError,
    ServerExitedError,
    ServerResponseError,
    ServerStartError,
    SymbolNotFoundError,
    ToolExecutionError,
    ToolNotFoundError,
)

__all__ = [
    "CoreError",
    "NotFoundError",
    "InvalidOperationError",
    # Language server
    "LSPError",
    "ServerStartError",
    "ServerExitedError",
    "InitializationError",
    "LSPTimeoutError",
    "RequestFailedError",
    "ServerResponseError",
    "CapabilityNotSupportedError",
    # Documents and symbols
    "DocumentNotFoundError",
    "InvalidPositionError",
    "SymbolNotFoundError",
    # Tools
    "ToolNotFoundError",
    "ToolExecutionError",
    "InvalidToolArgumentsError",
]
