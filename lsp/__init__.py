"""
Language server session layer.

Spawns a language server, speaks JSON-RPC to it over stdio and exposes
typed navigation requests plus symbol name resolution.
"""

from .client import LSPClient
from .connection import LSPConnection, PendingRequest
from .documents import DocumentHandle, DocumentTracker
from .gateway import RequestGateway
from .resolver import ResolvedSymbol, SymbolResolver
from .session import ServerCapabilities, Session
from .types import (
    CallHierarchyCall,
    CallHierarchyItem,
    HoverResult,
    Location,
    Position,
    PositionSpec,
    Range,
    SymbolEntry,
    from_lsp_position,
    path_to_uri,
    to_lsp_position,
    uri_to_path,
)

__all__ = [
    "LSPClient",
    "LSPConnection",
    "PendingRequest",
    "DocumentHandle",
    "DocumentTracker",
    "RequestGateway",
    "ResolvedSymbol",
    "SymbolResolver",
    "ServerCapabilities",
    "Session",
    "CallHierarchyCall",
    "CallHierarchyItem",
    "HoverResult",
    "Location",
    "Position",
    "PositionSpec",
    "Range",
    "SymbolEntry",
    "from_lsp_position",
    "path_to_uri",
    "to_lsp_position",
    "uri_to_path",
]
