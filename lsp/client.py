"""
Navigation requests over a Session.

Every method opens the target document if needed, checks the server
advertised the matching capability, sends one request through the gateway
and returns parsed results.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from core.exceptions import RequestFailedError

from .session import Session
from .types import (
    CallHierarchyCall,
    CallHierarchyItem,
    HoverResult,
    Location,
    Position,
    Range,
    SymbolEntry,
    parse_calls,
    parse_hover_contents,
    parse_locations,
    parse_symbols,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse(method: str, parse: Callable[..., T], *args: Any) -> T:
    """Run a response parser, reporting a malformed result as a failed request."""
    try:
        return parse(*args)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("%s returned a malformed response: %r", method, e)
        raise RequestFailedError(method, f"malformed response: {e!r}") from e


class LSPClient:
    """Typed navigation requests for a single language server session."""

    def __init__(self, session: Session):
        self.session = session

    @property
    def capabilities(self):
        return self.session.capabilities

    async def _text_document_position(self, file_path: str | Path, position: Position) -> dict:
        uri = await self.session.documents.ensure_open(file_path)
        return {"textDocument": {"uri": uri}, "position": position.to_dict()}

    async def definition(self, file_path: str | Path, position: Position) -> list[Location]:
        """Send textDocument/definition request.

        Args:
            file_path: Path to source file
            position: 0-based protocol position

        Returns:
            List of definition locations (may be empty)
        """
        self.capabilities.require("definitionProvider", "textDocument/definition")
        params = await self._text_document_position(file_path, position)
        result = await self.session.gateway.request("textDocument/definition", params)
        return _parse("textDocument/definition", parse_locations, result)

    async def references(
        self,
        file_path: str | Path,
        position: Position,
        include_declaration: bool = False,
    ) -> list[Location]:
        """Send textDocument/references request.

        Args:
            file_path: Path to source file
            position: 0-based protocol position
            include_declaration: Whether to include the declaration itself

        Returns:
            List of reference locations
        """
        self.capabilities.require("referencesProvider", "textDocument/references")
        params = await self._text_document_position(file_path, position)
        params["context"] = {"includeDeclaration": include_declaration}
        result = await self.session.gateway.request("textDocument/references", params)
        return _parse("textDocument/references", parse_locations, result)

    async def hover(self, file_path: str | Path, position: Position) -> HoverResult | None:
        """Send textDocument/hover request.

        Returns:
            HoverResult or None if the server has nothing to show
        """
        self.capabilities.require("hoverProvider", "textDocument/hover")
        params = await self._text_document_position(file_path, position)
        result = await self.session.gateway.request("textDocument/hover", params)

        if not isinstance(result, dict):
            return None

        contents = parse_hover_contents(result.get("contents"))
        if not contents:
            return None

        hover_range = None
        if result.get("range"):
            hover_range = _parse("textDocument/hover", Range.from_dict, result["range"])
        return HoverResult(contents=contents, range=hover_range)

    async def document_symbols(self, file_path: str | Path) -> list[SymbolEntry]:
        """Get symbols defined in a document, hierarchical when the server nests them."""
        self.capabilities.require("documentSymbolProvider", "textDocument/documentSymbol")
        uri = await self.session.documents.ensure_open(file_path)
        result = await self.session.gateway.request(
            "textDocument/documentSymbol",
            {"textDocument": {"uri": uri}},
        )
        return _parse("textDocument/documentSymbol", parse_symbols, result, uri)

    async def workspace_symbols(self, query: str) -> list[SymbolEntry]:
        """Search for symbols across the workspace, in server order."""
        self.capabilities.require("workspaceSymbolProvider", "workspace/symbol")
        result = await self.session.gateway.request("workspace/symbol", {"query": query})
        return _parse("workspace/symbol", parse_symbols, result)

    async def prepare_call_hierarchy(
        self,
        file_path: str | Path,
        position: Position,
    ) -> list[CallHierarchyItem]:
        self.capabilities.require("callHierarchyProvider", "textDocument/prepareCallHierarchy")
        params = await self._text_document_position(file_path, position)
        result = await self.session.gateway.request("textDocument/prepareCallHierarchy", params)
        if not isinstance(result, list):
            return []
        return [
            _parse("textDocument/prepareCallHierarchy", CallHierarchyItem.from_dict, item)
            for item in result
            if isinstance(item, dict)
        ]

    async def incoming_calls(self, item: CallHierarchyItem) -> list[CallHierarchyCall]:
        self.capabilities.require("callHierarchyProvider", "callHierarchy/incomingCalls")
        result = await self.session.gateway.request("callHierarchy/incomingCalls", {"item": item.raw})
        return _parse("callHierarchy/incomingCalls", parse_calls, result, "from")

    async def outgoing_calls(self, item: CallHierarchyItem) -> list[CallHierarchyCall]:
        self.capabilities.require("callHierarchyProvider", "callHierarchy/outgoingCalls")
        result = await self.session.gateway.request("callHierarchy/outgoingCalls", {"item": item.raw})
        return _parse("callHierarchy/outgoingCalls", parse_calls, result, "to")

    async def implementations(self, file_path: str | Path, position: Position) -> list[Location]:
        """Send textDocument/implementation request."""
        self.capabilities.require("implementationProvider", "textDocument/implementation")
        params = await self._text_document_position(file_path, position)
        result = await self.session.gateway.request("textDocument/implementation", params)
        return _parse("textDocument/implementation", parse_locations, result)

    async def type_definition(self, file_path: str | Path, position: Position) -> list[Location]:
        """Send textDocument/typeDefinition request."""
        self.capabilities.require("typeDefinitionProvider", "textDocument/typeDefinition")
        params = await self._text_document_position(file_path, position)
        result = await self.session.gateway.request("textDocument/typeDefinition", params)
        return _parse("textDocument/typeDefinition", parse_locations, result)
