"""
Tool dispatch.

ToolRouter validates tool arguments, resolves the symbol query to a file
and position, runs the navigation request and renders the result as text.
It is the error boundary for tool calls: any CoreError becomes a failed
ToolResult and the session keeps serving.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from core.constants import CONTEXT_LINES
from core.exceptions import CoreError, InvalidToolArgumentsError, ToolNotFoundError
from lsp.client import LSPClient
from lsp.resolver import SymbolResolver
from lsp.session import Session
from lsp.types import Position, to_lsp_position

from .formatting import (
    format_calls,
    format_document_symbols,
    format_locations,
    format_workspace_symbols,
)
from .logging_config import log_timing
from .tools import (
    TOOLS,
    DocumentSymbolsParams,
    FindReferencesParams,
    NameQuery,
    SymbolQueryParams,
    ToolSpec,
    WorkspaceSymbolsParams,
    validate_registry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call."""
    success: bool
    text: str


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        message = detail.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class ToolRouter:
    """Routes MCP tool calls to navigation requests on one Session."""

    def __init__(
        self,
        session: Session,
        registry: dict[str, ToolSpec] | None = None,
        context_lines: int = CONTEXT_LINES,
    ):
        self.session = session
        self.client = LSPClient(session)
        self.resolver = SymbolResolver(self.client)
        self.registry = TOOLS if registry is None else registry
        self.context_lines = context_lines
        validate_registry(self.registry, type(self))

    def list_tools(self) -> list[ToolSpec]:
        return list(self.registry.values())

    async def call(self, name: str, arguments: dict | None) -> ToolResult:
        """Run a tool by name.

        Args:
            name: Registered tool name
            arguments: Raw tool arguments

        Returns:
            ToolResult; success is False for unknown tools, invalid arguments
            and any navigation failure
        """
        try:
            spec = self.registry.get(name)
            if spec is None:
                raise ToolNotFoundError(name)
            try:
                params = spec.params_model.model_validate(arguments or {})
            except ValidationError as e:
                raise InvalidToolArgumentsError(name, _summarize_validation_error(e)) from e

            handler = getattr(self, spec.handler)
            with log_timing(logger, f"Tool {name}"):
                text = await handler(params)
        except CoreError as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolResult(success=False, text=f"{name} failed: {e}")

        return ToolResult(success=True, text=text)

    # --- Query resolution ---

    def _resolve_path(self, file_path: str) -> Path:
        """Absolute path; relative paths are taken from the workspace root."""
        path = Path(file_path).expanduser()
        if not path.is_absolute():
            path = self.session.workspace_root / path
        return path

    async def _resolve_query(self, params: SymbolQueryParams) -> tuple[Path, Position]:
        query = params.to_query()
        if isinstance(query, NameQuery):
            hint = self._resolve_path(query.file_path) if query.file_path else None
            resolved = await self.resolver.resolve(query.symbol, hint)
            return resolved.path, resolved.position.to_lsp()
        return self._resolve_path(query.file_path), to_lsp_position(query.line, query.column)

    # --- Handlers ---

    async def goto_definition(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        locations = await self.client.definition(file_path, position)
        return format_locations(locations, self.context_lines)

    async def find_references(self, params: FindReferencesParams) -> str:
        file_path, position = await self._resolve_query(params)
        locations = await self.client.references(file_path, position, params.include_declaration)
        return format_locations(locations, self.context_lines)

    async def hover(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        result = await self.client.hover(file_path, position)
        if result is None:
            return "No hover information available."
        return result.contents

    async def document_symbols(self, params: DocumentSymbolsParams) -> str:
        symbols = await self.client.document_symbols(self._resolve_path(params.file_path))
        if not symbols:
            return "No symbols found in document."
        return format_document_symbols(symbols)

    async def workspace_symbols(self, params: WorkspaceSymbolsParams) -> str:
        symbols = await self.client.workspace_symbols(params.query)
        symbols = symbols[: params.max_results]
        if not symbols:
            return f"No symbols found matching '{params.query}'."
        return format_workspace_symbols(symbols)

    async def incoming_calls(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        items = await self.client.prepare_call_hierarchy(file_path, position)
        calls = await self.client.incoming_calls(items[0]) if items else []
        if not calls:
            return "No incoming calls found."
        return format_calls(calls)

    async def outgoing_calls(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        items = await self.client.prepare_call_hierarchy(file_path, position)
        calls = await self.client.outgoing_calls(items[0]) if items else []
        if not calls:
            return "No outgoing calls found."
        return format_calls(calls)

    async def implementations(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        locations = await self.client.implementations(file_path, position)
        return format_locations(locations, self.context_lines)

    async def type_definition(self, params: SymbolQueryParams) -> str:
        file_path, position = await self._resolve_query(params)
        locations = await self.client.type_definition(file_path, position)
        return format_locations(locations, self.context_lines)
