"""
Symbol name resolution.

Turns a bare symbol name (optionally with a file to look in first) into a
concrete location. The search order is fixed:

1. exact name match among the hint file's document symbols, walked
   depth-first with parents before children;
2. the first exact name match, in server order, among workspace symbols
   that carry a range;
3. SymbolNotFoundError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from core.exceptions import SymbolNotFoundError

from .client import LSPClient
from .types import PositionSpec, SymbolEntry, symbol_kind_name, uri_to_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSymbol:
    """Where a named symbol lives, in 1-indexed tool coordinates."""
    name: str
    kind: str
    path: Path
    position: PositionSpec


class SymbolResolver:
    """Resolves symbol names through an LSPClient."""

    def __init__(self, client: LSPClient):
        self.client = client

    async def resolve(self, name: str, file_hint: str | Path | None = None) -> ResolvedSymbol:
        """Find the location of a symbol by exact, case-sensitive name.

        Args:
            name: Symbol name
            file_hint: File to search before the workspace

        Returns:
            The resolved symbol

        Raises:
            SymbolNotFoundError: If neither search finds an exact match
            DocumentNotFoundError: If the hint file does not exist
        """
        if file_hint is not None:
            found = await self._search_document(name, file_hint)
            if found is not None:
                logger.debug("Resolved '%s' in %s", name, file_hint)
                return found

        found = await self._search_workspace(name)
        if found is not None:
            logger.debug("Resolved '%s' via workspace search: %s", name, found.path)
            return found

        raise SymbolNotFoundError(name, str(file_hint) if file_hint is not None else None)

    async def _search_document(self, name: str, file_path: str | Path) -> ResolvedSymbol | None:
        if not self.client.capabilities.supports("documentSymbolProvider"):
            logger.debug("Server has no document symbols, skipping file search for '%s'", name)
            return None

        for top_level in await self.client.document_symbols(file_path):
            for symbol in top_level.walk():
                if symbol.name == name and symbol.range is not None:
                    return _resolved(symbol, fallback_path=Path(file_path))
        return None

    async def _search_workspace(self, name: str) -> ResolvedSymbol | None:
        for symbol in await self.client.workspace_symbols(name):
            if symbol.name == name and symbol.range is not None and symbol.uri:
                return _resolved(symbol)
        return None


def _resolved(symbol: SymbolEntry, fallback_path: Path | None = None) -> ResolvedSymbol:
    path = uri_to_path(symbol.uri) if symbol.uri else fallback_path
    return ResolvedSymbol(
        name=symbol.name,
        kind=symbol_kind_name(symbol.kind),
        path=path,
        position=PositionSpec.from_lsp(symbol.position),
    )
