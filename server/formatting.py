"""Plain-text rendering of navigation results for tool responses."""

from __future__ import annotations

from pathlib import Path

from core.constants import CONTEXT_LINES
from lsp.types import (
    CallHierarchyCall,
    Location,
    SymbolEntry,
    display_path,
    from_lsp_position,
)

LOCATION_SEPARATOR = "\n\n---\n\n"
NO_RESULTS = "No results found."


def read_context_lines(path: Path, line: int, context: int = CONTEXT_LINES) -> str:
    """Render the lines around a 1-indexed line, marking the target with '>'.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8
    """
    lines = path.read_text(encoding="utf-8").splitlines()
    index = line - 1
    start = max(index - context, 0)
    end = min(index + context + 1, len(lines))

    rendered = []
    for line_num, text in enumerate(lines[start:end], start=start + 1):
        marker = ">" if line_num == line else " "
        rendered.append(f"{marker} {line_num:4} | {text}")
    return "\n".join(rendered)


def format_location(location: Location, context: int = CONTEXT_LINES) -> str:
    """``path:line:column`` followed by the surrounding source lines.

    Falls back to the header alone when the file cannot be read.
    """
    line, column = from_lsp_position(location.range.start)
    header = f"{display_path(location.uri)}:{line}:{column}"
    try:
        source = read_context_lines(location.path, line, context)
    except (OSError, UnicodeDecodeError):
        return header
    return f"{header}\n{source}" if source else header


def format_locations(locations: list[Location], context: int = CONTEXT_LINES) -> str:
    if not locations:
        return NO_RESULTS
    return LOCATION_SEPARATOR.join(format_location(loc, context) for loc in locations)


def format_document_symbols(symbols: list[SymbolEntry], indent: int = 0) -> str:
    """Indented outline, one ``[kind] name (line N)`` per symbol."""
    lines = []
    for symbol in symbols:
        line = from_lsp_position(symbol.position)[0] if symbol.position else "?"
        lines.append(f"{'  ' * indent}[{symbol.kind_name}] {symbol.name} (line {line})")
        if symbol.children:
            lines.append(format_document_symbols(symbol.children, indent + 1))
    return "\n".join(lines)


def format_workspace_symbols(symbols: list[SymbolEntry]) -> str:
    lines = []
    for symbol in symbols:
        container = f" (in {symbol.container})" if symbol.container else ""
        where = display_path(symbol.uri) if symbol.uri else "?"
        if symbol.position:
            where = f"{where}:{from_lsp_position(symbol.position)[0]}"
        lines.append(f"[{symbol.kind_name}] {symbol.name}{container} - {where}")
    return "\n".join(lines)


def format_calls(calls: list[CallHierarchyCall]) -> str:
    """One block per caller/callee with its call sites."""
    blocks = []
    for call in calls:
        item = call.item
        line, _ = from_lsp_position(item.selection_range.start)
        block = [f"[{item.kind_name}] {item.name} - {display_path(item.uri)}:{line}"]
        for call_range in call.from_ranges:
            site_line, site_column = from_lsp_position(call_range.start)
            block.append(f"  Call site: line {site_line}, column {site_column}")
        blocks.append("\n".join(block))
    return "\n\n".join(blocks)
