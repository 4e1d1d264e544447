"""
Type definitions and conversions for the language server layer.

Positions exist in two conventions: tools speak 1-indexed (line, column),
the LS protocol speaks 0-indexed (line, character). PositionSpec is the
1-indexed form; Position is the protocol form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from core.exceptions import DocumentNotFoundError, InvalidPositionError

# Extension to language ID mapping for textDocument/didOpen
EXTENSION_TO_LANGUAGE: dict[str, str] = {
    # Rust
    ".rs": "rust",
    # Python
    ".py": "python",
    ".pyi": "python",
    # TypeScript/JavaScript
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".jsx": "javascriptreact",
    ".mjs": "javascript",
    ".cjs": "javascript",
    # Go
    ".go": "go",
    # C/C++
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    # JVM
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    # Others
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".lua": "lua",
    ".zig": "zig",
    ".hs": "haskell",
    ".ml": "ocaml",
    ".ex": "elixir",
    ".exs": "elixir",
    ".toml": "toml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
}

# Files identified by name rather than extension
FILENAME_TO_LANGUAGE: dict[str, str] = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
}

# LSP SymbolKind -> display name
SYMBOL_KIND_NAMES: dict[int, str] = {
    1: "file",
    2: "module",
    3: "namespace",
    4: "package",
    5: "class",
    6: "method",
    7: "property",
    8: "field",
    9: "constructor",
    10: "enum",
    11: "interface",
    12: "function",
    13: "variable",
    14: "constant",
    15: "string",
    16: "number",
    17: "boolean",
    18: "array",
    19: "object",
    20: "key",
    21: "null",
    22: "enum_member",
    23: "struct",
    24: "event",
    25: "operator",
    26: "type_parameter",
}


# --- Protocol types (0-indexed) ---


@dataclass(frozen=True)
class Position:
    """0-based line and character position."""
    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(line=int(data.get("line", 0)), character=int(data.get("character", 0)))


@dataclass(frozen=True)
class Range:
    """Range with start and end positions."""
    start: Position
    end: Position

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "Range":
        return cls(
            start=Position.from_dict(data.get("start", {})),
            end=Position.from_dict(data.get("end", {})),
        )


@dataclass(frozen=True)
class Location:
    """A range inside a document identified by URI."""
    uri: str
    range: Range

    @property
    def path(self) -> Path:
        return uri_to_path(self.uri)

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        # LocationLink carries targetUri/targetSelectionRange instead
        if "targetUri" in data:
            range_data = data.get("targetSelectionRange") or data.get("targetRange", {})
            return cls(uri=data["targetUri"], range=Range.from_dict(range_data))
        return cls(uri=data["uri"], range=Range.from_dict(data.get("range", {})))


@dataclass(frozen=True)
class HoverResult:
    """Result of hover request."""
    contents: str
    range: Range | None = None


@dataclass
class SymbolEntry:
    """A DocumentSymbol or SymbolInformation, normalized.

    ``range`` is where the symbol's name sits: the selection range of a
    DocumentSymbol, the location range of a SymbolInformation. Workspace
    symbols may come back without a range, in which case it is None.
    """
    name: str
    kind: int
    uri: str | None = None
    range: Range | None = None
    container: str | None = None
    detail: str | None = None
    children: list["SymbolEntry"] = field(default_factory=list)

    @property
    def position(self) -> Position | None:
        return self.range.start if self.range else None

    @property
    def kind_name(self) -> str:
        return symbol_kind_name(self.kind)

    def walk(self) -> Iterator["SymbolEntry"]:
        """Depth-first, pre-order: a symbol comes before its children."""
        yield self
        for child in self.children:
            yield from child.walk()

    @classmethod
    def from_dict(cls, data: dict, uri: str | None = None) -> "SymbolEntry":
        if "location" in data:
            location = data["location"] or {}
            range_data = location.get("range")
            return cls(
                name=data.get("name", ""),
                kind=int(data.get("kind", 0)),
                uri=location.get("uri", uri),
                range=Range.from_dict(range_data) if range_data else None,
                container=data.get("containerName") or None,
            )

        range_data = data.get("selectionRange") or data.get("range")
        return cls(
            name=data.get("name", ""),
            kind=int(data.get("kind", 0)),
            uri=uri,
            range=Range.from_dict(range_data) if range_data else None,
            detail=data.get("detail") or None,
            children=[cls.from_dict(child, uri) for child in data.get("children") or []],
        )


@dataclass(frozen=True)
class CallHierarchyItem:
    """A call hierarchy item; ``raw`` is sent back verbatim to the server."""
    name: str
    kind: int
    uri: str
    range: Range
    selection_range: Range
    detail: str | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def kind_name(self) -> str:
        return symbol_kind_name(self.kind)

    @classmethod
    def from_dict(cls, data: dict) -> "CallHierarchyItem":
        return cls(
            name=data.get("name", ""),
            kind=int(data.get("kind", 0)),
            uri=data.get("uri", ""),
            range=Range.from_dict(data.get("range", {})),
            selection_range=Range.from_dict(data.get("selectionRange") or data.get("range", {})),
            detail=data.get("detail") or None,
            raw=data,
        )


@dataclass(frozen=True)
class CallHierarchyCall:
    """An incoming or outgoing call: the other end and the call sites."""
    item: CallHierarchyItem
    from_ranges: list[Range] = field(default_factory=list)


# --- Tool-facing types (1-indexed) ---


@dataclass(frozen=True)
class PositionSpec:
    """1-indexed line and column as given by tool callers."""
    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 1 or self.column < 1:
            raise InvalidPositionError(self.line, self.column)

    def to_lsp(self) -> Position:
        return Position(line=self.line - 1, character=self.column - 1)

    @classmethod
    def from_lsp(cls, position: Position) -> "PositionSpec":
        return cls(line=position.line + 1, column=position.character + 1)


def to_lsp_position(line: int, column: int) -> Position:
    """Convert a 1-indexed (line, column) to a protocol Position.

    Raises:
        InvalidPositionError: If line or column is below 1
    """
    return PositionSpec(line, column).to_lsp()


def from_lsp_position(position: Position) -> tuple[int, int]:
    """Convert a protocol Position to a 1-indexed (line, column) pair."""
    spec = PositionSpec.from_lsp(position)
    return spec.line, spec.column


# --- Paths and URIs ---


def path_to_uri(path: str | Path, strict: bool = True) -> str:
    """Convert a path to a canonical file:// URI.

    The path is made absolute and symlinks are resolved, so the same file
    always maps to the same URI.

    Args:
        path: File path, absolute or relative to the current directory
        strict: Require the path to exist

    Raises:
        DocumentNotFoundError: If strict and the path does not exist
    """
    try:
        canonical = Path(path).expanduser().resolve(strict=strict)
    except (OSError, RuntimeError) as e:
        raise DocumentNotFoundError(str(path), str(e)) from e
    return canonical.as_uri()


def uri_to_path(uri: str) -> Path:
    """Convert a file:// URI to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme and parsed.scheme != "file":
        return Path(uri)
    return Path(url2pathname(unquote(parsed.path)))


def display_path(uri: str) -> str:
    """Filesystem path for file URIs, the URI itself otherwise."""
    if uri.startswith("file://"):
        return str(uri_to_path(uri))
    return uri


# --- Utility functions ---


def get_language_id(path: str | Path) -> str:
    """Get the LSP language ID for a file, "plaintext" when unknown."""
    path = Path(path)
    if path.name in FILENAME_TO_LANGUAGE:
        return FILENAME_TO_LANGUAGE[path.name]
    return EXTENSION_TO_LANGUAGE.get(path.suffix.lower(), "plaintext")


def symbol_kind_name(kind: int | None) -> str:
    return SYMBOL_KIND_NAMES.get(kind or 0, "unknown")


def parse_locations(result: Any) -> list[Location]:
    """Normalize a definition-style response to a list of Locations.

    The response can be null, a single Location, a Location[] or a
    LocationLink[].
    """
    if result is None:
        return []
    if isinstance(result, dict):
        result = [result]
    if not isinstance(result, list):
        return []
    return [Location.from_dict(item) for item in result if isinstance(item, dict)]


def parse_symbols(result: Any, uri: str | None = None) -> list[SymbolEntry]:
    """Normalize a documentSymbol or workspace/symbol response."""
    if not isinstance(result, list):
        return []
    return [SymbolEntry.from_dict(item, uri) for item in result if isinstance(item, dict)]


def parse_calls(result: Any, direction: str) -> list[CallHierarchyCall]:
    """Parse callHierarchy/incomingCalls or outgoingCalls.

    Args:
        result: The raw response
        direction: "from" for incoming calls, "to" for outgoing calls
    """
    if not isinstance(result, list):
        return []
    calls = []
    for entry in result:
        if not isinstance(entry, dict) or not isinstance(entry.get(direction), dict):
            continue
        calls.append(
            CallHierarchyCall(
                item=CallHierarchyItem.from_dict(entry[direction]),
                from_ranges=[Range.from_dict(r) for r in entry.get("fromRanges") or []],
            )
        )
    return calls


def parse_hover_contents(contents: Any) -> str:
    """Parse hover contents from the various LSP formats.

    LSP hover contents can be:
    - string: Plain text
    - MarkupContent: {kind: "plaintext"|"markdown", value: string}
    - MarkedString: {language: string, value: string} or string
    - MarkedString[]: Array of the above

    Returns:
        Formatted string representation
    """
    if contents is None:
        return ""

    if isinstance(contents, str):
        return contents

    if isinstance(contents, dict):
        value = contents.get("value", "")
        language = contents.get("language", "")
        if language:
            return f"```{language}\n{value}\n```"
        return value

    if isinstance(contents, list):
        parts = [parse_hover_contents(item) for item in contents]
        return "\n\n".join(part for part in parts if part)

    return str(contents)
