"""
Tool registry.

Each MCP tool is declared once here: its name, a description for the model
calling it, the pydantic model its arguments are validated against, and
the name of the ToolRouter coroutine that handles it. The registry is
checked against the router when the router is built.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.constants import DEFAULT_MAX_RESULTS


# --- Symbol queries ---


@dataclass(frozen=True)
class PositionQuery:
    """A symbol identified by file and 1-indexed position."""
    file_path: str
    line: int
    column: int


@dataclass(frozen=True)
class NameQuery:
    """A symbol identified by name, optionally searched in a file first."""
    symbol: str
    file_path: str | None = None


SymbolQuery = PositionQuery | NameQuery


# --- Parameter models ---


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SymbolQueryParams(ToolParams):
    """Either a position ({file_path, line, column}) or a name ({symbol, file_path?})."""

    file_path: str | None = Field(
        default=None,
        description="Path to the source file, absolute or relative to the workspace root",
    )
    # ge=0 lets 0 through so the position check reports it as an invalid position
    line: int | None = Field(default=None, ge=0, description="Line number (1-indexed)")
    column: int | None = Field(default=None, ge=0, description="Column number (1-indexed)")
    symbol: str | None = Field(
        default=None,
        min_length=1,
        description="Symbol name to look up instead of giving a position",
    )

    @model_validator(mode="after")
    def check_single_variant(self) -> "SymbolQueryParams":
        has_position = self.line is not None or self.column is not None
        if self.symbol is not None:
            if has_position:
                raise ValueError("give either 'symbol' or 'line'/'column', not both")
        elif self.file_path is None or self.line is None or self.column is None:
            raise ValueError("give 'file_path', 'line' and 'column', or 'symbol'")
        return self

    def to_query(self) -> SymbolQuery:
        if self.symbol is not None:
            return NameQuery(symbol=self.symbol, file_path=self.file_path)
        return PositionQuery(file_path=self.file_path, line=self.line, column=self.column)


class FindReferencesParams(SymbolQueryParams):
    include_declaration: bool = Field(
        default=False,
        description="Whether to include the declaration in the results",
    )


class DocumentSymbolsParams(ToolParams):
    file_path: str = Field(description="Path to the source file to list symbols from")


class WorkspaceSymbolsParams(ToolParams):
    query: str = Field(description="Query string to search for symbols across the workspace")
    max_results: int = Field(
        default=DEFAULT_MAX_RESULTS,
        ge=0,
        description="Maximum number of results to return",
    )


# --- Registry ---


@dataclass(frozen=True)
class ToolSpec:
    """Declaration of one tool."""
    name: str
    description: str
    params_model: type[ToolParams]
    handler: str

    def input_schema(self) -> dict:
        return self.params_model.model_json_schema()


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="goto_definition",
            description="Jump to where a symbol is defined. Essential for tracing imports and understanding implementations.",
            params_model=SymbolQueryParams,
            handler="goto_definition",
        ),
        ToolSpec(
            name="find_references",
            description="Find all usages of a symbol. Reveals dependencies, call sites, and impact of changes.",
            params_model=FindReferencesParams,
            handler="find_references",
        ),
        ToolSpec(
            name="hover",
            description="Get type signature and docs. Quick way to understand what something is without navigating away.",
            params_model=SymbolQueryParams,
            handler="hover",
        ),
        ToolSpec(
            name="document_symbols",
            description="List all symbols in a file. Get a structural overview: functions, types, constants, etc.",
            params_model=DocumentSymbolsParams,
            handler="document_symbols",
        ),
        ToolSpec(
            name="workspace_symbols",
            description="Search symbols by name across the workspace. Find types, functions, or modules without knowing their location.",
            params_model=WorkspaceSymbolsParams,
            handler="workspace_symbols",
        ),
        ToolSpec(
            name="incoming_calls",
            description="Find callers of a function. Build upward call graphs, trace who depends on this code.",
            params_model=SymbolQueryParams,
            handler="incoming_calls",
        ),
        ToolSpec(
            name="outgoing_calls",
            description="Find callees of a function. Build downward call graphs, trace execution flow.",
            params_model=SymbolQueryParams,
            handler="outgoing_calls",
        ),
        ToolSpec(
            name="implementations",
            description="Find trait/interface implementations. Discover concrete types, understand polymorphism.",
            params_model=SymbolQueryParams,
            handler="implementations",
        ),
        ToolSpec(
            name="type_definition",
            description="Jump to a symbol's type definition. Understand what type a variable or expression has.",
            params_model=SymbolQueryParams,
            handler="type_definition",
        ),
    )
}


def validate_registry(registry: dict[str, ToolSpec], handler_owner: type) -> None:
    """Check every entry is well-formed and bound to an async handler.

    Args:
        registry: Tool name to spec mapping
        handler_owner: Class that must define each spec's handler coroutine

    Raises:
        ValueError: On the first malformed entry
    """
    for name, spec in registry.items():
        if name != spec.name:
            raise ValueError(f"tool registered as '{name}' is named '{spec.name}'")
        if not spec.description:
            raise ValueError(f"tool '{name}' has no description")
        if not (isinstance(spec.params_model, type) and issubclass(spec.params_model, BaseModel)):
            raise ValueError(f"tool '{name}' parameters are not a pydantic model")
        handler = getattr(handler_owner, spec.handler, None)
        if handler is None or not inspect.iscoroutinefunction(handler):
            raise ValueError(f"tool '{name}' has no async handler '{spec.handler}'")
