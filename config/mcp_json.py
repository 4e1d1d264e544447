"""Registration of the bridge in a project's .mcp.json."""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

from core.exceptions import InvalidOperationError

from .defaults import MCP_JSON_FILENAME, MCP_SERVER_COMMAND, MCP_SERVER_NAME

logger = logging.getLogger(__name__)


class MCPServerConfig(BaseModel):
    """An mcpServers entry: how an MCP client launches a server."""

    command: str = Field(description="Command to start the server")
    args: list[str] = Field(default_factory=list, description="Command arguments")
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )


def bridge_server_config() -> MCPServerConfig:
    """The entry MCP clients use to launch the bridge for the current project."""
    return MCPServerConfig(command=MCP_SERVER_COMMAND, args=["--workspace", "."])


def configure(directory: Path | None = None, name: str = MCP_SERVER_NAME) -> Path:
    """
    Add the bridge to <directory>/.mcp.json, creating the file if needed.

    Other configured servers and top-level keys are preserved. A non-object
    document or mcpServers member is replaced by an empty object.

    Args:
        directory: Project directory (defaults to current working directory)
        name: Key under mcpServers

    Returns:
        Path of the written file

    Raises:
        InvalidOperationError: If the file is not valid JSON or the server is
            already configured
        OSError: If the file cannot be written
    """
    directory = Path(directory) if directory is not None else Path.cwd()
    config_file = directory / MCP_JSON_FILENAME

    document: object = {}
    if config_file.exists():
        try:
            document = json.loads(config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidOperationError(f"failed to parse {config_file} - invalid JSON: {e}") from e

    if not isinstance(document, dict):
        document = {}
    servers = document.get("mcpServers")
    if not isinstance(servers, dict):
        servers = {}
        document["mcpServers"] = servers

    if name in servers:
        raise InvalidOperationError(
            f"{name} is already configured in {config_file}. "
            "Remove the existing entry to reconfigure."
        )

    servers[name] = bridge_server_config().model_dump(exclude_defaults=True)
    _write_atomic(config_file, json.dumps(document, indent=2) + "\n")
    logger.info("Added %s to %s", name, config_file)
    return config_file


def _write_atomic(path: Path, content: str) -> None:
    """Write to a temporary file in the same directory, then rename over path."""
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
