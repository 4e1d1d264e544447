"""
Language server session: spawn, handshake, shutdown.

A Session owns the language server process for its whole lifetime, the
connection to it, the request gateway, the server's capabilities and the
open-document tracker. There is one Session per running bridge and all tool
calls share it.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from core.constants import (
    CLIENT_NAME,
    CLIENT_VERSION,
    DEFAULT_INIT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
)
from core.exceptions import (
    CapabilityNotSupportedError,
    InitializationError,
    LSPError,
    LSPTimeoutError,
    ServerStartError,
)

from .connection import LSPConnection
from .documents import DocumentTracker
from .gateway import RequestGateway

logger = logging.getLogger(__name__)

# Every capability is declared without dynamic registration: the bridge
# never re-negotiates after initialize.
_STATIC = {"dynamicRegistration": False}

CLIENT_CAPABILITIES: dict[str, Any] = {
    "workspace": {
        "symbol": dict(_STATIC),
        "workspaceFolders": True,
        "configuration": True,
    },
    "textDocument": {
        "synchronization": {**_STATIC, "willSave": False, "willSaveWaitUntil": False, "didSave": False},
        "hover": {**_STATIC, "contentFormat": ["markdown", "plaintext"]},
        "definition": {**_STATIC, "linkSupport": False},
        "typeDefinition": {**_STATIC, "linkSupport": False},
        "implementation": {**_STATIC, "linkSupport": False},
        "references": dict(_STATIC),
        "documentSymbol": {**_STATIC, "hierarchicalDocumentSymbolSupport": True},
        "callHierarchy": dict(_STATIC),
    },
    "window": {"workDoneProgress": True},
}


@dataclass(frozen=True)
class ServerCapabilities:
    """Capabilities the server reported in its initialize response."""

    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict | None) -> "ServerCapabilities":
        return cls(raw=MappingProxyType(dict(data or {})))

    def supports(self, provider: str) -> bool:
        """Check a provider entry such as "hoverProvider".

        Providers are advertised as true or as an options object; absence,
        null and false mean unsupported.
        """
        value = self.raw.get(provider)
        return value is not None and value is not False

    def require(self, provider: str, method: str) -> None:
        if not self.supports(provider):
            raise CapabilityNotSupportedError(provider, method)


def build_initialize_params(workspace_root: Path) -> dict[str, Any]:
    """Parameters for the initialize request."""
    root_uri = workspace_root.as_uri()
    return {
        "processId": os.getpid(),
        "clientInfo": {"name": CLIENT_NAME, "version": CLIENT_VERSION},
        "rootUri": root_uri,
        "rootPath": str(workspace_root),
        "workspaceFolders": [{"uri": root_uri, "name": workspace_root.name or str(workspace_root)}],
        "capabilities": CLIENT_CAPABILITIES,
        "trace": "off",
    }


def _observe_notifications(connection: LSPConnection) -> None:
    """Log server notifications without surfacing them."""

    def on_diagnostics(params: dict) -> None:
        logger.debug(
            "Diagnostics for %s: %d item(s)",
            params.get("uri", "?"),
            len(params.get("diagnostics", [])),
        )

    def on_progress(params: dict) -> None:
        value = params.get("value") or {}
        logger.debug("Progress %s: %s %s", params.get("token"), value.get("kind", ""), value.get("message", ""))

    def on_log_message(params: dict) -> None:
        logger.debug("Server log: %s", params.get("message", ""))

    connection.on_notification("textDocument/publishDiagnostics", on_diagnostics)
    connection.on_notification("$/progress", on_progress)
    connection.on_notification("window/logMessage", on_log_message)


class Session:
    """A running, initialized language server."""

    def __init__(
        self,
        workspace_root: Path,
        process: asyncio.subprocess.Process,
        connection: LSPConnection,
        gateway: RequestGateway,
        capabilities: ServerCapabilities,
        server_info: dict | None = None,
    ):
        self.workspace_root = workspace_root
        self.process = process
        self.connection = connection
        self.gateway = gateway
        self.capabilities = capabilities
        self.server_info = server_info or {}
        self.documents = DocumentTracker(gateway)
        self._shut_down = False

    @classmethod
    async def create(
        cls,
        command: str,
        args: Sequence[str] = (),
        workspace_root: str | Path = ".",
        init_timeout: float = DEFAULT_INIT_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> "Session":
        """Spawn the language server and complete the handshake.

        Args:
            command: Language server executable
            args: Arguments for the executable
            workspace_root: Directory the server should index
            init_timeout: Seconds to wait for the initialize response
            request_timeout: Default seconds to wait for later requests

        Returns:
            A ready Session

        Raises:
            ServerStartError: If the root cannot be resolved or the process cannot be spawned
            LSPTimeoutError: If initialize does not answer within init_timeout
            InitializationError: If the initialize exchange fails
        """
        try:
            root = Path(workspace_root).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ServerStartError(f"cannot resolve workspace root '{workspace_root}': {e}") from e
        if not root.is_dir():
            raise ServerStartError(f"workspace root is not a directory: {root}")

        logger.info("Starting language server: %s %s", command, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,  # inherited, visible but not parsed
                cwd=root,
            )
        except OSError as e:
            raise ServerStartError(f"failed to spawn '{command}': {e}") from e

        if process.stdin is None or process.stdout is None:
            process.kill()
            await process.wait()
            raise ServerStartError("failed to capture process pipes")

        connection = LSPConnection(process=process, reader=process.stdout, writer=process.stdin)
        _observe_notifications(connection)
        connection.start()
        gateway = RequestGateway(connection, request_timeout)
        gateway.start()

        try:
            capabilities, server_info = await cls._handshake(gateway, root, init_timeout)
        except BaseException:
            # No partially initialized session survives
            await gateway.stop()
            await connection.close()
            raise

        logger.info(
            "Language server ready: %s %s (pid %s)",
            server_info.get("name", command),
            server_info.get("version", ""),
            process.pid,
        )
        return cls(root, process, connection, gateway, capabilities, server_info)

    @staticmethod
    async def _handshake(
        gateway: RequestGateway,
        root: Path,
        init_timeout: float,
    ) -> tuple[ServerCapabilities, dict]:
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            result = await gateway.request("initialize", build_initialize_params(root), timeout=init_timeout)
        except LSPTimeoutError:
            raise
        except LSPError as e:
            raise InitializationError(f"initialize request failed: {e}") from e

        if not isinstance(result, dict):
            raise InitializationError(f"initialize returned {result!r} instead of an InitializeResult")

        capabilities = ServerCapabilities.from_dict(result.get("capabilities"))

        try:
            await gateway.notify("initialized", {})
        except LSPError as e:
            raise InitializationError(f"initialized notification failed: {e}") from e

        logger.debug("Handshake completed in %.1fms", (loop.time() - started) * 1000)
        return capabilities, result.get("serverInfo") or {}

    @property
    def is_alive(self) -> bool:
        return not self._shut_down and not self.connection.is_closed

    async def shutdown(self) -> None:
        """Send shutdown and exit, then reap the process. Safe to call twice."""
        if self._shut_down:
            return
        self._shut_down = True

        try:
            await self.gateway.request("shutdown")
            await self.gateway.notify("exit")
        except LSPError as e:
            logger.warning("Language server did not shut down cleanly: %s", e)
        finally:
            await self.gateway.stop()
            await self.connection.close()
        logger.info("Language server stopped")

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    def __del__(self) -> None:
        # Dropped without shutdown(): do not leave an orphaned server behind
        process = getattr(self, "process", None)
        if process is None or process.returncode is not None:
            return
        try:
            process.kill()
        except (ProcessLookupError, RuntimeError):
            pass
