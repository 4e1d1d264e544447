"""
JSON-RPC 2.0 connection to a language server over stdio.

Messages are framed with a Content-Length header. A background listener
task reads every inbound message and routes it: responses complete the
matching pending request, notifications go to registered handlers, and
requests from the server are answered immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from core.constants import SHUTDOWN_GRACE_PERIOD
from core.exceptions import (
    LSPTimeoutError,
    RequestFailedError,
    ServerExitedError,
    ServerResponseError,
)

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


@dataclass
class PendingRequest:
    """An outstanding request waiting for its correlated response."""
    request_id: int
    method: str
    issued_at: float
    deadline: float
    future: asyncio.Future = field(repr=False)


class LSPConnection:
    """JSON-RPC 2.0 connection over stdio with Content-Length framing.

    The connection itself does not serialize callers; RequestGateway is the
    only component that sends requests and notifications through it.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        self.process = process
        self.reader = reader
        self.writer = writer
        self._request_id = 0
        self._pending: dict[int, PendingRequest] = {}
        self._notification_handlers: dict[str, Callable[[dict], None]] = {}
        self._listener_task: asyncio.Task | None = None
        self._closed = False
        self._close_reason = "connection closed"

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_requests(self) -> list[PendingRequest]:
        return list(self._pending.values())

    def on_notification(self, method: str, handler: Callable[[dict], None]) -> None:
        """Register a handler for a notification method.

        Args:
            method: LSP notification method name (e.g., "textDocument/publishDiagnostics")
            handler: Callback function that receives the params dict
        """
        self._notification_handlers[method] = handler

    def start(self) -> None:
        """Start the background listener task."""
        if self._listener_task is None:
            self._listener_task = asyncio.create_task(self._listen())

    # --- Inbound ---

    async def _listen(self) -> None:
        """Read messages until EOF and dispatch them."""
        reason = "language server closed its output"
        try:
            while True:
                message = await self._read_message()
                if message is None:
                    break
                await self._dispatch(message)
        except asyncio.CancelledError:
            reason = "connection closed"
            raise
        except (OSError, ValueError, asyncio.IncompleteReadError) as e:
            reason = f"failed to read from language server: {e}"
            logger.warning("Language server channel broke: %s", e)
        finally:
            self._closed = True
            self._close_reason = reason
            self._fail_pending(ServerExitedError(reason))

    async def _read_message(self) -> dict | None:
        """Read one Content-Length framed JSON message, None on EOF."""
        headers: dict[str, str] = {}

        while True:
            line = await self.reader.readline()
            if not line:
                return None

            line_str = line.decode("ascii").strip()
            if not line_str:
                break

            if ":" in line_str:
                key, value = line_str.split(":", 1)
                headers[key.strip().lower()] = value.strip()

        if "content-length" not in headers:
            raise ValueError(f"message without Content-Length header: {headers}")

        body = await self.reader.readexactly(int(headers["content-length"]))
        message = json.loads(body.decode("utf-8"))
        if not isinstance(message, dict):
            raise ValueError(f"expected a JSON object, got {type(message).__name__}")
        return message

    async def _dispatch(self, message: dict) -> None:
        method = message.get("method")

        if method is None:
            self._complete(message)
        elif "id" in message:
            await self._answer_server_request(message["id"], method, message.get("params"))
        else:
            handler = self._notification_handlers.get(method)
            if handler is None:
                logger.debug("Ignoring notification %s", method)
                return
            try:
                handler(message.get("params") or {})
            except Exception:
                # Handler bugs must not take down the listener
                logger.exception("Notification handler for %s failed", method)

    def _complete(self, message: dict) -> None:
        """Resolve the pending request a response belongs to."""
        msg_id = message.get("id")
        pending = self._pending.pop(msg_id, None) if msg_id is not None else None
        if pending is None:
            if "error" in message:
                logger.warning("Uncorrelated error response: %s", message["error"])
            else:
                logger.debug("Discarding late response for request %s", msg_id)
            return

        if pending.future.done():
            return
        if "error" in message:
            error = message["error"] or {}
            pending.future.set_exception(
                ServerResponseError(
                    pending.method,
                    int(error.get("code", 0)),
                    str(error.get("message", "unknown error")),
                )
            )
        else:
            pending.future.set_result(message.get("result"))

    async def _answer_server_request(self, msg_id: Any, method: str, params: Any) -> None:
        """Reply to a server-to-client request with an empty result.

        Answered here rather than through the gateway: the gateway may be
        blocked on a response the server only sends after this reply.
        """
        result: Any = None
        if method == "workspace/configuration" and isinstance(params, dict):
            result = [None] * len(params.get("items", []))
        logger.debug("Answering server request %s (id=%s)", method, msg_id)
        try:
            await self._write_message({"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result})
        except OSError as e:
            logger.warning("Failed to answer server request %s: %s", method, e)

    def _fail_pending(self, error: Exception) -> None:
        for pending in self._pending.values():
            if not pending.future.done():
                pending.future.set_exception(error)
        self._pending.clear()

    # --- Outbound ---

    async def _write_message(self, message: dict) -> None:
        """Write Content-Length framed JSON message to writer."""
        body = json.dumps(message).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
        self.writer.write(header + body)
        await self.writer.drain()

    async def send_request(self, method: str, params: Any, timeout: float) -> Any:
        """Send a request and wait for its response.

        Args:
            method: LSP method name
            params: Request parameters (omitted from the message when None)
            timeout: Seconds to wait for the response

        Returns:
            The response's result member

        Raises:
            LSPTimeoutError: If no response arrives in time
            ServerResponseError: If the server answers with an error
            ServerExitedError: If the channel is closed
            RequestFailedError: If the request cannot be written
        """
        if self._closed:
            raise ServerExitedError(self._close_reason)

        self._request_id += 1
        loop = asyncio.get_running_loop()
        now = loop.time()
        pending = PendingRequest(
            request_id=self._request_id,
            method=method,
            issued_at=now,
            deadline=now + timeout,
            future=loop.create_future(),
        )
        self._pending[pending.request_id] = pending

        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": pending.request_id, "method": method}
        if params is not None:
            message["params"] = params

        try:
            await self._write_message(message)
        except OSError as e:
            self._pending.pop(pending.request_id, None)
            raise RequestFailedError(method, f"write failed: {e}") from e

        try:
            return await asyncio.wait_for(pending.future, timeout=timeout)
        except asyncio.TimeoutError:
            # The server keeps working on it; a late response is discarded
            raise LSPTimeoutError(method, timeout) from None
        finally:
            self._pending.pop(pending.request_id, None)

    async def send_notification(self, method: str, params: Any = None) -> None:
        """Send JSON-RPC notification (no response expected).

        Raises:
            ServerExitedError: If the channel is closed
            RequestFailedError: If the notification cannot be written
        """
        if self._closed:
            raise ServerExitedError(self._close_reason)

        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
        if params is not None:
            message["params"] = params
        try:
            await self._write_message(message)
        except OSError as e:
            raise RequestFailedError(method, f"write failed: {e}") from e

    async def close(self) -> None:
        """Close the connection and terminate the process."""
        self._closed = True

        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass

        if not self.writer.is_closing():
            self.writer.close()
        try:
            await asyncio.wait_for(self.writer.wait_closed(), timeout=1.0)
        except (asyncio.TimeoutError, OSError) as e:
            logger.debug("Writer did not close cleanly: %r", e)

        if self.process.returncode is not None:
            return
        try:
            self.process.terminate()
            await asyncio.wait_for(self.process.wait(), timeout=SHUTDOWN_GRACE_PERIOD)
        except asyncio.TimeoutError:
            logger.warning("Language server ignored SIGTERM, killing pid %s", self.process.pid)
            self.process.kill()
            await self.process.wait()
        except ProcessLookupError:
            pass
