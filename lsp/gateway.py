"""
Single-flight request gateway.

The gateway is an actor that owns the language server connection. Callers
submit jobs through an internal queue and a single worker task executes
them one at a time, so at most one request is ever in flight and callers
never lock anything themselves.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import LSPTimeoutError, ServerExitedError

from .connection import LSPConnection

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    method: str
    params: Any
    expects_response: bool
    deadline: float
    future: asyncio.Future = field(repr=False)


class RequestGateway:
    """Serializes every request and notification over one connection."""

    def __init__(self, connection: LSPConnection, request_timeout: float):
        self.connection = connection
        self.request_timeout = request_timeout
        self._queue: asyncio.Queue[_Job | None] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._stopped = False

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    async def request(self, method: str, params: Any = None, timeout: float | None = None) -> Any:
        """Issue a request and wait for its result.

        The deadline starts when the request is submitted, so time spent
        queued behind other requests counts against it.

        Args:
            method: LSP method name
            params: Request parameters
            timeout: Seconds to wait for the result (defaults to the
                gateway's request timeout)

        Raises:
            LSPTimeoutError: If the result does not arrive before the deadline
            RequestFailedError: If the server reports an error or the send fails
            ServerExitedError: If the language server is gone
        """
        timeout = timeout or self.request_timeout
        job = self._submit(method, params, True, timeout)
        try:
            # Expiry cancels the future; the worker skips or abandons the job
            return await asyncio.wait_for(job.future, timeout)
        except (asyncio.TimeoutError, LSPTimeoutError):
            logger.warning("%s timed out after %.1fs", method, timeout)
            raise LSPTimeoutError(method, timeout) from None

    async def notify(self, method: str, params: Any = None) -> None:
        """Send a notification through the same single-flight queue."""
        job = self._submit(method, params, False, self.request_timeout)
        await job.future

    def _submit(self, method: str, params: Any, expects_response: bool, timeout: float) -> _Job:
        if self._stopped:
            raise ServerExitedError("session is shut down")
        self.start()
        loop = asyncio.get_running_loop()
        job = _Job(
            method=method,
            params=params,
            expects_response=expects_response,
            deadline=loop.time() + timeout,
            future=loop.create_future(),
        )
        self._queue.put_nowait(job)
        return job

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            if job is None:
                break
            if job.future.done():
                # Caller was cancelled or timed out while queued
                continue
            try:
                result = await self._execute(job)
            except asyncio.CancelledError:
                if not job.future.done():
                    job.future.set_exception(ServerExitedError("session is shut down"))
                raise
            except Exception as e:
                if not job.future.done():
                    job.future.set_exception(e)
            else:
                if not job.future.done():
                    job.future.set_result(result)

    async def _execute(self, job: _Job) -> Any:
        if not job.expects_response:
            logger.debug("-> %s (notification)", job.method)
            await self.connection.send_notification(job.method, job.params)
            return None

        remaining = job.deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise LSPTimeoutError(job.method, 0)
        logger.debug("-> %s", job.method)
        result = await self.connection.send_request(job.method, job.params, remaining)
        logger.debug("<- %s", job.method)
        return result

    async def stop(self) -> None:
        """Stop the worker; queued jobs fail with ServerExitedError."""
        if self._stopped:
            return
        self._stopped = True
        if self._worker is None:
            return
        await self._queue.put(None)
        try:
            await asyncio.wait_for(self._worker, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            self._worker.cancel()
        while not self._queue.empty():
            job = self._queue.get_nowait()
            if job is not None and not job.future.done():
                job.future.set_exception(ServerExitedError("session is shut down"))
