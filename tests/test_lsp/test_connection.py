"""Tests for the JSON-RPC connection: framing, correlation and failure paths."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from core.exceptions import LSPTimeoutError, ServerExitedError, ServerResponseError
from lsp.connection import LSPConnection


def frame(message: dict) -> bytes:
    body = json.dumps(message).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


class FakeWriter:
    """Collects what the connection writes to the server's stdin."""

    def __init__(self):
        self.buffer = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def is_closing(self) -> bool:
        return self.closed

    async def wait_closed(self) -> None:
        pass

    def messages(self) -> list[dict]:
        data = bytes(self.buffer)
        found = []
        while data:
            header, _, rest = data.partition(b"\r\n\r\n")
            length = int(header.split(b":")[1])
            found.append(json.loads(rest[:length]))
            data = rest[length:]
        return found


async def wait_for_messages(writer: FakeWriter, count: int) -> list[dict]:
    for _ in range(100):
        messages = writer.messages()
        if len(messages) >= count:
            return messages
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} messages, got {writer.messages()}")


@pytest.fixture
def exited_process():
    process = MagicMock()
    process.returncode = 0
    return process


@pytest_asyncio.fixture
async def channel(exited_process):
    reader = asyncio.StreamReader()
    writer = FakeWriter()
    connection = LSPConnection(process=exited_process, reader=reader, writer=writer)
    return connection, reader, writer


class TestFraming:
    """Test outbound message framing."""

    @pytest.mark.asyncio
    async def test_request_is_content_length_framed(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("textDocument/hover", {"a": 1}, timeout=1.0))
        [message] = await wait_for_messages(writer, 1)

        assert bytes(writer.buffer).startswith(b"Content-Length: ")
        assert message == {"jsonrpc": "2.0", "id": 1, "method": "textDocument/hover", "params": {"a": 1}}

        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "result": None}))
        assert await task is None
        await connection.close()

    @pytest.mark.asyncio
    async def test_params_omitted_when_none(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("shutdown", None, timeout=1.0))
        [message] = await wait_for_messages(writer, 1)
        assert "params" not in message

        reader.feed_data(frame({"jsonrpc": "2.0", "id": message["id"], "result": None}))
        await task
        await connection.close()

    @pytest.mark.asyncio
    async def test_notification_has_no_id(self, channel):
        connection, _, writer = channel
        await connection.send_notification("initialized", {})
        assert writer.messages() == [{"jsonrpc": "2.0", "method": "initialized", "params": {}}]


class TestCorrelation:
    """Test responses are matched to their requests."""

    @pytest.mark.asyncio
    async def test_result_returned(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("workspace/symbol", {"query": "add"}, timeout=1.0))
        await wait_for_messages(writer, 1)
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "result": [{"name": "add"}]}))

        assert await task == [{"name": "add"}]
        assert connection.pending_requests == []
        await connection.close()

    @pytest.mark.asyncio
    async def test_error_response_keeps_method_and_message(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("textDocument/definition", {}, timeout=1.0))
        await wait_for_messages(writer, 1)
        reader.feed_data(frame({
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32602, "message": "invalid params"},
        }))

        with pytest.raises(ServerResponseError) as exc_info:
            await task
        assert exc_info.value.method == "textDocument/definition"
        assert exc_info.value.code == -32602
        assert "invalid params" in str(exc_info.value)
        await connection.close()

    @pytest.mark.asyncio
    async def test_timeout_drops_pending_entry_and_discards_late_response(self, channel):
        connection, reader, writer = channel
        connection.start()

        with pytest.raises(LSPTimeoutError) as exc_info:
            await connection.send_request("textDocument/references", {}, timeout=0.05)
        assert exc_info.value.method == "textDocument/references"
        assert connection.pending_requests == []

        # Late response is ignored and the channel keeps working
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "result": []}))
        task = asyncio.create_task(connection.send_request("textDocument/hover", {}, timeout=1.0))
        await wait_for_messages(writer, 2)
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 2, "result": {"contents": "x"}}))

        assert await task == {"contents": "x"}
        assert not connection.is_closed
        await connection.close()


class TestInbound:
    """Test notifications and server-to-client requests."""

    @pytest.mark.asyncio
    async def test_notification_handler_called(self, channel):
        connection, reader, _ = channel
        handler = MagicMock()
        connection.on_notification("textDocument/publishDiagnostics", handler)
        connection.start()

        reader.feed_data(frame({
            "jsonrpc": "2.0",
            "method": "textDocument/publishDiagnostics",
            "params": {"uri": "file:///a.rs", "diagnostics": []},
        }))
        for _ in range(50):
            if handler.called:
                break
            await asyncio.sleep(0.01)

        handler.assert_called_once_with({"uri": "file:///a.rs", "diagnostics": []})
        await connection.close()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_listener(self, channel):
        connection, reader, writer = channel
        connection.on_notification("$/progress", MagicMock(side_effect=RuntimeError("bug")))
        connection.start()

        reader.feed_data(frame({"jsonrpc": "2.0", "method": "$/progress", "params": {}}))
        task = asyncio.create_task(connection.send_request("shutdown", None, timeout=1.0))
        await wait_for_messages(writer, 1)
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "result": None}))

        assert await task is None
        await connection.close()

    @pytest.mark.asyncio
    async def test_configuration_request_answered_with_nulls(self, channel):
        connection, reader, writer = channel
        connection.start()

        reader.feed_data(frame({
            "jsonrpc": "2.0",
            "id": 7,
            "method": "workspace/configuration",
            "params": {"items": [{"section": "a"}, {"section": "b"}]},
        }))
        [reply] = await wait_for_messages(writer, 1)

        assert reply == {"jsonrpc": "2.0", "id": 7, "result": [None, None]}
        await connection.close()

    @pytest.mark.asyncio
    async def test_other_server_requests_answered_with_null(self, channel):
        connection, reader, writer = channel
        connection.start()

        reader.feed_data(frame({
            "jsonrpc": "2.0",
            "id": "progress-1",
            "method": "window/workDoneProgress/create",
            "params": {"token": "t"},
        }))
        [reply] = await wait_for_messages(writer, 1)

        assert reply == {"jsonrpc": "2.0", "id": "progress-1", "result": None}
        await connection.close()


class TestChannelClosure:
    """Test behavior when the server goes away."""

    @pytest.mark.asyncio
    async def test_eof_fails_pending_requests(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("textDocument/hover", {}, timeout=5.0))
        await wait_for_messages(writer, 1)
        reader.feed_eof()

        with pytest.raises(ServerExitedError):
            await task
        assert connection.is_closed
        assert connection.pending_requests == []

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self, channel):
        connection, reader, _ = channel
        connection.start()
        reader.feed_eof()
        await asyncio.sleep(0.05)

        with pytest.raises(ServerExitedError):
            await connection.send_request("textDocument/hover", {}, timeout=1.0)
        with pytest.raises(ServerExitedError):
            await connection.send_notification("initialized", {})

    @pytest.mark.asyncio
    async def test_missing_content_length_closes_channel(self, channel):
        connection, reader, writer = channel
        connection.start()

        task = asyncio.create_task(connection.send_request("textDocument/hover", {}, timeout=5.0))
        await wait_for_messages(writer, 1)
        reader.feed_data(b"Content-Type: application/json\r\n\r\n{}")

        with pytest.raises(ServerExitedError):
            await task
        assert connection.is_closed

    @pytest.mark.asyncio
    async def test_close_terminates_running_process(self):
        process = MagicMock()
        process.returncode = None
        process.wait = AsyncMock(return_value=0)
        connection = LSPConnection(process=process, reader=asyncio.StreamReader(), writer=FakeWriter())
        connection.start()

        await connection.close()

        process.terminate.assert_called_once()
        process.wait.assert_awaited()
        process.kill.assert_not_called()
        assert connection.writer.closed
