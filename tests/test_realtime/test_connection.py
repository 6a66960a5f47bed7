"""Tests for RealtimeConnection lifecycle and frame handling."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call

import pytest
from starlette.websockets import WebSocketState

from chat_backend.errors import StorageError
from chat_backend.realtime.connection import (
    LIVENESS_CLOSE_CODE,
    ConnectionState,
    Liveness,
    RealtimeConnection,
)
from chat_backend.realtime.dispatcher import FrameDispatcher


async def _block_forever():
    await asyncio.Event().wait()


@pytest.fixture
def ws():
    """Fake Starlette WebSocket."""
    ws = MagicMock()
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock()
    ws.receive = AsyncMock(return_value={"type": "websocket.disconnect", "code": 1000})
    ws.application_state = WebSocketState.CONNECTED
    ws.client_state = WebSocketState.CONNECTED

    async def close(code=1000, reason=None):
        ws.application_state = WebSocketState.DISCONNECTED

    ws.close = AsyncMock(side_effect=close)
    return ws


@pytest.fixture
def dispatcher():
    d = AsyncMock(spec=FrameDispatcher)
    d.handles = MagicMock(return_value=True)
    d.dispatch.return_value = None
    return d


@pytest.fixture
def connection(ws, dispatcher):
    return RealtimeConnection(ws, dispatcher, probe_interval=0.01)


class TestHandleText:
    @pytest.mark.asyncio
    async def test_pong_marks_alive(self, connection, ws):
        connection.liveness = Liveness.SUSPECT

        await connection.handle_text('{"type": "pong"}')

        assert connection.liveness is Liveness.ALIVE
        ws.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self, connection, ws):
        await connection.handle_text('{"type": "ping"}')

        ws.send_json.assert_awaited_once_with({"type": "pong"})

    @pytest.mark.asyncio
    async def test_malformed_frame(self, connection, ws, dispatcher):
        await connection.handle_text("not json")

        frame = ws.send_json.call_args[0][0]
        assert frame["type"] == "error"
        assert frame["message"].startswith("Error processing message: ")
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unrecognized_frame_gets_no_reply(self, connection, ws, dispatcher):
        dispatcher.handles.return_value = False

        await connection.handle_text('{"type": "subscribe"}')

        ws.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_reply_sent(self, connection, ws, dispatcher):
        dispatcher.dispatch.return_value = {"type": "chat_history", "success": True, "chats": []}

        await connection.handle_text('{"type": "get_chat_history", "userId": "user_0123456789ab"}')

        ws.send_json.assert_awaited_once_with({"type": "chat_history", "success": True, "chats": []})

    @pytest.mark.asyncio
    async def test_dispatch_failure_reported(self, ws, dispatcher):
        connection = RealtimeConnection(ws, dispatcher, production=True)
        err = StorageError("Failed to append chat", "append_chat")
        err.__cause__ = OSError("connection reset")
        dispatcher.dispatch.side_effect = err

        await connection.handle_text('{"type": "chat"}')

        ws.send_json.assert_awaited_once_with(
            {"type": "error", "message": "Error processing message: Failed to append chat"}
        )


class TestRun:
    @pytest.mark.asyncio
    async def test_client_disconnect_closes_cleanly(self, connection, ws):
        await connection.run()

        ws.accept.assert_awaited_once()
        assert ws.send_json.call_args_list[0] == call(
            {"type": "connection_status", "status": "connected"}
        )
        assert connection.state is ConnectionState.CLOSED
        assert not connection.probe_running

    @pytest.mark.asyncio
    async def test_client_disconnect_skips_server_close(self, connection, ws):
        ws.client_state = WebSocketState.DISCONNECTED

        await connection.run()

        ws.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unanswered_probe_terminates(self, connection, ws):
        ws.receive = AsyncMock(side_effect=_block_forever)

        await asyncio.wait_for(connection.run(), timeout=2)

        sent = [c.args[0] for c in ws.send_json.call_args_list]
        assert sent[0]["type"] == "connection_status"
        assert {"type": "ping"} in sent
        ws.close.assert_awaited_once_with(
            code=LIVENESS_CLOSE_CODE, reason="Liveness probe timed out"
        )
        assert connection.state is ConnectionState.CLOSED
        assert not connection.probe_running

    @pytest.mark.asyncio
    async def test_any_inbound_frame_marks_alive(self, ws, dispatcher):
        connection = RealtimeConnection(ws, dispatcher, probe_interval=300)
        connection.liveness = Liveness.SUSPECT
        ws.receive = AsyncMock(side_effect=[
            {"type": "websocket.receive", "text": '{"type": "get_chat_history"}'},
            {"type": "websocket.disconnect", "code": 1000},
        ])

        await connection.run()

        assert connection.liveness is Liveness.ALIVE
        dispatcher.dispatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_receiver_error_still_stops_probe(self, connection, ws):
        ws.receive = AsyncMock(side_effect=RuntimeError("transport broke"))

        await connection.run()

        assert connection.state is ConnectionState.CLOSED
        assert not connection.probe_running
