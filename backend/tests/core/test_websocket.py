"""Unit tests for the live chat ConnectionManager.

Uses a fake socket so protocol handling and fan-out can be checked
without a running server.
"""

import json
from typing import Any

import pytest
from fastapi import WebSocketDisconnect

from portfolio.core.websocket import RECONNECT_ADVICE, ChatConnection, ConnectionManager


class FakeWebSocket:
    """Records frames sent by the manager."""

    def __init__(self, fail_send: bool = False) -> None:
        self.accepted = False
        self.closed: tuple[int, str | None] | None = None
        self.fail_send = fail_send
        self.sent: list[dict[str, Any]] = []
        self.client = None

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail_send:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = (code, reason)


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


async def _connect(manager: ConnectionManager, **kwargs: Any) -> tuple[ChatConnection, FakeWebSocket]:
    socket = FakeWebSocket(**kwargs)
    conn = await manager.connect(socket)  # type: ignore[arg-type]
    return conn, socket


# =============================================================================
# Connection lifecycle
# =============================================================================


class TestConnect:
    """Tests for connect and disconnect."""

    @pytest.mark.asyncio
    async def test_connected_frame(self, manager: ConnectionManager) -> None:
        conn, socket = await _connect(manager)

        assert socket.accepted is True
        assert manager.connection_count == 1
        assert socket.sent[0] == {
            "type": "connected",
            "connection_id": conn.connection_id,
            "heartbeat_interval": 30,
            "reconnect_advice": RECONNECT_ADVICE,
        }

    @pytest.mark.asyncio
    async def test_disconnect_drops_subscriptions(self, manager: ConnectionManager) -> None:
        conn, socket = await _connect(manager)
        manager.subscribe(conn, "s1")

        await manager.disconnect(conn.connection_id, reason="bye")

        assert manager.connection_count == 0
        assert manager.subscriber_count("s1") == 0
        assert socket.closed == (1000, "bye")
        await manager.disconnect(conn.connection_id)


# =============================================================================
# Protocol
# =============================================================================


class TestHandleMessage:
    """Tests for handle_message."""

    @pytest.mark.asyncio
    async def test_ping_pong(self, manager: ConnectionManager) -> None:
        conn, _ = await _connect(manager)
        assert manager.handle_message(conn, '{"type": "ping"}')["type"] == "pong"
        assert manager.handle_message(conn, '{"type": "pong"}') is None

    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self, manager: ConnectionManager) -> None:
        conn, _ = await _connect(manager)

        reply = manager.handle_message(conn, '{"type": "subscribe", "session_id": " s1 "}')
        assert reply == {"type": "subscribed", "session_id": "s1"}
        assert manager.subscriber_count("s1") == 1

        reply = manager.handle_message(conn, '{"type": "unsubscribe", "session_id": "s1"}')
        assert reply == {"type": "unsubscribed", "session_id": "s1"}
        assert manager.subscriber_count("s1") == 0

    @pytest.mark.parametrize(
        ("raw", "code"),
        [
            ("not json", "INVALID_JSON"),
            ("[1, 2]", "INVALID_MESSAGE"),
            ('{"type": "subscribe"}', "MISSING_SESSION_ID"),
            ('{"type": "unsubscribe", "session_id": "  "}', "MISSING_SESSION_ID"),
            ('{"type": "dance"}', "UNKNOWN_MESSAGE_TYPE"),
        ],
    )
    @pytest.mark.asyncio
    async def test_errors(self, manager: ConnectionManager, raw: str, code: str) -> None:
        conn, _ = await _connect(manager)
        reply = manager.handle_message(conn, raw)
        assert reply["type"] == "error"
        assert reply["code"] == code


# =============================================================================
# Fan-out
# =============================================================================


class TestBroadcast:
    """Tests for broadcast_message, heartbeats and shutdown."""

    @pytest.mark.asyncio
    async def test_only_subscribers_receive(self, manager: ConnectionManager) -> None:
        subscribed, subscribed_socket = await _connect(manager)
        _, other_socket = await _connect(manager)
        manager.subscribe(subscribed, "s1")

        delivered = await manager.broadcast_message("s1", {"content": "hi"})

        assert delivered == 1
        assert subscribed_socket.sent[-1] == {
            "type": "message",
            "session_id": "s1",
            "message": {"content": "hi"},
        }
        assert other_socket.sent[-1]["type"] == "connected"

    @pytest.mark.asyncio
    async def test_failed_send_not_counted(self, manager: ConnectionManager) -> None:
        socket = FakeWebSocket()
        conn = await manager.connect(socket)  # type: ignore[arg-type]
        manager.subscribe(conn, "s1")
        socket.fail_send = True

        assert await manager.broadcast_message("s1", {"content": "hi"}) == 0

    @pytest.mark.asyncio
    async def test_heartbeat_drops_silent_connections(self, manager: ConnectionManager) -> None:
        live, live_socket = await _connect(manager)
        silent, silent_socket = await _connect(manager)
        silent.last_pong -= 1000

        await manager.send_heartbeats()

        assert manager.connection_count == 1
        assert live_socket.sent[-1]["type"] == "ping"
        assert silent_socket.closed == (1000, "heartbeat_timeout")

    @pytest.mark.asyncio
    async def test_shutdown_broadcast(self, manager: ConnectionManager) -> None:
        _, socket = await _connect(manager)
        await manager.broadcast_shutdown()
        assert socket.sent[-1] == {
            "type": "shutdown",
            "reason": "server_shutdown",
            "reconnect_advice": RECONNECT_ADVICE,
        }
