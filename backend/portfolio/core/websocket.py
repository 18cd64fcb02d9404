"""WebSocket fan-out for live chat.

Clients connect to /api/v1/livechat/ws, subscribe to one or more live chat
session ids and receive every new message posted to those sessions.

Protocol (JSON text frames):
- client -> server: {"type": "subscribe"|"unsubscribe", "session_id": ...},
  {"type": "ping"}, {"type": "pong"}
- server -> client: "connected", "subscribed", "unsubscribed", "message",
  "ping", "pong", "error", "shutdown"

ERROR LOGGING REQUIREMENTS:
- Log connection open/close with connection_id
- Log message send/receive at DEBUG level
- Log errors at ERROR level with full context
"""

import asyncio
import contextlib
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from portfolio.core.config import get_settings
from portfolio.core.logging import get_logger

logger = get_logger(__name__)

RECONNECT_ADVICE = {
    "should_reconnect": True,
    "initial_delay_ms": 1000,
    "max_delay_ms": 30000,
    "backoff_multiplier": 2.0,
}


@dataclass
class ChatConnection:
    websocket: WebSocket
    connection_id: str
    session_ids: set[str] = field(default_factory=set)
    last_pong: float = field(default_factory=time.monotonic)
    open: bool = True


class WebSocketLogger:
    """Logger for live chat WebSocket operations."""

    def __init__(self) -> None:
        self.logger = get_logger("websocket")

    def connection_opened(self, connection_id: str, client_host: str | None) -> None:
        self.logger.info(
            "WebSocket connection opened",
            extra={"connection_id": connection_id, "client_host": client_host},
        )

    def connection_closed(self, connection_id: str, reason: str | None, code: int | None = None) -> None:
        self.logger.info(
            "WebSocket connection closed",
            extra={"connection_id": connection_id, "close_reason": reason, "close_code": code},
        )

    def connection_error(self, connection_id: str, error: Exception, context: str) -> None:
        self.logger.error(
            "WebSocket connection error",
            extra={
                "connection_id": connection_id,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "context": context,
            },
            exc_info=True,
        )

    def message_received(self, connection_id: str, message_type: str, size: int) -> None:
        self.logger.debug(
            "WebSocket message received",
            extra={"connection_id": connection_id, "message_type": message_type, "payload_size": size},
        )

    def message_sent(self, connection_id: str, message_type: str, size: int) -> None:
        self.logger.debug(
            "WebSocket message sent",
            extra={"connection_id": connection_id, "message_type": message_type, "payload_size": size},
        )

    def heartbeat_timeout(self, connection_id: str, seconds_since_pong: float) -> None:
        self.logger.warning(
            "WebSocket heartbeat timeout",
            extra={"connection_id": connection_id, "seconds_since_pong": round(seconds_since_pong, 1)},
        )

    def broadcast_sent(self, session_id: str, delivered: int, failed: int) -> None:
        self.logger.debug(
            "Live chat broadcast sent",
            extra={"session_id": session_id, "delivered": delivered, "failed": failed},
        )


ws_logger = WebSocketLogger()


class ConnectionManager:
    """Tracks live chat sockets and their session subscriptions."""

    def __init__(self) -> None:
        self._connections: dict[str, ChatConnection] = {}
        self._subscribers: dict[str, set[str]] = {}
        self._heartbeat_task: asyncio.Task[None] | None = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    @property
    def heartbeat_interval(self) -> float:
        return get_settings().livechat_heartbeat_interval

    async def start_heartbeat(self) -> None:
        if self._heartbeat_task is None:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())

    async def stop_heartbeat(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat_task
            self._heartbeat_task = None

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.send_heartbeats()
            except Exception as e:
                logger.error(
                    "Heartbeat loop error",
                    extra={"error_type": type(e).__name__, "error_message": str(e)},
                    exc_info=True,
                )

    async def send_heartbeats(self) -> None:
        """Ping every socket; drop those silent for three intervals."""
        now = time.monotonic()
        timeout = self.heartbeat_interval * 3
        for conn in list(self._connections.values()):
            silent_for = now - conn.last_pong
            if silent_for > timeout:
                ws_logger.heartbeat_timeout(conn.connection_id, silent_for)
                await self.disconnect(conn.connection_id, reason="heartbeat_timeout")
                continue
            if not await self._send(conn, {"type": "ping", "timestamp": time.time()}):
                await self.disconnect(conn.connection_id, reason="heartbeat_failed")

    async def connect(self, websocket: WebSocket) -> ChatConnection:
        await websocket.accept()
        conn = ChatConnection(websocket=websocket, connection_id=str(uuid.uuid4()))
        self._connections[conn.connection_id] = conn
        ws_logger.connection_opened(
            conn.connection_id, websocket.client.host if websocket.client else None
        )
        await self._send(
            conn,
            {
                "type": "connected",
                "connection_id": conn.connection_id,
                "heartbeat_interval": self.heartbeat_interval,
                "reconnect_advice": RECONNECT_ADVICE,
            },
        )
        return conn

    async def disconnect(self, connection_id: str, reason: str | None = None, code: int = 1000) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        conn.open = False
        for session_id in list(conn.session_ids):
            self.unsubscribe(conn, session_id)
        # Socket may already be closed by the peer
        with contextlib.suppress(RuntimeError, WebSocketDisconnect):
            await conn.websocket.close(code=code, reason=reason)
        ws_logger.connection_closed(connection_id, reason, code)

    def subscribe(self, conn: ChatConnection, session_id: str) -> None:
        conn.session_ids.add(session_id)
        self._subscribers.setdefault(session_id, set()).add(conn.connection_id)

    def unsubscribe(self, conn: ChatConnection, session_id: str) -> None:
        conn.session_ids.discard(session_id)
        subscribers = self._subscribers.get(session_id)
        if subscribers is not None:
            subscribers.discard(conn.connection_id)
            if not subscribers:
                del self._subscribers[session_id]

    async def _send(self, conn: ChatConnection, message: dict[str, Any]) -> bool:
        if not conn.open:
            return False
        payload = json.dumps(message, default=str)
        try:
            await conn.websocket.send_text(payload)
        except (RuntimeError, WebSocketDisconnect) as e:
            ws_logger.connection_error(conn.connection_id, e, "send")
            return False
        ws_logger.message_sent(conn.connection_id, str(message.get("type")), len(payload))
        return True

    def handle_message(self, conn: ChatConnection, raw_message: str) -> dict[str, Any] | None:
        """Apply one client frame and return the reply, if any."""
        ws_logger.message_received(conn.connection_id, "raw", len(raw_message))
        try:
            message = json.loads(raw_message)
        except json.JSONDecodeError:
            return {"type": "error", "code": "INVALID_JSON", "error": "Invalid JSON message"}
        if not isinstance(message, dict):
            return {"type": "error", "code": "INVALID_MESSAGE", "error": "Message must be an object"}

        message_type = message.get("type")
        if message_type == "pong":
            conn.last_pong = time.monotonic()
            return None
        if message_type == "ping":
            conn.last_pong = time.monotonic()
            return {"type": "pong", "timestamp": time.time()}
        if message_type in ("subscribe", "unsubscribe"):
            session_id = message.get("session_id")
            if not isinstance(session_id, str) or not session_id.strip():
                return {
                    "type": "error",
                    "code": "MISSING_SESSION_ID",
                    "error": f"session_id is required for {message_type}",
                }
            if message_type == "subscribe":
                self.subscribe(conn, session_id.strip())
                return {"type": "subscribed", "session_id": session_id.strip()}
            self.unsubscribe(conn, session_id.strip())
            return {"type": "unsubscribed", "session_id": session_id.strip()}

        return {
            "type": "error",
            "code": "UNKNOWN_MESSAGE_TYPE",
            "error": f"Unknown message type: {message_type}",
        }

    async def broadcast_message(self, session_id: str, message: dict[str, Any]) -> int:
        """Send a new live chat message to every subscriber of its session."""
        delivered = failed = 0
        for connection_id in list(self._subscribers.get(session_id, ())):
            conn = self._connections.get(connection_id)
            if conn is None:
                continue
            if await self._send(conn, {"type": "message", "session_id": session_id, "message": message}):
                delivered += 1
            else:
                failed += 1
        ws_logger.broadcast_sent(session_id, delivered, failed)
        return delivered

    async def broadcast_shutdown(self, reason: str = "server_shutdown") -> None:
        message = {"type": "shutdown", "reason": reason, "reconnect_advice": RECONNECT_ADVICE}
        for conn in list(self._connections.values()):
            await self._send(conn, message)
        logger.info("Shutdown broadcast sent", extra={"connection_count": len(self._connections)})

    async def run_connection(self, websocket: WebSocket) -> None:
        conn = await self.connect(websocket)
        try:
            while conn.open:
                raw_message = await websocket.receive_text()
                reply = self.handle_message(conn, raw_message)
                if reply:
                    await self._send(conn, reply)
        except WebSocketDisconnect as e:
            ws_logger.connection_closed(conn.connection_id, "client_disconnect", e.code)
        finally:
            await self.disconnect(conn.connection_id, reason="connection_ended")


connection_manager = ConnectionManager()
