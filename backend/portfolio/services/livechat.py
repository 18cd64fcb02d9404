"""Live chat between visitors and a human agent.

Messages are stored in Postgres and fanned out to WebSocket subscribers
of the session. Agents prove who they are with a shared secret header.
"""

import secrets
import time
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import get_settings
from portfolio.core.exceptions import AuthError, NotFoundError, ValidationError
from portfolio.core.logging import get_logger
from portfolio.core.websocket import connection_manager
from portfolio.models.chat import LIVECHAT_ROLES, LIVECHAT_STATUSES, LivechatMessage, LivechatSession
from portfolio.repositories.chat import LivechatMessageRepository, LivechatSessionRepository
from portfolio.utils.dates import ensure_utc, isoformat, utcnow
from portfolio.utils.text import clamp_or_default
from portfolio.utils.validation import is_valid_email, normalize_whitespace

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 4000
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def message_to_dict(message: LivechatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "session_id": message.session_id,
        "role": message.role,
        "content": message.content,
        "meta": dict(message.meta or {}),
        "created_at": isoformat(message.created_at),
    }


def _check_agent_secret(agent_secret: str | None) -> None:
    expected = get_settings().livechat_agent_secret
    if not expected or not agent_secret or not secrets.compare_digest(agent_secret, expected):
        raise AuthError("Agent secret required for agent or system messages.", forbidden=True)


class PresenceTracker:
    """In-process record of which agents sent a heartbeat recently."""

    def __init__(self) -> None:
        self._seen: dict[str, float] = {}

    @property
    def ttl(self) -> float:
        return get_settings().livechat_presence_ttl

    def heartbeat(self, agent_id: str, now: float | None = None) -> float:
        """Mark `agent_id` online; returns the expiry (monotonic seconds)."""
        now = time.monotonic() if now is None else now
        expires_at = now + self.ttl
        self._seen[agent_id] = expires_at
        return expires_at

    def agents_online(self, now: float | None = None) -> list[str]:
        now = time.monotonic() if now is None else now
        for agent_id, expires_at in list(self._seen.items()):
            if expires_at <= now:
                del self._seen[agent_id]
        return sorted(self._seen)

    def clear(self) -> None:
        self._seen.clear()


presence = PresenceTracker()


class LivechatService:
    @staticmethod
    async def start_session(
        db: AsyncSession,
        visitor_name: str | None = None,
        visitor_email: str | None = None,
    ) -> LivechatSession:
        name = normalize_whitespace(visitor_name)[:80] or None
        email = normalize_whitespace(visitor_email).lower() or None
        if email is not None and not is_valid_email(email):
            raise ValidationError(
                "Please enter a valid email address.", field="visitor_email", value=email
            )
        session = await LivechatSessionRepository(db).create(
            visitor_name=name, visitor_email=email, status="open"
        )
        logger.info("Live chat session started", extra={"session_id": session.id})
        return session

    @staticmethod
    async def get_session(db: AsyncSession, session_id: str) -> LivechatSession:
        session = await LivechatSessionRepository(db).get_by_id(session_id)
        if session is None:
            raise NotFoundError(f"Live chat session '{session_id}' not found")
        return session

    @staticmethod
    async def send(
        db: AsyncSession,
        session_id: str,
        content: str | None,
        role: str = "visitor",
        agent_secret: str | None = None,
        meta: dict[str, Any] | None = None,
        trusted: bool = False,
    ) -> LivechatMessage:
        """Store a message and push it to the session's subscribers.

        `trusted` callers (signed-in admins) may post as agent without the secret.

        Raises:
            AuthError: agent/system role without the matching agent secret (403).
            ValidationError: unknown role or empty content.
            NotFoundError: unknown session.
        """
        if role not in LIVECHAT_ROLES:
            raise ValidationError(
                "Role must be 'visitor', 'agent', or 'system'.", field="role", value=role
            )
        if role != "visitor" and not trusted:
            _check_agent_secret(agent_secret)

        text = (content or "").strip()
        if not text:
            raise ValidationError("Message content is required.", field="content")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be at most {MAX_MESSAGE_LENGTH} characters.", field="content"
            )

        session = await LivechatService.get_session(db, session_id)
        message = await LivechatMessageRepository(db).create(
            session_id=session.id,
            role=role,
            content=text,
            meta=meta if isinstance(meta, dict) else {},
        )
        await LivechatSessionRepository(db).update(session, last_message_at=message.created_at)

        delivered = await connection_manager.broadcast_message(session.id, message_to_dict(message))
        logger.debug(
            "Live chat message stored",
            extra={"session_id": session.id, "role": role, "delivered": delivered},
        )
        return message

    @staticmethod
    async def list_messages(
        db: AsyncSession,
        session_id: str,
        limit: object = DEFAULT_PAGE_SIZE,
        offset: object = 0,
        direction: str = "desc",
        since: datetime | None = None,
    ) -> list[LivechatMessage]:
        await LivechatService.get_session(db, session_id)
        return await LivechatMessageRepository(db).list_for_session(
            session_id,
            limit=int(clamp_or_default(limit, 1, MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE)),
            offset=int(clamp_or_default(offset, 0, 1_000_000, 0)),
            direction="asc" if direction == "asc" else "desc",
            since=ensure_utc(since),
        )

    @staticmethod
    async def list_sessions(db: AsyncSession, status: str | None = None) -> list[LivechatSession]:
        if status is not None and status not in LIVECHAT_STATUSES:
            raise ValidationError(
                "Status must be 'open' or 'resolved'.", field="status", value=status
            )
        return await LivechatSessionRepository(db).list_by_status(status)

    @staticmethod
    async def mark_resolved(db: AsyncSession, session_id: str) -> LivechatSession:
        session = await LivechatService.get_session(db, session_id)
        if session.status == "resolved":
            return session
        session = await LivechatSessionRepository(db).update(
            session, status="resolved", last_message_at=session.last_message_at or utcnow()
        )
        await connection_manager.broadcast_message(
            session.id,
            {"session_id": session.id, "role": "system", "content": "Conversation resolved.", "meta": {"status": "resolved"}},
        )
        logger.info("Live chat session resolved", extra={"session_id": session.id})
        return session

    @staticmethod
    async def clear(db: AsyncSession, session_id: str) -> int:
        await LivechatService.get_session(db, session_id)
        removed = await LivechatMessageRepository(db).clear(session_id)
        logger.info("Live chat messages cleared", extra={"session_id": session_id, "removed": removed})
        return removed
