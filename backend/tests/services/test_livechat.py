"""Tests for the live chat service and agent presence."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import AuthError, NotFoundError, ValidationError
from portfolio.core.websocket import ConnectionManager
from portfolio.services.livechat import LivechatService, PresenceTracker, message_to_dict
from portfolio.utils.dates import utcnow

AGENT_SECRET = "test-agent-secret"


class RecordingManager(ConnectionManager):
    """Captures broadcasts instead of writing to sockets."""

    def __init__(self) -> None:
        super().__init__()
        self.broadcasts: list[tuple[str, dict]] = []

    async def broadcast_message(self, session_id: str, message: dict) -> int:
        self.broadcasts.append((session_id, message))
        return 1


@pytest.fixture
def recording_manager(monkeypatch: pytest.MonkeyPatch) -> RecordingManager:
    manager = RecordingManager()
    monkeypatch.setattr("portfolio.services.livechat.connection_manager", manager)
    return manager


# =============================================================================
# Presence
# =============================================================================


class TestPresenceTracker:
    """Tests for PresenceTracker."""

    def test_heartbeat_and_expiry(self) -> None:
        tracker = PresenceTracker()

        assert tracker.heartbeat("agent-b", now=100.0) == 160.0
        tracker.heartbeat("agent-a", now=120.0)

        assert tracker.agents_online(now=150.0) == ["agent-a", "agent-b"]
        assert tracker.agents_online(now=165.0) == ["agent-a"]
        assert tracker.agents_online(now=180.0) == []

    def test_clear(self) -> None:
        tracker = PresenceTracker()
        tracker.heartbeat("agent", now=0.0)
        tracker.clear()
        assert tracker.agents_online(now=0.0) == []


# =============================================================================
# Sessions and messages
# =============================================================================


class TestLivechatSessions:
    """Tests for session lifecycle."""

    @pytest.mark.asyncio
    async def test_start_session(self, db_session: AsyncSession) -> None:
        session = await LivechatService.start_session(db_session, " Ada  L ", "ADA@Example.com")

        assert session.visitor_name == "Ada L"
        assert session.visitor_email == "ada@example.com"
        assert session.status == "open"

    @pytest.mark.asyncio
    async def test_anonymous_session(self, db_session: AsyncSession) -> None:
        session = await LivechatService.start_session(db_session)
        assert session.visitor_name is None
        assert session.visitor_email is None

    @pytest.mark.asyncio
    async def test_invalid_email(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await LivechatService.start_session(db_session, "Ada", "not-an-email")
        assert exc_info.value.field == "visitor_email"

    @pytest.mark.asyncio
    async def test_unknown_session(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await LivechatService.get_session(db_session, "00000000-0000-0000-0000-000000000000")

    @pytest.mark.asyncio
    async def test_list_sessions_by_status(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        first = await LivechatService.start_session(db_session)
        await LivechatService.start_session(db_session)
        await LivechatService.mark_resolved(db_session, first.id)

        assert len(await LivechatService.list_sessions(db_session)) == 2
        resolved = await LivechatService.list_sessions(db_session, "resolved")
        assert [s.id for s in resolved] == [first.id]
        with pytest.raises(ValidationError):
            await LivechatService.list_sessions(db_session, "archived")

    @pytest.mark.asyncio
    async def test_mark_resolved_broadcasts_once(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)

        resolved = await LivechatService.mark_resolved(db_session, session.id)
        await LivechatService.mark_resolved(db_session, session.id)

        assert resolved.status == "resolved"
        assert resolved.last_message_at is not None
        assert len(recording_manager.broadcasts) == 1
        assert recording_manager.broadcasts[0][1]["meta"] == {"status": "resolved"}


class TestLivechatMessages:
    """Tests for LivechatService.send and list_messages."""

    @pytest.mark.asyncio
    async def test_visitor_message_is_stored_and_broadcast(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)

        message = await LivechatService.send(db_session, session.id, "  Hello  ")

        assert message.content == "Hello"
        assert message.role == "visitor"
        assert session.last_message_at is not None
        session_id, payload = recording_manager.broadcasts[0]
        assert session_id == session.id
        assert payload == message_to_dict(message)

    @pytest.mark.asyncio
    async def test_agent_requires_secret(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)

        with pytest.raises(AuthError) as exc_info:
            await LivechatService.send(db_session, session.id, "Hi", role="agent")
        assert exc_info.value.status_code == 403

        with pytest.raises(AuthError):
            await LivechatService.send(
                db_session, session.id, "Hi", role="system", agent_secret="wrong"
            )

        message = await LivechatService.send(
            db_session, session.id, "Hi", role="agent", agent_secret=AGENT_SECRET
        )
        assert message.role == "agent"

    @pytest.mark.asyncio
    async def test_trusted_agent_skips_secret(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)
        message = await LivechatService.send(
            db_session, session.id, "From admin", role="agent", trusted=True, meta={"admin": "a1"}
        )
        assert message.meta == {"admin": "a1"}

    @pytest.mark.parametrize(
        ("content", "role"),
        [("", "visitor"), ("   ", "visitor"), ("x" * 4001, "visitor"), ("hi", "bot")],
    )
    @pytest.mark.asyncio
    async def test_invalid_messages(
        self,
        db_session: AsyncSession,
        recording_manager: RecordingManager,
        content: str,
        role: str,
    ) -> None:
        session = await LivechatService.start_session(db_session)
        with pytest.raises(ValidationError):
            await LivechatService.send(db_session, session.id, content, role=role)
        assert recording_manager.broadcasts == []

    @pytest.mark.asyncio
    async def test_list_messages_order_and_paging(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)
        for text in ("one", "two", "three"):
            await LivechatService.send(db_session, session.id, text)

        newest_first = await LivechatService.list_messages(db_session, session.id)
        oldest_first = await LivechatService.list_messages(
            db_session, session.id, direction="asc", limit=2
        )
        second_page = await LivechatService.list_messages(
            db_session, session.id, direction="asc", limit=2, offset=2
        )

        assert [m.content for m in newest_first] == ["three", "two", "one"]
        assert [m.content for m in oldest_first] == ["one", "two"]
        assert [m.content for m in second_page] == ["three"]

    @pytest.mark.asyncio
    async def test_list_messages_since(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)
        await LivechatService.send(db_session, session.id, "old")

        assert await LivechatService.list_messages(
            db_session, session.id, since=utcnow() + timedelta(minutes=1)
        ) == []

    @pytest.mark.asyncio
    async def test_clear(
        self, db_session: AsyncSession, recording_manager: RecordingManager
    ) -> None:
        session = await LivechatService.start_session(db_session)
        await LivechatService.send(db_session, session.id, "a")
        await LivechatService.send(db_session, session.id, "b")

        assert await LivechatService.clear(db_session, session.id) == 2
        assert await LivechatService.list_messages(db_session, session.id) == []
