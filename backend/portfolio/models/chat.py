"""Chatbot transcripts and live chat sessions/messages."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio.core.database import Base

CHATBOT_ROLES = frozenset({"user", "assistant", "system"})
LIVECHAT_ROLES = frozenset({"visitor", "agent", "system"})
LIVECHAT_STATUSES = frozenset({"open", "resolved"})


class ChatbotMessage(Base):
    """One turn of a chatbot conversation.

    Attributes:
        session_id: Client-chosen conversation id
        role: user, assistant or system
        content: Message text
        meta: Model, token usage, fallback flag
    """

    __tablename__ = "chatbot_messages"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    session_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)

    role: Mapped[str] = mapped_column(String(20), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    meta: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<ChatbotMessage(session_id={self.session_id!r}, role={self.role!r})>"


class LivechatSession(Base):
    """Visitor conversation with a human agent.

    Attributes:
        visitor_name: Optional name given by the visitor
        visitor_email: Optional email given by the visitor
        status: open or resolved
        last_message_at: Time of the latest message
    """

    __tablename__ = "livechat_sessions"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    visitor_name: Mapped[str | None] = mapped_column(String(80), nullable=True)

    visitor_email: Mapped[str | None] = mapped_column(String(254), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="open",
        server_default=text("'open'"),
        index=True,
    )

    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(UTC),
    )

    messages: Mapped[list["LivechatMessage"]] = relationship(
        "LivechatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<LivechatSession(id={self.id!r}, status={self.status!r})>"


class LivechatMessage(Base):
    """Message in a live chat session.

    Attributes:
        session_id: Owning session (cascade delete)
        role: visitor, agent or system
        content: Message text
        meta: Client metadata
    """

    __tablename__ = "livechat_messages"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    session_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("livechat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    meta: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(UTC),
    )

    session: Mapped["LivechatSession"] = relationship(
        "LivechatSession", back_populates="messages"
    )

    def __repr__(self) -> str:
        return (
            f"<LivechatMessage(session_id={self.session_id!r}, role={self.role!r})>"
        )
