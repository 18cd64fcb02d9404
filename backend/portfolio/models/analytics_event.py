"""Stored analytics event."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base


class AnalyticsEvent(Base):
    """One ingested analytics event.

    Attributes:
        event_name: page_view, project_view, contact_submit...
        path: Site-relative path the event happened on
        referrer: Referrer URL (clipped)
        user_agent: Client User-Agent
        ip: Client IP
        device: mobile, tablet or desktop
        payload: Normalized event (ids, slugs, utm, outbound, meta), including
            the client ts clamped to server time
        dedupe_key: Hash of name, path, entity slugs and visitor id
            (NULL for server-side events)
        created_at: Server receive time
    """

    __tablename__ = "analytics_events"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    event_name: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    path: Mapped[str] = mapped_column(String(512), nullable=False, index=True)

    referrer: Mapped[str | None] = mapped_column(String(800), nullable=True)

    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    device: Mapped[str | None] = mapped_column(String(16), nullable=True)

    dedupe_key: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    payload: Mapped[dict[str, Any]] = mapped_column(
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
        return f"<AnalyticsEvent(id={self.id!r}, name={self.event_name!r}, path={self.path!r})>"
