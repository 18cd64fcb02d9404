"""Page section model (hero, about, services...)."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base


class Section(Base):
    """Content section rendered on the public site.

    Attributes:
        id: UUID primary key
        kind: Renderer key (hero, about, services, custom...)
        slug: Unique public slug
        title: Section title
        subtitle: Optional subtitle
        data: Renderer payload
        is_published: Hidden from public reads when false
        order_index: Position on the home page
        seo_title: Optional SEO title override
        seo_description: Optional SEO description override
        noindex: Exclude from search indexing and the sitemap
    """

    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="custom",
        server_default=text("'custom'"),
    )

    slug: Mapped[str] = mapped_column(String(180), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    subtitle: Mapped[str | None] = mapped_column(String(300), nullable=True)

    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
        index=True,
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    seo_title: Mapped[str | None] = mapped_column(String(70), nullable=True)

    seo_description: Mapped[str | None] = mapped_column(String(160), nullable=True)

    noindex: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
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

    def __repr__(self) -> str:
        return f"<Section(id={self.id!r}, slug={self.slug!r}, kind={self.kind!r})>"
