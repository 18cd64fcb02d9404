"""Blog post model."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base


class Blog(Base):
    """Blog post.

    Attributes:
        id: UUID primary key
        slug: Unique public slug
        title: Post title
        excerpt: Summary shown in listings and metadata
        content: Markdown body
        cover_image: Cover image URL
        tags: Lowercased tag list
        status: draft, published or archived
        is_published: Visible to the public
        published_at: Set on first publish and kept when unpublished
        reading_time: Estimated minutes (1..180)
        seo_title: Optional SEO title override
        seo_description: Optional SEO description override
        ai_draft: Generated draft awaiting approval
        ai_draft_approved: Whether the generated draft was approved
        order_index: Sort position
    """

    __tablename__ = "blogs"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    slug: Mapped[str] = mapped_column(String(180), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(140), nullable=False)

    excerpt: Mapped[str | None] = mapped_column(String(320), nullable=True)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    cover_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    tags: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
        server_default=text("'draft'"),
    )

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        index=True,
    )

    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    reading_time: Mapped[int | None] = mapped_column(Integer, nullable=True)

    seo_title: Mapped[str | None] = mapped_column(String(70), nullable=True)

    seo_description: Mapped[str | None] = mapped_column(String(160), nullable=True)

    ai_draft: Mapped[str | None] = mapped_column(Text, nullable=True)

    ai_draft_approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
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
        return f"<Blog(id={self.id!r}, slug={self.slug!r}, status={self.status!r})>"
