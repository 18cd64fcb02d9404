"""Portfolio project model.

Projects are drafted and edited in the admin and shown publicly once
is_published is set. The AI README helper writes into ai_readme_draft;
an admin approves it before it is used.
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base


class Project(Base):
    """Portfolio project.

    Attributes:
        id: UUID primary key
        slug: Unique public slug (may contain '/' for nested paths)
        title: Project title
        summary: Short description used on cards and in metadata
        description: Long-form description (markdown)
        cover_image: Cover image URL
        gallery: List of image URLs
        tags: Lowercased tag list
        tech_stack: Technologies used
        live_url: Deployed site URL
        repo_url: Source repository URL
        status: draft, published or archived
        is_featured: Shown on the home page
        is_published: Visible to the public
        section_slug: Section the project is listed under
        views: Public view counter
        ai_readme_draft: Generated README awaiting approval
        ai_readme_approved: Whether the generated README was approved
        order_index: Sort position
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    slug: Mapped[str] = mapped_column(String(180), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(140), nullable=False)

    summary: Mapped[str | None] = mapped_column(String(300), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    cover_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    gallery: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    tags: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    tech_stack: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    live_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    repo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
        server_default=text("'draft'"),
    )

    is_featured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        index=True,
    )

    section_slug: Mapped[str | None] = mapped_column(String(180), nullable=True, index=True)

    views: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    ai_readme_draft: Mapped[str | None] = mapped_column(Text, nullable=True)

    ai_readme_approved: Mapped[bool] = mapped_column(
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
        return (
            f"<Project(id={self.id!r}, slug={self.slug!r}, "
            f"is_published={self.is_published!r})>"
        )
