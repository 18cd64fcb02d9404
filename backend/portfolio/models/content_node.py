"""Content tree node model.

The admin content tree is an adjacency list: each node points at its
parent and carries a slug. A node's public path is its ancestors' slugs
joined with '/'.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base

NODE_TYPES = frozenset({"folder", "section", "project", "blog"})


class ContentNode(Base):
    """Node in the content tree.

    Attributes:
        id: UUID primary key
        parent_id: Parent node; NULL for roots. Deleting a parent cascades.
        node_type: folder, section, project or blog
        title: Display title
        slug: Path segment
        ref_id: Id of the referenced project/blog/section row, if any
        order_index: Sort position among siblings
        icon: Optional icon name for the admin UI
        description: Optional description
        is_published: Hidden from public reads when false
        meta: Free-form JSON (for example {"noindex": true})
    """

    __tablename__ = "content_nodes"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    parent_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("content_nodes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    node_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="folder",
        server_default=text("'folder'"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    slug: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)

    ref_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

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
            f"<ContentNode(id={self.id!r}, type={self.node_type!r}, "
            f"title={self.title!r}, parent_id={self.parent_id!r})>"
        )
