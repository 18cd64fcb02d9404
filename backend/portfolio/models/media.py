"""Uploaded media file model."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.database import Base


class Media(Base):
    """Object stored in S3-compatible storage.

    Attributes:
        path: Object key (YYYY/MM/<id>-<name>.<ext>)
        bucket: Logical bucket name
        mime_type: Content type sent at upload
        size_bytes: Object size
        alt: Alt text
        url: Public URL
    """

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    path: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)

    bucket: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="media",
        server_default=text("'media'"),
    )

    mime_type: Mapped[str | None] = mapped_column(String(128), nullable=True)

    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    alt: Mapped[str | None] = mapped_column(String(300), nullable=True)

    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

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
        return f"<Media(id={self.id!r}, path={self.path!r})>"
