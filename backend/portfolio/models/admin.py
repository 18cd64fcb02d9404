"""Admin accounts and their login sessions.

Admins sign in with email and password (werkzeug hashes). A successful
login creates an AdminSession row holding an opaque token that the client
sends back as a cookie or Bearer header.
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio.core.database import Base


class Admin(Base):
    """Back-office user.

    Attributes:
        id: UUID primary key
        email: Normalized (trimmed, lowercased) login email, unique
        password_hash: werkzeug password hash; NULL means the account cannot log in
        display_name: Name shown in the admin UI
        role: Only 'admin' grants access to admin endpoints
        is_active: Inactive admins cannot log in
        created_at: Timestamp when the admin was created
        updated_at: Timestamp when the admin was last updated
    """

    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    email: Mapped[str] = mapped_column(
        String(254),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    display_name: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="admin",
        server_default=text("'admin'"),
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
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

    sessions: Mapped[list["AdminSession"]] = relationship(
        "AdminSession",
        back_populates="admin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Admin(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class AdminSession(Base):
    """Login session for an admin.

    Attributes:
        id: UUID primary key
        token: Opaque secrets.token_urlsafe value, unique
        admin_id: Owning admin
        expires_at: Session is dead after this instant
        user_agent: User-Agent seen at login
        ip: Client IP seen at login
        revoked: Set on logout
    """

    __tablename__ = "admin_sessions"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    token: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        index=True,
    )

    admin_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("admins.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    revoked: Mapped[bool] = mapped_column(
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

    admin: Mapped["Admin"] = relationship("Admin", back_populates="sessions")

    def __repr__(self) -> str:
        return (
            f"<AdminSession(id={self.id!r}, admin_id={self.admin_id!r}, "
            f"revoked={self.revoked!r})>"
        )
