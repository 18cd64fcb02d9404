"""Create the portfolio schema.

Tables:
- admins, admin_sessions: back-office users and their login sessions
- sections, projects, blogs, skills, timeline: public content
- content_nodes: admin content tree (self-referencing adjacency list)
- settings: keyed JSON settings objects
- media: uploaded objects in S3-compatible storage
- analytics_events: ingested analytics events
- chatbot_messages, livechat_sessions, livechat_messages: chat history

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _jsonb_column(name: str, default: str = "'{}'::jsonb") -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        server_default=sa.text(default),
        nullable=False,
    )


def _flag_column(name: str, default: bool) -> sa.Column:
    return sa.Column(
        name,
        sa.Boolean(),
        server_default=sa.text("true" if default else "false"),
        nullable=False,
    )


def _order_column() -> sa.Column:
    return sa.Column("order_index", sa.Integer(), server_default=sa.text("0"), nullable=False)


def upgrade() -> None:
    """Create all portfolio tables."""
    # --- admins ---
    op.create_table(
        "admins",
        _id_column(),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(length=120), nullable=True),
        sa.Column("role", sa.String(length=20), server_default=sa.text("'admin'"), nullable=False),
        _flag_column("is_active", True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_email"), "admins", ["email"], unique=True)

    # --- admin_sessions ---
    op.create_table(
        "admin_sessions",
        _id_column(),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("admin_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        _flag_column("revoked", False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["admin_id"], ["admins.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admin_sessions_token"), "admin_sessions", ["token"], unique=True)
    op.create_index(op.f("ix_admin_sessions_admin_id"), "admin_sessions", ["admin_id"])

    # --- sections ---
    op.create_table(
        "sections",
        _id_column(),
        sa.Column("kind", sa.String(length=50), server_default=sa.text("'custom'"), nullable=False),
        sa.Column("slug", sa.String(length=180), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("subtitle", sa.String(length=300), nullable=True),
        _jsonb_column("data"),
        _flag_column("is_published", True),
        _order_column(),
        sa.Column("seo_title", sa.String(length=70), nullable=True),
        sa.Column("seo_description", sa.String(length=160), nullable=True),
        _flag_column("noindex", False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sections_slug"), "sections", ["slug"], unique=True)
    op.create_index(op.f("ix_sections_is_published"), "sections", ["is_published"])

    # --- projects ---
    op.create_table(
        "projects",
        _id_column(),
        sa.Column("slug", sa.String(length=180), nullable=False),
        sa.Column("title", sa.String(length=140), nullable=False),
        sa.Column("summary", sa.String(length=300), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(length=2048), nullable=True),
        _jsonb_column("gallery", "'[]'::jsonb"),
        _jsonb_column("tags", "'[]'::jsonb"),
        _jsonb_column("tech_stack", "'[]'::jsonb"),
        sa.Column("live_url", sa.String(length=2048), nullable=True),
        sa.Column("repo_url", sa.String(length=2048), nullable=True),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'draft'"), nullable=False),
        _flag_column("is_featured", False),
        _flag_column("is_published", False),
        sa.Column("section_slug", sa.String(length=180), nullable=True),
        sa.Column("views", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("ai_readme_draft", sa.Text(), nullable=True),
        _flag_column("ai_readme_approved", False),
        _order_column(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_slug"), "projects", ["slug"], unique=True)
    op.create_index(op.f("ix_projects_is_published"), "projects", ["is_published"])
    op.create_index(op.f("ix_projects_section_slug"), "projects", ["section_slug"])

    # --- blogs ---
    op.create_table(
        "blogs",
        _id_column(),
        sa.Column("slug", sa.String(length=180), nullable=False),
        sa.Column("title", sa.String(length=140), nullable=False),
        sa.Column("excerpt", sa.String(length=320), nullable=True),
        sa.Column("content", sa.Text(), server_default=sa.text("''"), nullable=False),
        sa.Column("cover_image", sa.String(length=2048), nullable=True),
        _jsonb_column("tags", "'[]'::jsonb"),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'draft'"), nullable=False),
        _flag_column("is_published", False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reading_time", sa.Integer(), nullable=True),
        sa.Column("seo_title", sa.String(length=70), nullable=True),
        sa.Column("seo_description", sa.String(length=160), nullable=True),
        sa.Column("ai_draft", sa.Text(), nullable=True),
        _flag_column("ai_draft_approved", False),
        _order_column(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_blogs_slug"), "blogs", ["slug"], unique=True)
    op.create_index(op.f("ix_blogs_is_published"), "blogs", ["is_published"])
    op.create_index(op.f("ix_blogs_published_at"), "blogs", ["published_at"])

    # --- skills ---
    op.create_table(
        "skills",
        _id_column(),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("level", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=80), nullable=True),
        _order_column(),
        _flag_column("is_published", True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_skills_category"), "skills", ["category"])

    # --- timeline ---
    op.create_table(
        "timeline",
        _id_column(),
        sa.Column("title", sa.String(length=140), nullable=False),
        sa.Column("org", sa.String(length=140), nullable=True),
        sa.Column("location", sa.String(length=140), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        _flag_column("is_current", False),
        sa.Column("description", sa.Text(), nullable=True),
        _order_column(),
        _flag_column("is_published", True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- content_nodes ---
    op.create_table(
        "content_nodes",
        _id_column(),
        sa.Column("parent_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column(
            "node_type", sa.String(length=20), server_default=sa.text("'folder'"), nullable=False
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=True),
        sa.Column("ref_id", sa.String(length=64), nullable=True),
        _order_column(),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        _flag_column("is_published", True),
        _jsonb_column("meta"),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["parent_id"], ["content_nodes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_content_nodes_parent_id"), "content_nodes", ["parent_id"])
    op.create_index(op.f("ix_content_nodes_slug"), "content_nodes", ["slug"])

    # --- settings ---
    op.create_table(
        "settings",
        _id_column(),
        sa.Column("key", sa.String(length=64), nullable=False),
        _jsonb_column("value"),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_settings_key"), "settings", ["key"], unique=True)

    # --- media ---
    op.create_table(
        "media",
        _id_column(),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("bucket", sa.String(length=64), server_default=sa.text("'media'"), nullable=False),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("alt", sa.String(length=300), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("path"),
    )

    # --- analytics_events ---
    op.create_table(
        "analytics_events",
        _id_column(),
        sa.Column("event_name", sa.String(length=40), nullable=False),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("referrer", sa.String(length=800), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("device", sa.String(length=16), nullable=True),
        sa.Column("dedupe_key", sa.String(length=64), nullable=True),
        _jsonb_column("payload"),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_analytics_events_event_name"), "analytics_events", ["event_name"])
    op.create_index(op.f("ix_analytics_events_path"), "analytics_events", ["path"])
    op.create_index(op.f("ix_analytics_events_created_at"), "analytics_events", ["created_at"])
    op.create_index(op.f("ix_analytics_events_dedupe_key"), "analytics_events", ["dedupe_key"])

    # --- chatbot_messages ---
    op.create_table(
        "chatbot_messages",
        _id_column(),
        sa.Column("session_id", sa.String(length=120), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _jsonb_column("meta"),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_chatbot_messages_session_id"), "chatbot_messages", ["session_id"])
    op.create_index(op.f("ix_chatbot_messages_created_at"), "chatbot_messages", ["created_at"])

    # --- livechat_sessions ---
    op.create_table(
        "livechat_sessions",
        _id_column(),
        sa.Column("visitor_name", sa.String(length=80), nullable=True),
        sa.Column("visitor_email", sa.String(length=254), nullable=True),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'open'"), nullable=False),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_livechat_sessions_status"), "livechat_sessions", ["status"])

    # --- livechat_messages ---
    op.create_table(
        "livechat_messages",
        _id_column(),
        sa.Column("session_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _jsonb_column("meta"),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["session_id"], ["livechat_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_livechat_messages_session_id"), "livechat_messages", ["session_id"])
    op.create_index(op.f("ix_livechat_messages_created_at"), "livechat_messages", ["created_at"])


def downgrade() -> None:
    """Drop all portfolio tables."""
    op.drop_table("livechat_messages")
    op.drop_table("livechat_sessions")
    op.drop_table("chatbot_messages")
    op.drop_table("analytics_events")
    op.drop_table("media")
    op.drop_table("settings")
    op.drop_table("content_nodes")
    op.drop_table("timeline")
    op.drop_table("skills")
    op.drop_table("blogs")
    op.drop_table("projects")
    op.drop_table("sections")
    op.drop_table("admin_sessions")
    op.drop_table("admins")
