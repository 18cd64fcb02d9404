"""Schemas for settings, media, contact, analytics and AI helpers."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from portfolio.schemas.common import RequestModel


class SettingUpdate(BaseModel):
    value: dict[str, Any] = Field(..., description="Setting object")
    merge: bool = Field(True, description="Deep-merge into the stored value")


class MediaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    path: str = Field(..., description="Object key")
    bucket: str
    mime_type: str | None = None
    size_bytes: int | None = None
    alt: str | None = None
    url: str | None = Field(None, description="Public URL")
    created_at: datetime


class ContactRequest(RequestModel):
    # Free-form here; validate_contact_input owns the rules and messages
    name: Any = None
    email: Any = None
    subject: Any = None
    message: Any = None
    phone: Any = None
    company: Any = None
    website: Any = None
    budget: Any = None
    timeline: Any = None
    source: Any = None


class ContactResponse(BaseModel):
    ok: bool = True
    delivered: bool = Field(..., description="Notification email was sent")


class AnalyticsIngestResponse(BaseModel):
    ok: bool = True
    received: dict[str, Any] = Field(..., description="{name, path, ts} as normalized")
    stored: bool = Field(..., description="False when deduped or analytics is off")
    warnings: list[str] = Field(default_factory=list)


class BlogDraftRequest(RequestModel):
    topic: str | None = Field(None, description="What the post is about")
    tone: str | None = Field(None, description="neutral, casual, professional or technical")
    keywords: list[str] | None = Field(None, description="SEO keywords")
    goal: str | None = None
    audience: str | None = None
    outline: list[str] | None = Field(None, description="Section headings to follow")
    max_words: int | None = Field(None, description="200..4000, default 1200")


class ReadmeRequest(RequestModel):
    project_id: str = Field(..., description="Project UUID")
    tone: str | None = None
    badges: bool = False


class EmbeddingsRequest(RequestModel):
    texts: Any = Field(None, description="Texts to embed (1..100)")
