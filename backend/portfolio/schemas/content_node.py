"""Schemas for the admin content tree."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from portfolio.schemas.common import RequestModel


class ContentNodeWrite(RequestModel):
    """Create (title required) or rename/move/reorder a node."""

    title: str | None = Field(
        None, validation_alias=AliasChoices("title", "name"), description="Display title"
    )
    parent_id: str | None = Field(None, description="Parent node id (null for a root)")
    node_type: str | None = Field(
        None,
        validation_alias=AliasChoices("node_type", "nodeType", "type"),
        description="folder, section, project or blog",
    )
    slug: str | None = Field(None, description="Path segment (derived from title)")
    ref_id: str | None = Field(
        None,
        validation_alias=AliasChoices("ref_id", "refId", "itemId"),
        description="Id of the linked section, project or blog",
    )
    order_index: int | None = Field(
        None,
        validation_alias=AliasChoices("order_index", "orderIndex", "order"),
        description="Sort position among siblings",
    )
    icon: str | None = Field(None, description="Icon name")
    description: str | None = Field(None, description="Short description")
    is_published: bool | None = Field(None, description="Visible to the public")
    meta: dict[str, Any] | None = Field(None, description="Free-form metadata (noindex...)")


class ContentNodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Node UUID")
    parent_id: str | None = Field(None, description="Parent node id")
    node_type: str = Field(..., description="folder, section, project or blog")
    title: str = Field(..., description="Display title")
    slug: str | None = Field(None, description="Path segment")
    ref_id: str | None = Field(None, description="Linked entity id")
    order_index: int = Field(0, description="Sort position")
    icon: str | None = None
    description: str | None = None
    is_published: bool = True
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class ContentTreeResponse(BaseModel):
    """Flat normalized nodes plus the nested tree built from them."""

    nodes: list[dict[str, Any]] = Field(..., description="Nodes in tree order")
    tree: list[dict[str, Any]] = Field(..., description="Root nodes with nested children")
