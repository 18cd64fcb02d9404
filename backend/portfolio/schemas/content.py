"""Pydantic v2 schemas for projects, blogs, sections, skills and timeline.

Request bodies accept snake_case or camelCase keys; values are normalized
and limit-checked by the content services, so most request fields are
loosely typed here. Responses use snake_case.
"""

from datetime import date, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from portfolio.schemas.common import PageInfo, RequestModel


# Projects


class ProjectWrite(RequestModel):
    """Create (title required) or partial update of a project."""

    title: str | None = Field(None, description="Project title")
    slug: str | None = Field(None, description="Public slug (derived from title when blank)")
    summary: str | None = Field(None, description="Short description")
    description: str | None = Field(None, description="Long description (markdown)")
    cover_image: str | None = Field(
        None,
        validation_alias=AliasChoices("cover_image", "coverImage", "coverImageUrl"),
        description="Cover image URL",
    )
    gallery: list[str] | None = Field(None, description="Gallery image URLs")
    tags: list[str] | None = Field(None, description="Tags")
    tech_stack: list[str] | None = Field(None, description="Technologies used")
    live_url: str | None = Field(None, description="Deployed site URL")
    repo_url: str | None = Field(None, description="Source repository URL")
    status: str | None = Field(None, description="draft, published or archived")
    is_featured: bool | None = Field(None, description="Show on the home page")
    is_published: bool | None = Field(None, description="Visible to the public")
    section_slug: str | None = Field(None, description="Owning section slug")
    order_index: int | None = Field(None, description="Sort position")


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Project UUID")
    slug: str = Field(..., description="Public slug")
    title: str = Field(..., description="Project title")
    summary: str | None = Field(None, description="Short description")
    description: str | None = Field(None, description="Long description")
    cover_image: str | None = Field(None, description="Cover image URL")
    gallery: list[str] = Field(default_factory=list, description="Gallery image URLs")
    tags: list[str] = Field(default_factory=list, description="Tags")
    tech_stack: list[str] = Field(default_factory=list, description="Technologies used")
    live_url: str | None = Field(None, description="Deployed site URL")
    repo_url: str | None = Field(None, description="Source repository URL")
    status: str = Field(..., description="Workflow status")
    is_featured: bool = Field(..., description="Shown on the home page")
    is_published: bool = Field(..., description="Visible to the public")
    section_slug: str | None = Field(None, description="Owning section slug")
    views: int = Field(0, description="Public view counter")
    order_index: int = Field(0, description="Sort position")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class AdminProjectResponse(ProjectResponse):
    ai_readme_draft: str | None = Field(None, description="Generated README awaiting approval")
    ai_readme_approved: bool = Field(False, description="Generated README approved")


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse] = Field(..., description="Projects on this page")
    pagination: PageInfo


class ProjectViewsResponse(BaseModel):
    slug: str = Field(..., description="Project slug")
    views: int = Field(..., description="View count after the increment")


# Blogs


class BlogWrite(RequestModel):
    """Create (title required) or partial update of a blog post."""

    title: str | None = Field(None, description="Post title")
    slug: str | None = Field(None, description="Public slug (derived from title when blank)")
    excerpt: str | None = Field(None, description="Short summary")
    content: str | None = Field(None, description="Body (markdown)")
    cover_image: str | None = Field(
        None,
        validation_alias=AliasChoices("cover_image", "coverImage", "coverImageUrl"),
        description="Cover image URL",
    )
    tags: list[str] | None = Field(None, description="Tags")
    status: str | None = Field(None, description="draft, published or archived")
    published_at: str | None = Field(None, description="ISO publish time")
    reading_time: Any = Field(
        None,
        validation_alias=AliasChoices("reading_time", "readingTime", "readingTimeMinutes"),
        description="Reading time in minutes (estimated when absent)",
    )
    seo_title: str | None = Field(None, description="SEO title override")
    seo_description: str | None = Field(None, description="SEO description override")
    order_index: int | None = Field(None, description="Sort position")


class BlogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Blog UUID")
    slug: str = Field(..., description="Public slug")
    title: str = Field(..., description="Post title")
    excerpt: str | None = Field(None, description="Short summary")
    content: str = Field("", description="Body (markdown)")
    cover_image: str | None = Field(None, description="Cover image URL")
    tags: list[str] = Field(default_factory=list, description="Tags")
    status: str = Field(..., description="Workflow status")
    is_published: bool = Field(..., description="Visible to the public")
    published_at: datetime | None = Field(None, description="First publish time")
    reading_time: int | None = Field(None, description="Reading time in minutes")
    seo_title: str | None = Field(None, description="SEO title override")
    seo_description: str | None = Field(None, description="SEO description override")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class AdminBlogResponse(BlogResponse):
    ai_draft: str | None = Field(None, description="Generated draft awaiting approval")
    ai_draft_approved: bool = Field(False, description="Generated draft approved")
    order_index: int = Field(0, description="Sort position")


class BlogListResponse(BaseModel):
    items: list[BlogResponse] = Field(..., description="Posts on this page")
    pagination: PageInfo


# Sections


class SectionWrite(RequestModel):
    title: str | None = Field(None, description="Section title")
    slug: str | None = Field(None, description="Public slug")
    kind: str | None = Field(None, description="Section kind (hero, about, custom...)")
    subtitle: str | None = Field(None, description="Subtitle")
    data: dict[str, Any] | None = Field(None, description="Free-form section payload")
    is_published: bool | None = Field(None, description="Visible to the public")
    order_index: int | None = Field(None, description="Sort position")
    seo_title: str | None = Field(None, description="SEO title override")
    seo_description: str | None = Field(None, description="SEO description override")
    noindex: bool | None = Field(None, description="Exclude from search engines")


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    slug: str
    title: str
    subtitle: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    is_published: bool
    order_index: int = 0
    seo_title: str | None = None
    seo_description: str | None = None
    noindex: bool = False
    created_at: datetime
    updated_at: datetime


# Skills and timeline


class SkillWrite(RequestModel):
    name: str | None = Field(None, description="Skill name")
    level: int | None = Field(None, description="Proficiency 0..100")
    category: str | None = Field(None, description="Grouping label")
    order_index: int | None = Field(None, description="Sort position")
    is_published: bool | None = Field(None, description="Visible to the public")


class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    level: int | None = None
    category: str | None = None
    order_index: int = 0
    is_published: bool


class TimelineWrite(RequestModel):
    title: str | None = Field(None, description="Role or milestone")
    org: str | None = Field(None, description="Organization")
    location: str | None = Field(None, description="Location")
    start_date: str | None = Field(None, description="YYYY-MM-DD")
    end_date: str | None = Field(None, description="YYYY-MM-DD")
    is_current: bool | None = Field(None, description="Ongoing (clears end_date)")
    description: str | None = Field(None, description="Details")
    order_index: int | None = Field(None, description="Sort position")
    is_published: bool | None = Field(None, description="Visible to the public")


class TimelineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    org: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_current: bool = False
    description: str | None = None
    order_index: int = 0
    is_published: bool
