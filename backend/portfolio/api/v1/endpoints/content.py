"""Public content API endpoints.

- GET /api/v1/projects - Published projects (paginated, filter by section/featured)
- GET /api/v1/projects/{slug} - One published project (slug may contain '/')
- POST /api/v1/projects/{slug}/views - Increment the view counter
- GET /api/v1/blogs - Published posts (paginated, filter by tag)
- GET /api/v1/blogs/{slug} - One published post
- GET /api/v1/sections - Published sections
- GET /api/v1/sections/tree - Published content tree
- GET /api/v1/skills - Published skills
- GET /api/v1/timeline - Published timeline entries

Services raise domain errors; the global handlers turn them into
{"error": str, "code": str, "request_id": str} responses.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.logging import get_logger
from portfolio.core.rate_limit import rate_limit, section_tree_limiter
from portfolio.schemas.common import PageInfo
from portfolio.schemas.content import (
    BlogListResponse,
    BlogResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectViewsResponse,
    SectionResponse,
    SkillResponse,
    TimelineResponse,
)
from portfolio.schemas.content_node import ContentTreeResponse
from portfolio.services.content import (
    BlogService,
    ProjectService,
    SectionService,
    SkillService,
    TimelineService,
)
from portfolio.services.content_tree import ContentTreeService

logger = get_logger(__name__)

router = APIRouter()


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


@router.get(
    "/projects",
    response_model=ProjectListResponse,
    summary="List published projects",
)
async def list_projects(
    request: Request,
    section: str | None = Query(default=None, description="Section slug filter"),
    featured: bool | None = Query(default=None, description="Only featured projects"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> ProjectListResponse:
    logger.debug(
        "List projects request",
        extra={"request_id": _get_request_id(request), "section": section, "page": page},
    )
    projects, total, page_value, limit_value = await ProjectService.list_published(
        session, section_slug=section, featured=featured, page=page, limit=limit
    )
    return ProjectListResponse(
        items=[ProjectResponse.model_validate(p) for p in projects],
        pagination=PageInfo(page=page_value, limit=limit_value, total=total),
    )


@router.post(
    "/projects/{slug}/views",
    response_model=ProjectViewsResponse,
    summary="Count a project view",
)
async def increment_project_views(
    slug: str,
    session: AsyncSession = Depends(get_session),
) -> ProjectViewsResponse:
    views = await ProjectService.increment_views(session, slug)
    return ProjectViewsResponse(slug=slug, views=views)


@router.get(
    "/projects/{slug:path}",
    response_model=ProjectResponse,
    summary="Get a published project",
)
async def get_project(
    slug: str,
    session: AsyncSession = Depends(get_session),
) -> ProjectResponse:
    project = await ProjectService.get_published_by_slug(session, slug.split("/"))
    return ProjectResponse.model_validate(project)


@router.get(
    "/blogs",
    response_model=BlogListResponse,
    summary="List published blog posts",
)
async def list_blogs(
    tag: str | None = Query(default=None, description="Tag filter"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> BlogListResponse:
    blogs, total, page_value, limit_value = await BlogService.list_published(
        session, tag=tag, page=page, limit=limit
    )
    return BlogListResponse(
        items=[BlogResponse.model_validate(b) for b in blogs],
        pagination=PageInfo(page=page_value, limit=limit_value, total=total),
    )


@router.get("/blogs/{slug}", response_model=BlogResponse, summary="Get a published blog post")
async def get_blog(
    slug: str,
    session: AsyncSession = Depends(get_session),
) -> BlogResponse:
    return BlogResponse.model_validate(await BlogService.get_published_by_slug(session, slug))


@router.get("/sections", response_model=list[SectionResponse], summary="List published sections")
async def list_sections(session: AsyncSession = Depends(get_session)) -> list[SectionResponse]:
    return [SectionResponse.model_validate(s) for s in await SectionService.list_published(session)]


@router.get(
    "/sections/tree",
    response_model=ContentTreeResponse,
    summary="Published content tree",
    dependencies=[Depends(rate_limit(section_tree_limiter))],
)
async def get_section_tree(
    max_depth: int = Query(default=25, ge=1, le=50, alias="maxDepth"),
    root_id: str | None = Query(default=None, alias="rootId"),
    session: AsyncSession = Depends(get_session),
) -> ContentTreeResponse:
    listing = await ContentTreeService.list_tree(
        session, scope="public", max_depth=max_depth, root_id=root_id
    )
    return ContentTreeResponse(**listing)


@router.get("/skills", response_model=list[SkillResponse], summary="List published skills")
async def list_skills(session: AsyncSession = Depends(get_session)) -> list[SkillResponse]:
    return [SkillResponse.model_validate(s) for s in await SkillService.list_published(session)]


@router.get(
    "/timeline", response_model=list[TimelineResponse], summary="List published timeline entries"
)
async def list_timeline(session: AsyncSession = Depends(get_session)) -> list[TimelineResponse]:
    return [
        TimelineResponse.model_validate(t) for t in await TimelineService.list_published(session)
    ]
