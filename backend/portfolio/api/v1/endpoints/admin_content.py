"""Admin content management endpoints.

Mounted under /api/v1/admin behind require_admin.

- GET/POST /projects, GET/PATCH/DELETE /projects/{project_id}
- GET/POST /blogs, GET/PATCH/DELETE /blogs/{blog_id}
- GET/POST /sections, GET/PATCH/DELETE /sections/{section_id}
- GET/POST /skills, GET/PATCH/DELETE /skills/{skill_id}
- GET/POST /timeline, GET/PATCH/DELETE /timeline/{entry_id}
- GET/POST /content-nodes, PATCH/DELETE /content-nodes/{node_id}

Admin listings include drafts. Writes accept snake_case or camelCase keys;
PATCH bodies only touch the fields they carry.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import get_session
from portfolio.core.feature_flags import require_feature
from portfolio.core.logging import get_logger
from portfolio.schemas.common import OkResponse
from portfolio.schemas.content import (
    AdminBlogResponse,
    AdminProjectResponse,
    BlogWrite,
    ProjectWrite,
    SectionResponse,
    SectionWrite,
    SkillResponse,
    SkillWrite,
    TimelineResponse,
    TimelineWrite,
)
from portfolio.schemas.content_node import (
    ContentNodeResponse,
    ContentNodeWrite,
    ContentTreeResponse,
)
from portfolio.services.content import (
    BlogService,
    ProjectService,
    SectionService,
    SkillService,
    TimelineService,
)
from portfolio.services.content_tree import ContentTreeService

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_feature("admin_cms"))])


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


# Projects


@router.get("/projects", response_model=list[AdminProjectResponse], summary="All projects")
async def list_projects(session: AsyncSession = Depends(get_session)) -> list[AdminProjectResponse]:
    return [AdminProjectResponse.model_validate(p) for p in await ProjectService.list_all(session)]


@router.post(
    "/projects",
    response_model=AdminProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    request: Request,
    data: ProjectWrite,
    session: AsyncSession = Depends(get_session),
) -> AdminProjectResponse:
    logger.info(
        "Create project request",
        extra={"request_id": _get_request_id(request), "title": data.title},
    )
    return AdminProjectResponse.model_validate(
        await ProjectService.create(session, data.to_fields())
    )


@router.get("/projects/{project_id}", response_model=AdminProjectResponse, summary="Get a project")
async def get_project(
    project_id: str, session: AsyncSession = Depends(get_session)
) -> AdminProjectResponse:
    return AdminProjectResponse.model_validate(await ProjectService.get(session, project_id))


@router.patch(
    "/projects/{project_id}", response_model=AdminProjectResponse, summary="Update a project"
)
async def update_project(
    project_id: str,
    data: ProjectWrite,
    session: AsyncSession = Depends(get_session),
) -> AdminProjectResponse:
    return AdminProjectResponse.model_validate(
        await ProjectService.update(session, project_id, data.to_fields())
    )


@router.delete("/projects/{project_id}", response_model=OkResponse, summary="Delete a project")
async def delete_project(project_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await ProjectService.delete(session, project_id)
    return OkResponse()


# Blogs


@router.get("/blogs", response_model=list[AdminBlogResponse], summary="All blog posts")
async def list_blogs(session: AsyncSession = Depends(get_session)) -> list[AdminBlogResponse]:
    return [AdminBlogResponse.model_validate(b) for b in await BlogService.list_all(session)]


@router.post(
    "/blogs",
    response_model=AdminBlogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a blog post",
)
async def create_blog(
    request: Request,
    data: BlogWrite,
    session: AsyncSession = Depends(get_session),
) -> AdminBlogResponse:
    logger.info(
        "Create blog request",
        extra={"request_id": _get_request_id(request), "title": data.title},
    )
    return AdminBlogResponse.model_validate(await BlogService.create(session, data.to_fields()))


@router.get("/blogs/{blog_id}", response_model=AdminBlogResponse, summary="Get a blog post")
async def get_blog(blog_id: str, session: AsyncSession = Depends(get_session)) -> AdminBlogResponse:
    return AdminBlogResponse.model_validate(await BlogService.get(session, blog_id))


@router.patch("/blogs/{blog_id}", response_model=AdminBlogResponse, summary="Update a blog post")
async def update_blog(
    blog_id: str,
    data: BlogWrite,
    session: AsyncSession = Depends(get_session),
) -> AdminBlogResponse:
    return AdminBlogResponse.model_validate(
        await BlogService.update(session, blog_id, data.to_fields())
    )


@router.delete("/blogs/{blog_id}", response_model=OkResponse, summary="Delete a blog post")
async def delete_blog(blog_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await BlogService.delete(session, blog_id)
    return OkResponse()


# Sections


@router.get("/sections", response_model=list[SectionResponse], summary="All sections")
async def list_sections(session: AsyncSession = Depends(get_session)) -> list[SectionResponse]:
    return [SectionResponse.model_validate(s) for s in await SectionService.list_all(session)]


@router.post(
    "/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a section",
)
async def create_section(
    data: SectionWrite, session: AsyncSession = Depends(get_session)
) -> SectionResponse:
    return SectionResponse.model_validate(await SectionService.create(session, data.to_fields()))


@router.get("/sections/{section_id}", response_model=SectionResponse, summary="Get a section")
async def get_section(
    section_id: str, session: AsyncSession = Depends(get_session)
) -> SectionResponse:
    return SectionResponse.model_validate(await SectionService.get(session, section_id))


@router.patch("/sections/{section_id}", response_model=SectionResponse, summary="Update a section")
async def update_section(
    section_id: str,
    data: SectionWrite,
    session: AsyncSession = Depends(get_session),
) -> SectionResponse:
    return SectionResponse.model_validate(
        await SectionService.update(session, section_id, data.to_fields())
    )


@router.delete("/sections/{section_id}", response_model=OkResponse, summary="Delete a section")
async def delete_section(section_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await SectionService.delete(session, section_id)
    return OkResponse()


# Skills


@router.get("/skills", response_model=list[SkillResponse], summary="All skills")
async def list_skills(session: AsyncSession = Depends(get_session)) -> list[SkillResponse]:
    return [SkillResponse.model_validate(s) for s in await SkillService.list_all(session)]


@router.post(
    "/skills",
    response_model=SkillResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a skill",
)
async def create_skill(data: SkillWrite, session: AsyncSession = Depends(get_session)) -> SkillResponse:
    return SkillResponse.model_validate(await SkillService.create(session, data.to_fields()))


@router.get("/skills/{skill_id}", response_model=SkillResponse, summary="Get a skill")
async def get_skill(skill_id: str, session: AsyncSession = Depends(get_session)) -> SkillResponse:
    return SkillResponse.model_validate(await SkillService.get(session, skill_id))


@router.patch("/skills/{skill_id}", response_model=SkillResponse, summary="Update a skill")
async def update_skill(
    skill_id: str,
    data: SkillWrite,
    session: AsyncSession = Depends(get_session),
) -> SkillResponse:
    return SkillResponse.model_validate(
        await SkillService.update(session, skill_id, data.to_fields())
    )


@router.delete("/skills/{skill_id}", response_model=OkResponse, summary="Delete a skill")
async def delete_skill(skill_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await SkillService.delete(session, skill_id)
    return OkResponse()


# Timeline


@router.get("/timeline", response_model=list[TimelineResponse], summary="All timeline entries")
async def list_timeline(session: AsyncSession = Depends(get_session)) -> list[TimelineResponse]:
    return [TimelineResponse.model_validate(t) for t in await TimelineService.list_all(session)]


@router.post(
    "/timeline",
    response_model=TimelineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a timeline entry",
)
async def create_timeline_entry(
    data: TimelineWrite, session: AsyncSession = Depends(get_session)
) -> TimelineResponse:
    return TimelineResponse.model_validate(await TimelineService.create(session, data.to_fields()))


@router.get("/timeline/{entry_id}", response_model=TimelineResponse, summary="Get a timeline entry")
async def get_timeline_entry(
    entry_id: str, session: AsyncSession = Depends(get_session)
) -> TimelineResponse:
    return TimelineResponse.model_validate(await TimelineService.get(session, entry_id))


@router.patch(
    "/timeline/{entry_id}", response_model=TimelineResponse, summary="Update a timeline entry"
)
async def update_timeline_entry(
    entry_id: str,
    data: TimelineWrite,
    session: AsyncSession = Depends(get_session),
) -> TimelineResponse:
    return TimelineResponse.model_validate(
        await TimelineService.update(session, entry_id, data.to_fields())
    )


@router.delete("/timeline/{entry_id}", response_model=OkResponse, summary="Delete a timeline entry")
async def delete_timeline_entry(
    entry_id: str, session: AsyncSession = Depends(get_session)
) -> OkResponse:
    await TimelineService.delete(session, entry_id)
    return OkResponse()


# Content tree


@router.get("/content-nodes", response_model=ContentTreeResponse, summary="Admin content tree")
async def list_content_nodes(
    include_unpublished: bool = Query(default=True, alias="includeUnpublished"),
    max_depth: int = Query(default=25, ge=1, le=50, alias="maxDepth"),
    root_id: str | None = Query(default=None, alias="rootId"),
    session: AsyncSession = Depends(get_session),
) -> ContentTreeResponse:
    listing = await ContentTreeService.list_tree(
        session,
        scope="admin",
        include_unpublished=include_unpublished,
        max_depth=max_depth,
        root_id=root_id,
    )
    return ContentTreeResponse(**listing)


@router.post(
    "/content-nodes",
    response_model=ContentNodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a content node",
)
async def create_content_node(
    data: ContentNodeWrite, session: AsyncSession = Depends(get_session)
) -> ContentNodeResponse:
    return ContentNodeResponse.model_validate(
        await ContentTreeService.create_node(session, data.to_fields())
    )


@router.patch(
    "/content-nodes/{node_id}",
    response_model=ContentNodeResponse,
    summary="Rename, move or reorder a content node",
)
async def update_content_node(
    node_id: str,
    data: ContentNodeWrite,
    session: AsyncSession = Depends(get_session),
) -> ContentNodeResponse:
    return ContentNodeResponse.model_validate(
        await ContentTreeService.update_node(session, node_id, data.to_fields())
    )


@router.delete(
    "/content-nodes/{node_id}", response_model=OkResponse, summary="Delete a node and its subtree"
)
async def delete_content_node(node_id: str, session: AsyncSession = Depends(get_session)) -> OkResponse:
    await ContentTreeService.delete_node(session, node_id)
    return OkResponse()
