"""Public page payloads.

The frontend renders pages from these JSON payloads: the entity, its
breadcrumbs, the SEO metadata block and the JSON-LD graph.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import get_settings
from portfolio.core.exceptions import NotFoundError
from portfolio.core.logging import get_logger
from portfolio.models.blog import Blog
from portfolio.models.project import Project
from portfolio.models.section import Section
from portfolio.repositories.content import BlogRepository, ProjectRepository, SectionRepository
from portfolio.schemas.content import (
    BlogResponse,
    ProjectResponse,
    SectionResponse,
    SkillResponse,
    TimelineResponse,
)
from portfolio.seo.json_ld import (
    build_article_json_ld,
    build_breadcrumb_json_ld,
    build_person_json_ld,
    build_project_json_ld,
    build_website_json_ld,
    combine_json_ld,
)
from portfolio.seo.metadata import (
    absolute_url,
    blog_path,
    create_admin_metadata,
    create_blog_metadata,
    create_metadata,
    create_project_metadata,
    create_section_metadata,
    is_noindex_path,
    project_path,
)
from portfolio.seo.robots import render_robots_txt
from portfolio.seo.sitemap import SitemapEntry, generate_sitemap
from portfolio.services.content import (
    BlogService,
    ProjectService,
    SectionService,
    SkillService,
    TimelineService,
)
from portfolio.services.content_tree import (
    ContentTreeService,
    breadcrumbs,
    find_by_path,
    is_indexable,
    normalize_path,
)
from portfolio.services.settings import SettingsService
from portfolio.utils.dates import isoformat

logger = get_logger(__name__)

FEATURED_LIMIT = 6
LATEST_BLOGS_LIMIT = 3

# Public routes the sitemap lists that are not backed by a single entity
STATIC_PAGES: dict[str, tuple[str, str]] = {
    "/projects": ("Projects", "Projects, experiments and shipped work."),
    "/blogs": ("Blog", "Notes and articles on AI, engineering and building products."),
    "/contact": ("Contact", "Get in touch about work, collaborations or questions."),
    "/resume": ("Resume", "Professional resume generated dynamically."),
}


def _dump(schema: type, rows: Any) -> Any:
    if isinstance(rows, list):
        return [schema.model_validate(row).model_dump(mode="json") for row in rows]
    return schema.model_validate(rows).model_dump(mode="json")


def _owner_name(site: dict[str, Any]) -> str:
    name = str(site.get("ownerName") or "").strip()
    return name or get_settings().site_name.split("|")[0].strip()


class PageService:
    @staticmethod
    async def home(db: AsyncSession) -> dict[str, Any]:
        site = await SettingsService.get_site_settings(db)
        sections = await SectionService.list_published(db)
        featured, _, _, _ = await ProjectService.list_published(
            db, featured=True, page=1, limit=FEATURED_LIMIT
        )
        blogs, _, _, _ = await BlogService.list_published(db, page=1, limit=LATEST_BLOGS_LIMIT)
        skills = await SkillService.list_published(db)
        timeline = await TimelineService.list_published(db)

        socials = site.get("socials") if isinstance(site.get("socials"), dict) else {}
        person = build_person_json_ld(
            name=_owner_name(site),
            job_title=site.get("jobTitle"),
            description=site.get("description"),
            email=site.get("contactEmail") or None,
            location=site.get("location"),
            same_as=[url for url in socials.values() if isinstance(url, str) and url],
        )
        return {
            "type": "home",
            "site": site,
            "sections": _dump(SectionResponse, sections),
            "featured_projects": _dump(ProjectResponse, featured),
            "latest_blogs": _dump(BlogResponse, blogs),
            "skills": _dump(SkillResponse, skills),
            "timeline": _dump(TimelineResponse, timeline),
            "metadata": create_metadata(path="/", description=site.get("description")),
            "json_ld": combine_json_ld([build_website_json_ld(), person]),
        }

    @staticmethod
    async def resolve(db: AsyncSession, path: str | None) -> dict[str, Any]:
        """Page payload for a public path.

        Raises:
            NotFoundError: unknown or unpublished path.
        """
        path = normalize_path(path)
        if path == "/":
            return await PageService.home(db)
        if path in STATIC_PAGES:
            return await PageService._static_page(db, path)

        parts = path.strip("/").split("/")
        if parts[0] == "project" and len(parts) > 1:
            return await PageService._project_page(db, parts[1:])
        if parts[0] == "blog" and len(parts) == 2:
            return await PageService._blog_page(db, parts[1])
        return await PageService._tree_page(db, path)

    @staticmethod
    async def _static_page(db: AsyncSession, path: str) -> dict[str, Any]:
        title, description = STATIC_PAGES[path]
        site = await SettingsService.get_site_settings(db)
        entity: dict[str, Any]
        if path == "/projects":
            projects, total, _, _ = await ProjectService.list_published(db)
            entity = {"projects": _dump(ProjectResponse, projects), "total": total}
        elif path == "/blogs":
            blogs, total, _, _ = await BlogService.list_published(db)
            entity = {"blogs": _dump(BlogResponse, blogs), "total": total}
        elif path == "/resume":
            entity = {
                "owner": _owner_name(site),
                "job_title": site.get("jobTitle"),
                "skills": _dump(SkillResponse, await SkillService.list_published(db)),
                "timeline": _dump(TimelineResponse, await TimelineService.list_published(db)),
            }
        else:
            entity = {"email": site.get("contactEmail") or None, "socials": site.get("socials") or {}}

        return {
            "type": path.strip("/"),
            "path": path,
            "entity": entity,
            "breadcrumbs": [{"title": "Home", "path": "/"}, {"title": title, "path": path}],
            "metadata": create_metadata(title=title, description=description, path=path),
            "json_ld": combine_json_ld([build_breadcrumb_json_ld([("Home", "/"), (title, path)])]),
        }

    @staticmethod
    async def _project_page(db: AsyncSession, slug_parts: list[str]) -> dict[str, Any]:
        project = await ProjectService.get_published_by_slug(db, slug_parts)
        path = project_path(project.slug)
        return {
            "type": "project",
            "path": path,
            "entity": _dump(ProjectResponse, project),
            "breadcrumbs": [
                {"title": "Home", "path": "/"},
                {"title": "Projects", "path": "/projects"},
                {"title": project.title, "path": path},
            ],
            "metadata": create_project_metadata(
                project.slug,
                title=project.title,
                description=project.summary,
                image=project.cover_image,
                keywords=project.tags,
                noindex=not ProjectService.is_indexable(project),
            ),
            "json_ld": combine_json_ld(
                [
                    build_project_json_ld(
                        name=project.title,
                        description=project.summary or project.title,
                        url=path,
                        image=project.cover_image,
                        date_created=isoformat(project.created_at),
                        date_modified=isoformat(project.updated_at),
                        keywords=project.tags,
                        code_repository=project.repo_url,
                        live_demo_url=project.live_url,
                    ),
                    build_breadcrumb_json_ld(
                        [("Home", "/"), ("Projects", "/projects"), (project.title, path)]
                    ),
                ]
            ),
        }

    @staticmethod
    async def _blog_page(db: AsyncSession, slug: str) -> dict[str, Any]:
        blog = await BlogService.get_published_by_slug(db, slug)
        path = blog_path(blog.slug)
        site = await SettingsService.get_site_settings(db)
        published = isoformat(blog.published_at or blog.created_at)
        return {
            "type": "blog",
            "path": path,
            "entity": _dump(BlogResponse, blog),
            "breadcrumbs": [
                {"title": "Home", "path": "/"},
                {"title": "Blog", "path": "/blogs"},
                {"title": blog.title, "path": path},
            ],
            "metadata": create_blog_metadata(
                blog.slug,
                title=blog.seo_title or blog.title,
                description=blog.seo_description or blog.excerpt,
                image=blog.cover_image,
                keywords=blog.tags,
                og_type="article",
                published_time=published,
                modified_time=isoformat(blog.updated_at),
                tags=blog.tags,
            ),
            "json_ld": combine_json_ld(
                [
                    build_article_json_ld(
                        title=blog.title,
                        description=blog.excerpt or blog.title,
                        url=path,
                        date_published=published or "",
                        author_name=_owner_name(site),
                        image=blog.cover_image,
                        date_modified=isoformat(blog.updated_at),
                        tags=blog.tags,
                    ),
                    build_breadcrumb_json_ld([("Home", "/"), ("Blog", "/blogs"), (blog.title, path)]),
                ]
            ),
        }

    @staticmethod
    async def _tree_page(db: AsyncSession, path: str) -> dict[str, Any]:
        listing = await ContentTreeService.list_tree(db, scope="public")
        node = find_by_path(listing["tree"], path)
        if node is None:
            # Single-segment paths may name a section that is not in the tree
            section = None
            if path.count("/") == 1:
                section = await SectionRepository(db).get_published_by_slug(path.strip("/"))
            if section is None:
                raise NotFoundError(f"No page at '{path}'")
            return {
                "type": "section",
                "path": path,
                "entity": _dump(SectionResponse, section),
                "node": None,
                "breadcrumbs": [{"title": "Home", "path": "/"}, {"title": section.title, "path": path}],
                "metadata": create_section_metadata(
                    section.slug,
                    title=section.seo_title or section.title,
                    description=section.seo_description or section.subtitle,
                    noindex=not SectionService.is_indexable(section),
                ),
                "json_ld": combine_json_ld(
                    [build_breadcrumb_json_ld([("Home", "/"), (section.title, path)])]
                ),
            }

        trail = breadcrumbs(listing["tree"], path)
        entity = await PageService._node_entity(db, node)
        node_view = {k: v for k, v in node.items() if k != "children"}
        node_view["children"] = [
            {"id": c["id"], "title": c["title"], "path": c["path"], "node_type": c["node_type"]}
            for c in node.get("children", [])
        ]
        return {
            "type": node["node_type"],
            "path": path,
            "entity": entity,
            "node": node_view,
            "breadcrumbs": [{"title": "Home", "path": "/"}]
            + [{"title": step["title"], "path": step["path"]} for step in trail],
            "metadata": create_metadata(
                title=node["title"],
                description=node.get("description"),
                path=path,
                noindex=not is_indexable(node),
            ),
            "json_ld": combine_json_ld(
                [
                    build_breadcrumb_json_ld(
                        [("Home", "/")] + [(step["title"], step["path"]) for step in trail]
                    )
                ]
            ),
        }

    @staticmethod
    async def _node_entity(db: AsyncSession, node: dict[str, Any]) -> dict[str, Any] | None:
        """The published section/project/blog a node links to, if any."""
        ref_id = node.get("ref_id")
        if not ref_id:
            return None
        loaders = {
            "section": (SectionService.get, SectionResponse),
            "project": (ProjectService.get, ProjectResponse),
            "blog": (BlogService.get, BlogResponse),
        }
        if node["node_type"] not in loaders:
            return None
        load, schema = loaders[node["node_type"]]
        try:
            entity = await load(db, ref_id)
        except NotFoundError:
            logger.warning(
                "Content node points at a missing entity",
                extra={"node_id": node["id"], "ref_id": ref_id},
            )
            raise NotFoundError(f"No page at '{node['path']}'") from None
        if not entity.is_published:
            raise NotFoundError(f"No page at '{node['path']}'")
        return _dump(schema, entity)


class SeoService:
    @staticmethod
    async def _published_rows(db: AsyncSession) -> tuple[list[Blog], list[Project], list[Section]]:
        blogs = await BlogRepository(db).list_where(Blog.is_published.is_(True))
        projects = await ProjectRepository(db).list_where(Project.is_published.is_(True))
        sections = await SectionRepository(db).list_where(
            Section.is_published.is_(True), Section.noindex.is_(False)
        )
        return blogs, projects, sections

    @staticmethod
    async def sitemap_entries(db: AsyncSession) -> list[SitemapEntry]:
        blogs, projects, sections = await SeoService._published_rows(db)
        return generate_sitemap(
            blogs=[b for b in blogs if BlogService.is_indexable(b)],
            projects=[p for p in projects if ProjectService.is_indexable(p)],
            sections=[s for s in sections if SectionService.is_indexable(s)],
        )

    @staticmethod
    async def metadata_for_path(db: AsyncSession, path: str | None) -> dict[str, Any]:
        """Metadata of the page at `path`; generic metadata when nothing is there."""
        path = normalize_path(path)
        if is_noindex_path(path):
            return create_admin_metadata()
        try:
            page = await PageService.resolve(db, path)
        except NotFoundError:
            return create_metadata(path=path, noindex=True)
        return page["metadata"]

    @staticmethod
    async def status(db: AsyncSession) -> dict[str, Any]:
        """Read-only SEO overview for the admin."""
        settings = get_settings()
        blogs, projects, sections = await SeoService._published_rows(db)
        entries = await SeoService.sitemap_entries(db)
        return {
            "site_url": settings.site_url,
            "canonical_home": absolute_url("/"),
            "robots_indexing": settings.robots_indexing,
            "block_ai_bots": settings.block_ai_bots,
            "sitemap_path": settings.robots_sitemap_path,
            "robots_txt": render_robots_txt(settings),
            "sitemap_entries": len(entries),
            "published": {
                "blogs": len(blogs),
                "projects": len(projects),
                "sections": len(sections),
            },
        }
