"""Content services: projects, blogs, sections, skills and timeline.

Public reads only see published rows; the admin methods see everything.
Input dicts use snake_case keys and go through the validators in
portfolio.utils.validation before they reach the repositories.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ConflictError, NotFoundError, ValidationError
from portfolio.core.logging import get_logger
from portfolio.models.blog import Blog
from portfolio.models.profile import Skill, TimelineEntry
from portfolio.models.project import Project
from portfolio.models.section import Section
from portfolio.repositories.base import BaseRepository
from portfolio.repositories.content import (
    BlogRepository,
    ProjectRepository,
    SectionRepository,
    SkillRepository,
    TimelineRepository,
)
from portfolio.utils.dates import utcnow
from portfolio.utils.slugify import slugify
from portfolio.utils.validation import (
    normalize_whitespace,
    validate_blog_input,
    validate_pagination,
    validate_project_input,
)

logger = get_logger(__name__)

NO_FIELDS_TO_UPDATE = "NO_FIELDS_TO_UPDATE"


def _no_fields() -> ValidationError:
    return ValidationError("No fields to update.", code=NO_FIELDS_TO_UPDATE)


def _join_slug(slug_or_parts: str | list[str] | tuple[str, ...]) -> str:
    if isinstance(slug_or_parts, list | tuple):
        return "/".join(part.strip("/") for part in slug_or_parts if part and part.strip("/"))
    return slug_or_parts.strip("/")


async def _unique_slug(
    repo: BaseRepository[Any],
    slug: str,
    explicit: bool,
    exclude_id: str | None = None,
) -> str:
    """Return a free slug.

    An explicitly chosen slug that is taken is a conflict; a slug derived
    from the title gets a numeric suffix instead.
    """
    candidate = slug
    suffix = 2
    while True:
        existing = await repo.get_by(slug=candidate)
        if existing is None or existing.id == exclude_id:
            return candidate
        if explicit:
            raise ConflictError(f"Slug '{slug}' is already in use.", code="SLUG_TAKEN")
        candidate = f"{slug}-{suffix}"
        suffix += 1


class ProjectService:
    """Business logic for portfolio projects."""

    @staticmethod
    async def list_published(
        db: AsyncSession,
        section_slug: str | None = None,
        featured: bool | None = None,
        page: object = None,
        limit: object = None,
    ) -> tuple[list[Project], int, int, int]:
        """Published projects for one page.

        Returns:
            (projects, total, page, limit)
        """
        page_value, limit_value = validate_pagination(page, limit)
        projects, total = await ProjectRepository(db).list_published(
            section_slug=section_slug,
            featured=featured,
            limit=limit_value,
            offset=(page_value - 1) * limit_value,
        )
        return projects, total, page_value, limit_value

    @staticmethod
    async def get_published_by_slug(
        db: AsyncSession, slug_or_parts: str | list[str] | tuple[str, ...]
    ) -> Project:
        slug = _join_slug(slug_or_parts)
        project = await ProjectRepository(db).get_published_by_slug(slug) if slug else None
        if project is None:
            raise NotFoundError(f"Project '{slug}' not found")
        return project

    @staticmethod
    async def get_by_section(db: AsyncSession, section_slug: str) -> list[Project]:
        projects, _ = await ProjectRepository(db).list_published(
            section_slug=section_slug, limit=100
        )
        return projects

    @staticmethod
    async def increment_views(db: AsyncSession, slug: str) -> int:
        views = await ProjectRepository(db).increment_views(slug)
        if views is None:
            raise NotFoundError(f"Project '{slug}' not found")
        return views

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Project]:
        return await ProjectRepository(db).list_where(
            order_by=(Project.order_index.asc(), Project.created_at.desc())
        )

    @staticmethod
    async def get(db: AsyncSession, project_id: str) -> Project:
        project = await ProjectRepository(db).get_by_id(project_id)
        if project is None:
            raise NotFoundError(f"Project with id '{project_id}' not found")
        return project

    @staticmethod
    async def create(db: AsyncSession, data: dict[str, Any]) -> Project:
        repo = ProjectRepository(db)
        fields = validate_project_input(data)
        fields["slug"] = await _unique_slug(
            repo, fields["slug"], explicit=bool(normalize_whitespace(data.get("slug")))
        )
        project = await repo.create(**fields)
        logger.info(
            "Project created",
            extra={"project_id": project.id, "slug": project.slug},
        )
        return project

    @staticmethod
    async def update(db: AsyncSession, project_id: str, data: dict[str, Any]) -> Project:
        if not data:
            raise _no_fields()
        project = await ProjectService.get(db, project_id)
        repo = ProjectRepository(db)
        fields = validate_project_input(data, partial=True)
        if not fields:
            raise _no_fields()
        if "slug" in fields and fields["slug"] != project.slug:
            fields["slug"] = await _unique_slug(
                repo, fields["slug"], explicit=True, exclude_id=project.id
            )
        return await repo.update(project, **fields)

    @staticmethod
    async def delete(db: AsyncSession, project_id: str) -> None:
        project = await ProjectService.get(db, project_id)
        await ProjectRepository(db).delete(project)

    @staticmethod
    def is_indexable(project: Project) -> bool:
        return bool(project.is_published and project.slug)


class BlogService:
    """Business logic for blog posts."""

    @staticmethod
    async def list_published(
        db: AsyncSession,
        tag: str | None = None,
        page: object = None,
        limit: object = None,
    ) -> tuple[list[Blog], int, int, int]:
        page_value, limit_value = validate_pagination(page, limit)
        blogs, total = await BlogRepository(db).list_published(
            tag=tag, limit=limit_value, offset=(page_value - 1) * limit_value
        )
        return blogs, total, page_value, limit_value

    @staticmethod
    async def get_published_by_slug(db: AsyncSession, slug: str) -> Blog:
        blog = await BlogRepository(db).get_published_by_slug(slug.strip("/"))
        if blog is None:
            raise NotFoundError(f"Blog '{slug}' not found")
        return blog

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Blog]:
        return await BlogRepository(db).list_where(
            order_by=(Blog.created_at.desc(),)
        )

    @staticmethod
    async def get(db: AsyncSession, blog_id: str) -> Blog:
        blog = await BlogRepository(db).get_by_id(blog_id)
        if blog is None:
            raise NotFoundError(f"Blog with id '{blog_id}' not found")
        return blog

    @staticmethod
    async def create(
        db: AsyncSession, data: dict[str, Any], now: datetime | None = None
    ) -> Blog:
        repo = BlogRepository(db)
        fields = validate_blog_input(data, now=now or utcnow())
        fields["slug"] = await _unique_slug(
            repo, fields["slug"], explicit=bool(normalize_whitespace(data.get("slug")))
        )
        blog = await repo.create(**fields)
        logger.info("Blog created", extra={"blog_id": blog.id, "slug": blog.slug})
        return blog

    @staticmethod
    async def update(
        db: AsyncSession,
        blog_id: str,
        data: dict[str, Any],
        now: datetime | None = None,
    ) -> Blog:
        """Partial update.

        published_at is stamped on the first publish only: re-publishing
        keeps the original date and unpublishing never clears it.
        """
        if not data:
            raise _no_fields()
        blog = await BlogService.get(db, blog_id)
        repo = BlogRepository(db)
        fields = validate_blog_input(data, partial=True, now=now or utcnow())
        if not fields:
            raise _no_fields()

        if "published_at" not in data and blog.published_at is not None:
            fields.pop("published_at", None)
        if "slug" in fields and fields["slug"] != blog.slug:
            fields["slug"] = await _unique_slug(
                repo, fields["slug"], explicit=True, exclude_id=blog.id
            )
        return await repo.update(blog, **fields)

    @staticmethod
    async def delete(db: AsyncSession, blog_id: str) -> None:
        blog = await BlogService.get(db, blog_id)
        await BlogRepository(db).delete(blog)

    @staticmethod
    def is_indexable(blog: Blog) -> bool:
        return bool(blog.is_published and blog.slug)


def _clean_section(data: dict[str, Any], partial: bool) -> dict[str, Any]:
    errors: dict[str, str] = {}
    out: dict[str, Any] = {}

    if not partial or "title" in data:
        title = normalize_whitespace(data.get("title"))
        if not title:
            errors["title"] = "Title is required."
        out["title"] = title[:200]
    if "slug" in data or (not partial and "title" in out):
        slug = slugify(data.get("slug") or out.get("title", ""), max_length=180)
        if not slug:
            errors["slug"] = "Slug is required (and could not be derived from title)."
        out["slug"] = slug
    if "kind" in data:
        out["kind"] = slugify(data.get("kind"), max_length=50) or "custom"
    if "subtitle" in data:
        out["subtitle"] = normalize_whitespace(data.get("subtitle"))[:300] or None
    if "data" in data:
        if not isinstance(data["data"], dict):
            errors["data"] = "Data must be an object."
        else:
            out["data"] = data["data"]
    for key, limit in (("seo_title", 70), ("seo_description", 160)):
        if key in data:
            out[key] = normalize_whitespace(data.get(key))[:limit] or None
    for key in ("is_published", "noindex"):
        if isinstance(data.get(key), bool):
            out[key] = data[key]
    if isinstance(data.get("order_index"), int):
        out["order_index"] = data["order_index"]

    if errors:
        field, message = next(iter(errors.items()))
        raise ValidationError(message, field=field, errors=errors)
    return out


class SectionService:
    """Business logic for home page sections."""

    @staticmethod
    async def list_published(db: AsyncSession) -> list[Section]:
        return await SectionRepository(db).list_published()

    @staticmethod
    async def get_published_by_slug(db: AsyncSession, slug: str) -> Section:
        section = await SectionRepository(db).get_published_by_slug(slug.strip("/"))
        if section is None:
            raise NotFoundError(f"Section '{slug}' not found")
        return section

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Section]:
        return await SectionRepository(db).list_where(
            order_by=(Section.order_index.asc(), Section.created_at.asc())
        )

    @staticmethod
    async def get(db: AsyncSession, section_id: str) -> Section:
        section = await SectionRepository(db).get_by_id(section_id)
        if section is None:
            raise NotFoundError(f"Section with id '{section_id}' not found")
        return section

    @staticmethod
    async def create(db: AsyncSession, data: dict[str, Any]) -> Section:
        repo = SectionRepository(db)
        fields = _clean_section(data, partial=False)
        fields["slug"] = await _unique_slug(
            repo, fields["slug"], explicit=bool(normalize_whitespace(data.get("slug")))
        )
        return await repo.create(**fields)

    @staticmethod
    async def update(db: AsyncSession, section_id: str, data: dict[str, Any]) -> Section:
        if not data:
            raise _no_fields()
        section = await SectionService.get(db, section_id)
        repo = SectionRepository(db)
        fields = _clean_section(data, partial=True)
        if not fields:
            raise _no_fields()
        if "slug" in fields and fields["slug"] != section.slug:
            fields["slug"] = await _unique_slug(
                repo, fields["slug"], explicit=True, exclude_id=section.id
            )
        return await repo.update(section, **fields)

    @staticmethod
    async def delete(db: AsyncSession, section_id: str) -> None:
        section = await SectionService.get(db, section_id)
        await SectionRepository(db).delete(section)

    @staticmethod
    def is_indexable(section: Section) -> bool:
        return bool(section.is_published and section.slug and not section.noindex)


def _clean_skill(data: dict[str, Any], partial: bool) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if not partial or "name" in data:
        name = normalize_whitespace(data.get("name"))[:80]
        if not name:
            raise ValidationError("Name is required.", field="name")
        out["name"] = name
    if "level" in data:
        level = data.get("level")
        if level is not None and (isinstance(level, bool) or not isinstance(level, int)):
            raise ValidationError("Level must be a number.", field="level", value=level)
        out["level"] = None if level is None else min(100, max(0, level))
    if "category" in data:
        out["category"] = normalize_whitespace(data.get("category"))[:80] or None
    if isinstance(data.get("order_index"), int):
        out["order_index"] = data["order_index"]
    if isinstance(data.get("is_published"), bool):
        out["is_published"] = data["is_published"]
    return out


def _parse_date(value: object, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValidationError(
            f"{field} must be a YYYY-MM-DD date.", field=field, value=value
        ) from e


def _clean_timeline(data: dict[str, Any], partial: bool) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if not partial or "title" in data:
        title = normalize_whitespace(data.get("title"))[:140]
        if not title:
            raise ValidationError("Title is required.", field="title")
        out["title"] = title
    for key in ("org", "location"):
        if key in data:
            out[key] = normalize_whitespace(data.get(key))[:140] or None
    for key in ("start_date", "end_date"):
        if key in data:
            out[key] = _parse_date(data.get(key), key)
    if "description" in data:
        description = data.get("description")
        out["description"] = description.strip() if isinstance(description, str) else None
    for key in ("is_current", "is_published"):
        if isinstance(data.get(key), bool):
            out[key] = data[key]
    if isinstance(data.get("order_index"), int):
        out["order_index"] = data["order_index"]
    if out.get("is_current"):
        out["end_date"] = None
    return out


class SkillService:
    @staticmethod
    async def list_published(db: AsyncSession) -> list[Skill]:
        return await SkillRepository(db).list_where(
            Skill.is_published.is_(True),
            order_by=(Skill.order_index.asc(), Skill.name.asc()),
        )

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Skill]:
        return await SkillRepository(db).list_where(
            order_by=(Skill.order_index.asc(), Skill.name.asc())
        )

    @staticmethod
    async def get(db: AsyncSession, skill_id: str) -> Skill:
        skill = await SkillRepository(db).get_by_id(skill_id)
        if skill is None:
            raise NotFoundError(f"Skill with id '{skill_id}' not found")
        return skill

    @staticmethod
    async def create(db: AsyncSession, data: dict[str, Any]) -> Skill:
        return await SkillRepository(db).create(**_clean_skill(data, partial=False))

    @staticmethod
    async def update(db: AsyncSession, skill_id: str, data: dict[str, Any]) -> Skill:
        skill = await SkillService.get(db, skill_id)
        fields = _clean_skill(data, partial=True)
        if not fields:
            raise _no_fields()
        return await SkillRepository(db).update(skill, **fields)

    @staticmethod
    async def delete(db: AsyncSession, skill_id: str) -> None:
        skill = await SkillService.get(db, skill_id)
        await SkillRepository(db).delete(skill)


class TimelineService:
    @staticmethod
    async def list_published(db: AsyncSession) -> list[TimelineEntry]:
        return await TimelineRepository(db).list_where(
            TimelineEntry.is_published.is_(True),
            order_by=(TimelineEntry.order_index.asc(), TimelineEntry.start_date.desc()),
        )

    @staticmethod
    async def list_all(db: AsyncSession) -> list[TimelineEntry]:
        return await TimelineRepository(db).list_where(
            order_by=(TimelineEntry.order_index.asc(), TimelineEntry.start_date.desc())
        )

    @staticmethod
    async def get(db: AsyncSession, entry_id: str) -> TimelineEntry:
        entry = await TimelineRepository(db).get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Timeline entry with id '{entry_id}' not found")
        return entry

    @staticmethod
    async def create(db: AsyncSession, data: dict[str, Any]) -> TimelineEntry:
        return await TimelineRepository(db).create(**_clean_timeline(data, partial=False))

    @staticmethod
    async def update(
        db: AsyncSession, entry_id: str, data: dict[str, Any]
    ) -> TimelineEntry:
        entry = await TimelineService.get(db, entry_id)
        fields = _clean_timeline(data, partial=True)
        if not fields:
            raise _no_fields()
        return await TimelineRepository(db).update(entry, **fields)

    @staticmethod
    async def delete(db: AsyncSession, entry_id: str) -> None:
        entry = await TimelineService.get(db, entry_id)
        await TimelineRepository(db).delete(entry)
