"""Repositories for public content tables.

Public queries filter on is_published; admin queries see every row.
"""

from sqlalchemy import Select, func, select, update

from portfolio.models.blog import Blog
from portfolio.models.profile import Skill, TimelineEntry
from portfolio.models.project import Project
from portfolio.models.section import Section
from portfolio.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    model = Project

    def _published(self) -> Select[tuple[Project]]:
        return select(Project).where(Project.is_published.is_(True))

    async def list_published(
        self,
        section_slug: str | None = None,
        featured: bool | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Project], int]:
        """Published projects ordered by order_index, newest first within ties."""
        async with self._operation(
            "SELECT published", section_slug=section_slug, featured=featured
        ):
            stmt = self._published()
            if section_slug:
                stmt = stmt.where(Project.section_slug == section_slug)
            if featured is not None:
                stmt = stmt.where(Project.is_featured.is_(featured))

            total = await self.session.execute(
                select(func.count()).select_from(stmt.subquery())
            )
            rows = await self.session.execute(
                stmt.order_by(Project.order_index.asc(), Project.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            return list(rows.scalars().all()), int(total.scalar_one())

    async def get_published_by_slug(self, slug: str) -> Project | None:
        async with self._operation("SELECT published by slug", slug=slug):
            result = await self.session.execute(
                self._published().where(Project.slug == slug).limit(1)
            )
            return result.scalar_one_or_none()

    async def increment_views(self, slug: str) -> int | None:
        """Bump the view counter of a published project. Returns the new count."""
        async with self._operation("UPDATE views", slug=slug):
            result = await self.session.execute(
                update(Project)
                .where(Project.slug == slug, Project.is_published.is_(True))
                .values(views=Project.views + 1)
                .returning(Project.views)
            )
            return result.scalar_one_or_none()


class BlogRepository(BaseRepository[Blog]):
    model = Blog

    async def list_published(
        self, tag: str | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[list[Blog], int]:
        """Published posts, latest published_at first.

        Tag filtering runs in Python so it behaves the same on JSON and JSONB.
        """
        async with self._operation("SELECT published", tag=tag):
            result = await self.session.execute(
                select(Blog)
                .where(Blog.is_published.is_(True))
                .order_by(Blog.published_at.desc().nulls_last(), Blog.created_at.desc())
            )
            blogs = list(result.scalars().all())
            if tag:
                wanted = tag.strip().lower()
                blogs = [blog for blog in blogs if wanted in (blog.tags or [])]
            return blogs[offset : offset + limit], len(blogs)

    async def get_published_by_slug(self, slug: str) -> Blog | None:
        async with self._operation("SELECT published by slug", slug=slug):
            result = await self.session.execute(
                select(Blog)
                .where(Blog.slug == slug, Blog.is_published.is_(True))
                .limit(1)
            )
            return result.scalar_one_or_none()


class SectionRepository(BaseRepository[Section]):
    model = Section

    async def list_published(self) -> list[Section]:
        return await self.list_where(
            Section.is_published.is_(True),
            order_by=(Section.order_index.asc(), Section.created_at.asc()),
        )

    async def get_published_by_slug(self, slug: str) -> Section | None:
        async with self._operation("SELECT published by slug", slug=slug):
            result = await self.session.execute(
                select(Section)
                .where(Section.slug == slug, Section.is_published.is_(True))
                .limit(1)
            )
            return result.scalar_one_or_none()


class SkillRepository(BaseRepository[Skill]):
    model = Skill


class TimelineRepository(BaseRepository[TimelineEntry]):
    model = TimelineEntry
