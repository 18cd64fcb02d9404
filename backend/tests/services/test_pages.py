"""Tests for public page payloads and the SEO service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import NotFoundError
from portfolio.seo.sitemap import STATIC_ENTRIES
from portfolio.services.content import (
    BlogService,
    ProjectService,
    SectionService,
    SkillService,
)
from portfolio.services.content_tree import ContentTreeService
from portfolio.services.pages import PageService, SeoService
from portfolio.services.settings import SettingsService

SITE = "http://localhost:3000"


# =============================================================================
# PageService
# =============================================================================


class TestHomePage:
    """Tests for the home page payload."""

    @pytest.mark.asyncio
    async def test_home(self, db_session: AsyncSession) -> None:
        await SettingsService.update_setting(
            db_session,
            "site",
            {"ownerName": "Ada", "socials": {"github": "https://github.com/ada", "x": ""}},
        )
        await SectionService.create(db_session, {"title": "About"})
        await ProjectService.create(
            db_session, {"title": "Featured", "is_published": True, "is_featured": True}
        )
        await ProjectService.create(db_session, {"title": "Plain", "is_published": True})
        await BlogService.create(db_session, {"title": "Post", "status": "published"})
        await SkillService.create(db_session, {"name": "Python"})

        page = await PageService.resolve(db_session, "")

        assert page["type"] == "home"
        assert [s["slug"] for s in page["sections"]] == ["about"]
        assert [p["slug"] for p in page["featured_projects"]] == ["featured"]
        assert [b["slug"] for b in page["latest_blogs"]] == ["post"]
        assert page["skills"][0]["name"] == "Python"
        assert page["metadata"]["canonical"] == f"{SITE}/"
        person = page["json_ld"][1]
        assert person["name"] == "Ada"
        assert person["sameAs"] == ["https://github.com/ada"]


class TestEntityPages:
    """Tests for project, blog and section pages."""

    @pytest.mark.asyncio
    async def test_project_page(self, db_session: AsyncSession) -> None:
        await ProjectService.create(
            db_session,
            {"title": "Bot", "summary": "A bot.", "tags": ["ai"], "is_published": True},
        )

        page = await PageService.resolve(db_session, "/project/bot/")

        assert page["type"] == "project"
        assert page["path"] == "/project/bot"
        assert page["entity"]["summary"] == "A bot."
        assert page["breadcrumbs"][-1] == {"title": "Bot", "path": "/project/bot"}
        assert page["metadata"]["canonical"] == f"{SITE}/project/bot"
        assert page["metadata"]["robots"]["index"] is True
        assert page["json_ld"][0]["@type"] == "CreativeWork"

    @pytest.mark.asyncio
    async def test_blog_page(self, db_session: AsyncSession) -> None:
        await BlogService.create(
            db_session,
            {"title": "Hello", "status": "published", "seo_title": "Hello SEO", "tags": ["ai"]},
        )

        page = await PageService.resolve(db_session, "/blog/hello")

        assert page["type"] == "blog"
        assert page["metadata"]["title"] == "Hello SEO | Parnish"
        assert page["metadata"]["open_graph"]["type"] == "article"
        assert page["json_ld"][0]["@type"] == "Article"

    @pytest.mark.asyncio
    async def test_unpublished_is_not_found(self, db_session: AsyncSession) -> None:
        await ProjectService.create(db_session, {"title": "Draft"})
        await BlogService.create(db_session, {"title": "Hidden"})

        with pytest.raises(NotFoundError):
            await PageService.resolve(db_session, "/project/draft")
        with pytest.raises(NotFoundError):
            await PageService.resolve(db_session, "/blog/hidden")
        with pytest.raises(NotFoundError):
            await PageService.resolve(db_session, "/nowhere")

    @pytest.mark.asyncio
    async def test_section_page_outside_tree(self, db_session: AsyncSession) -> None:
        await SectionService.create(
            db_session, {"title": "About", "subtitle": "Who I am", "noindex": True}
        )

        page = await PageService.resolve(db_session, "/about")

        assert page["type"] == "section"
        assert page["node"] is None
        assert page["metadata"]["description"] == "Who I am"
        assert page["metadata"]["robots"]["index"] is False


class TestStaticPages:
    """Tests for the listing, contact and resume pages."""

    @pytest.mark.asyncio
    async def test_projects_listing(self, db_session: AsyncSession) -> None:
        await ProjectService.create(db_session, {"title": "Bot", "is_published": True})
        await ProjectService.create(db_session, {"title": "Draft"})

        page = await PageService.resolve(db_session, "/projects/")

        assert page["type"] == "projects"
        assert page["entity"]["total"] == 1
        assert [p["slug"] for p in page["entity"]["projects"]] == ["bot"]
        assert page["metadata"]["canonical"] == f"{SITE}/projects"
        assert page["breadcrumbs"][-1] == {"title": "Projects", "path": "/projects"}

    @pytest.mark.asyncio
    async def test_resume(self, db_session: AsyncSession) -> None:
        await SettingsService.update_setting(db_session, "site", {"ownerName": "Ada"})
        await SkillService.create(db_session, {"name": "Python"})

        page = await PageService.resolve(db_session, "/resume")

        assert page["entity"]["owner"] == "Ada"
        assert [s["name"] for s in page["entity"]["skills"]] == ["Python"]
        assert page["metadata"]["robots"]["index"] is True


class TestTreePages:
    """Tests for pages resolved through the content tree."""

    @pytest.mark.asyncio
    async def test_node_with_linked_project(self, db_session: AsyncSession) -> None:
        project = await ProjectService.create(db_session, {"title": "Bot", "is_published": True})
        work = await ContentTreeService.create_node(db_session, {"title": "Work"})
        await ContentTreeService.create_node(
            db_session,
            {"title": "Bot", "parentId": work.id, "nodeType": "project", "refId": project.id},
        )

        page = await PageService.resolve(db_session, "/work/bot")
        folder = await PageService.resolve(db_session, "/work")

        assert page["type"] == "project"
        assert page["entity"]["id"] == project.id
        assert page["breadcrumbs"] == [
            {"title": "Home", "path": "/"},
            {"title": "Work", "path": "/work"},
            {"title": "Bot", "path": "/work/bot"},
        ]
        assert folder["type"] == "folder"
        assert folder["entity"] is None
        assert folder["node"]["children"][0]["path"] == "/work/bot"

    @pytest.mark.asyncio
    async def test_node_with_unpublished_entity(self, db_session: AsyncSession) -> None:
        project = await ProjectService.create(db_session, {"title": "Secret"})
        await ContentTreeService.create_node(
            db_session, {"title": "Secret", "nodeType": "project", "refId": project.id}
        )

        with pytest.raises(NotFoundError):
            await PageService.resolve(db_session, "/secret")

    @pytest.mark.asyncio
    async def test_child_of_unpublished_folder(self, db_session: AsyncSession) -> None:
        secret = await ContentTreeService.create_node(
            db_session, {"title": "Secret", "is_published": False}
        )
        await ContentTreeService.create_node(db_session, {"title": "Child", "parentId": secret.id})

        for path in ("/child", "/secret/child"):
            with pytest.raises(NotFoundError):
                await PageService.resolve(db_session, path)


# =============================================================================
# SeoService
# =============================================================================


class TestSeoService:
    """Tests for SeoService."""

    @pytest.mark.asyncio
    async def test_sitemap_entries(self, db_session: AsyncSession) -> None:
        await ProjectService.create(db_session, {"title": "Bot", "is_published": True})
        await ProjectService.create(db_session, {"title": "Draft"})
        await BlogService.create(db_session, {"title": "Hello", "status": "published"})
        await SectionService.create(db_session, {"title": "About"})
        await SectionService.create(db_session, {"title": "Hidden", "noindex": True})

        urls = [entry.url for entry in await SeoService.sitemap_entries(db_session)]

        assert f"{SITE}/project/bot" in urls
        assert f"{SITE}/blog/hello" in urls
        assert f"{SITE}/about" in urls
        assert f"{SITE}/project/draft" not in urls
        assert f"{SITE}/hidden" not in urls

    @pytest.mark.asyncio
    async def test_metadata_for_path(self, db_session: AsyncSession) -> None:
        await ProjectService.create(db_session, {"title": "Bot", "is_published": True})

        project = await SeoService.metadata_for_path(db_session, "/project/bot")
        admin = await SeoService.metadata_for_path(db_session, "/admin/projects")
        missing = await SeoService.metadata_for_path(db_session, "/missing")

        assert project["canonical"] == f"{SITE}/project/bot"
        assert admin["title"] == "Admin | Parnish"
        assert missing["robots"]["index"] is False

    @pytest.mark.asyncio
    async def test_static_sitemap_paths_are_indexable(self, db_session: AsyncSession) -> None:
        for item in STATIC_ENTRIES:
            metadata = await SeoService.metadata_for_path(db_session, item.path)
            assert metadata["robots"]["index"] is True, item.path

    @pytest.mark.asyncio
    async def test_status(self, db_session: AsyncSession) -> None:
        await BlogService.create(db_session, {"title": "Hello", "status": "published"})

        status = await SeoService.status(db_session)

        assert status["canonical_home"] == f"{SITE}/"
        assert status["published"] == {"blogs": 1, "projects": 0, "sections": 0}
        assert status["sitemap_entries"] == 6
        assert status["robots_txt"].startswith("User-agent: *")
