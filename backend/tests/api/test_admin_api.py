"""Tests for the admin back-office API under /api/v1/admin.

- Session gate and no-store caching
- Content CRUD (projects, blogs, sections, skills, timeline, content nodes)
- Settings, SEO, media and analytics
- Live chat moderation and chatbot logs
- AI helpers
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.services.chatbot import ChatbotService
from portfolio.services.livechat import LivechatService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

# =============================================================================
# Gate
# =============================================================================


class TestAdminGate:
    """Tests for admin access control."""

    @pytest.mark.asyncio
    async def test_without_session(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/v1/admin/projects")

        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "UNAUTHENTICATED"}
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_with_unknown_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get(
            "/api/v1/admin/projects", headers={"Authorization": "Bearer not-a-session"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_with_session(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get("/api/v1/admin/projects")

        assert response.status_code == 200
        assert response.json() == []
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_auth_not_required(
        self, async_client: AsyncClient, override_settings
    ) -> None:
        override_settings(auth_required=False)

        response = await async_client.get("/api/v1/admin/skills")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_admin_page_redirects(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/admin/blogs", params={"tab": "drafts"})

        assert response.status_code == 307
        assert response.headers["location"] == "/admin/login?next=%2Fadmin%2Fblogs%3Ftab%3Ddrafts"

    @pytest.mark.asyncio
    async def test_cms_feature_disabled(
        self, admin_client: AsyncClient, override_settings
    ) -> None:
        override_settings(feature_admin_cms=False)

        response = await admin_client.get("/api/v1/admin/projects")

        assert response.status_code == 404
        assert response.json()["code"] == "FEATURE_DISABLED"


# =============================================================================
# Content CRUD
# =============================================================================


class TestAdminProjects:
    """Tests for admin project management."""

    @pytest.mark.asyncio
    async def test_crud(self, admin_client: AsyncClient) -> None:
        created = await admin_client.post(
            "/api/v1/admin/projects",
            json={"title": "Chat Bot", "techStack": ["Python"], "coverImageUrl": "/img.png"},
        )
        assert created.status_code == 201
        project = created.json()
        assert project["slug"] == "chat-bot"
        assert project["tech_stack"] == ["Python"]
        assert project["cover_image"] == "/img.png"
        assert project["is_published"] is False
        assert project["ai_readme_draft"] is None

        updated = await admin_client.patch(
            f"/api/v1/admin/projects/{project['id']}", json={"isPublished": True}
        )
        assert updated.json()["is_published"] is True
        assert updated.json()["title"] == "Chat Bot"

        public = await admin_client.get("/api/v1/projects/chat-bot")
        assert public.status_code == 200

        deleted = await admin_client.delete(f"/api/v1/admin/projects/{project['id']}")
        assert deleted.json() == {"ok": True}
        missing = await admin_client.get(f"/api/v1/admin/projects/{project['id']}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_listing_includes_drafts(self, admin_client: AsyncClient) -> None:
        await admin_client.post("/api/v1/admin/projects", json={"title": "Draft"})

        response = await admin_client.get("/api/v1/admin/projects")

        assert [p["slug"] for p in response.json()] == ["draft"]

    @pytest.mark.asyncio
    async def test_slug_conflict(self, admin_client: AsyncClient) -> None:
        await admin_client.post("/api/v1/admin/projects", json={"title": "Bot"})

        response = await admin_client.post(
            "/api/v1/admin/projects", json={"title": "Other", "slug": "bot"}
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLUG_TAKEN"

    @pytest.mark.asyncio
    async def test_missing_title_and_empty_patch(self, admin_client: AsyncClient) -> None:
        no_title = await admin_client.post("/api/v1/admin/projects", json={"summary": "x"})
        created = await admin_client.post("/api/v1/admin/projects", json={"title": "Bot"})
        empty = await admin_client.patch(
            f"/api/v1/admin/projects/{created.json()['id']}", json={}
        )

        assert no_title.status_code == 400
        assert empty.status_code == 400
        assert empty.json()["code"] == "NO_FIELDS_TO_UPDATE"


class TestAdminOtherContent:
    """Tests for blogs, sections, skills and timeline management."""

    @pytest.mark.asyncio
    async def test_blog_publish(self, admin_client: AsyncClient) -> None:
        created = await admin_client.post(
            "/api/v1/admin/blogs", json={"title": "Hello", "content": "Body text"}
        )
        blog = created.json()
        assert blog["status"] == "draft"
        assert blog["published_at"] is None

        published = await admin_client.patch(
            f"/api/v1/admin/blogs/{blog['id']}", json={"status": "published"}
        )

        assert published.json()["is_published"] is True
        assert published.json()["published_at"] is not None
        assert (await admin_client.get("/api/v1/blogs/hello")).status_code == 200

    @pytest.mark.asyncio
    async def test_section_crud(self, admin_client: AsyncClient) -> None:
        created = await admin_client.post(
            "/api/v1/admin/sections", json={"title": "About", "kind": "About Me", "data": {"a": 1}}
        )
        section = created.json()
        assert section["kind"] == "about-me"

        updated = await admin_client.patch(
            f"/api/v1/admin/sections/{section['id']}", json={"noindex": True}
        )
        assert updated.json()["noindex"] is True
        assert updated.json()["data"] == {"a": 1}

        await admin_client.delete(f"/api/v1/admin/sections/{section['id']}")
        assert (await admin_client.get("/api/v1/admin/sections")).json() == []

    @pytest.mark.asyncio
    async def test_skill_and_timeline(self, admin_client: AsyncClient) -> None:
        skill = await admin_client.post(
            "/api/v1/admin/skills", json={"name": "Python", "level": 150}
        )
        entry = await admin_client.post(
            "/api/v1/admin/timeline",
            json={"title": "Engineer", "startDate": "2021-02-03T00:00:00Z", "isCurrent": True},
        )

        assert skill.status_code == 201
        assert skill.json()["level"] == 100
        assert entry.status_code == 201
        assert entry.json()["start_date"] == "2021-02-03"
        assert entry.json()["is_current"] is True

    @pytest.mark.asyncio
    async def test_timeline_bad_date(self, admin_client: AsyncClient) -> None:
        response = await admin_client.post(
            "/api/v1/admin/timeline", json={"title": "Engineer", "startDate": "someday"}
        )
        assert response.status_code == 400


class TestAdminContentNodes:
    """Tests for the admin content tree."""

    @pytest.mark.asyncio
    async def test_tree_management(self, admin_client: AsyncClient) -> None:
        work = (await admin_client.post("/api/v1/admin/content-nodes", json={"name": "Work"})).json()
        child = (
            await admin_client.post(
                "/api/v1/admin/content-nodes",
                json={"title": "Bot", "parentId": work["id"], "isPublished": False},
            )
        ).json()

        admin_tree = (await admin_client.get("/api/v1/admin/content-nodes")).json()
        public_tree = (await admin_client.get("/api/v1/sections/tree")).json()

        assert [n["title"] for n in admin_tree["nodes"]] == ["Work", "Bot"]
        assert [n["title"] for n in public_tree["nodes"]] == ["Work"]

        cycle = await admin_client.patch(
            f"/api/v1/admin/content-nodes/{work['id']}", json={"parentId": child["id"]}
        )
        assert cycle.status_code == 409
        assert cycle.json()["code"] == "CYCLE"

        moved = await admin_client.patch(
            f"/api/v1/admin/content-nodes/{child['id']}", json={"parentId": None}
        )
        assert moved.json()["parent_id"] is None

    @pytest.mark.asyncio
    async def test_delete_with_children(self, admin_client: AsyncClient) -> None:
        work = (await admin_client.post("/api/v1/admin/content-nodes", json={"title": "Work"})).json()
        await admin_client.post(
            "/api/v1/admin/content-nodes", json={"title": "Bot", "parentId": work["id"]}
        )

        response = await admin_client.delete(f"/api/v1/admin/content-nodes/{work['id']}")

        assert response.status_code == 409
        assert response.json()["code"] == "HAS_CHILDREN"


# =============================================================================
# Settings, SEO, media, analytics
# =============================================================================


class TestAdminSite:
    """Tests for settings, SEO, media and analytics."""

    @pytest.mark.asyncio
    async def test_settings(self, admin_client: AsyncClient) -> None:
        merged = await admin_client.put(
            "/api/v1/admin/settings/site", json={"value": {"ownerName": "Ada"}}
        )
        unknown = await admin_client.put("/api/v1/admin/settings/secrets", json={"value": {}})
        listing = await admin_client.get("/api/v1/admin/settings")

        assert merged.json()["key"] == "site"
        assert merged.json()["value"]["ownerName"] == "Ada"
        assert unknown.status_code == 400
        assert sorted(listing.json()) == ["chatbot", "resume", "seo", "site", "theme"]
        assert listing.json()["site"]["ownerName"] == "Ada"

    @pytest.mark.asyncio
    async def test_seo_overview(self, admin_client: AsyncClient) -> None:
        status = (await admin_client.get("/api/v1/admin/seo")).json()
        sitemap = (await admin_client.get("/api/v1/admin/seo/sitemap")).json()

        assert status["canonical_home"] == "http://localhost:3000/"
        assert sitemap["count"] == len(sitemap["entries"])

    @pytest.mark.asyncio
    async def test_media_upload_and_delete(self, admin_client: AsyncClient, fake_storage) -> None:
        uploaded = await admin_client.post(
            "/api/v1/admin/media",
            files={"file": ("logo.png", PNG, "image/png")},
            data={"alt": "Logo"},
        )

        assert uploaded.status_code == 201
        media = uploaded.json()
        assert media["mime_type"] == "image/png"
        assert media["alt"] == "Logo"
        assert media["path"] in fake_storage.objects

        listing = await admin_client.get("/api/v1/admin/media")
        assert [m["id"] for m in listing.json()] == [media["id"]]

        deleted = await admin_client.delete(f"/api/v1/admin/media/{media['id']}")
        assert deleted.json() == {"ok": True}
        assert fake_storage.deleted == [media["path"]]

    @pytest.mark.asyncio
    async def test_media_rejects_html(self, admin_client: AsyncClient, fake_storage) -> None:
        response = await admin_client.post(
            "/api/v1/admin/media", files={"file": ("x.html", b"<html>", "text/html")}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UNSUPPORTED_MEDIA_TYPE"

    @pytest.mark.asyncio
    async def test_media_feature_disabled(
        self, admin_client: AsyncClient, fake_storage, override_settings
    ) -> None:
        override_settings(feature_admin_media=False)

        response = await admin_client.get("/api/v1/admin/media")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_analytics_summary(self, admin_client: AsyncClient) -> None:
        await admin_client.post(
            "/api/v1/analytics/events", json={"name": "page_view", "path": "/blog/x"}
        )

        summary = await admin_client.get(
            "/api/v1/admin/analytics/summary", params={"period": "24h"}
        )
        bad_prefix = await admin_client.get(
            "/api/v1/admin/analytics/summary", params={"pathPrefix": "blog"}
        )

        assert summary.status_code == 200
        assert summary.json()["period"] == "24h"
        assert len(summary.json()["charts"]["page_views"]) == 25
        assert bad_prefix.status_code == 400


# =============================================================================
# Chat moderation
# =============================================================================


class TestAdminChat:
    """Tests for live chat moderation and chatbot logs."""

    @pytest.mark.asyncio
    async def test_livechat_moderation(
        self, admin_client: AsyncClient, db_session: AsyncSession
    ) -> None:
        chat = await LivechatService.start_session(db_session, "Ada")
        await LivechatService.send(db_session, chat.id, "Hello?")
        await db_session.commit()

        sessions = await admin_client.get("/api/v1/admin/chat/sessions", params={"status": "open"})
        assert [s["id"] for s in sessions.json()] == [chat.id]

        reply = await admin_client.post(
            f"/api/v1/admin/chat/sessions/{chat.id}/messages", json={"content": "Hi Ada"}
        )
        assert reply.status_code == 201
        assert reply.json()["role"] == "agent"
        assert "admin_id" in reply.json()["meta"]

        transcript = await admin_client.get(f"/api/v1/admin/chat/sessions/{chat.id}/messages")
        assert [m["content"] for m in transcript.json()["messages"]] == ["Hello?", "Hi Ada"]

        resolved = await admin_client.post(f"/api/v1/admin/chat/sessions/{chat.id}/resolve")
        assert resolved.json()["status"] == "resolved"

        cleared = await admin_client.delete(f"/api/v1/admin/chat/sessions/{chat.id}/messages")
        assert cleared.json() == {"ok": True, "deleted": 2}

    @pytest.mark.asyncio
    async def test_unknown_chat_session(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get("/api/v1/admin/chat/sessions/missing/messages")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_chatbot_logs_and_settings(
        self, admin_client: AsyncClient, db_session: AsyncSession, no_llm
    ) -> None:
        await ChatbotService.send(db_session, "visitor-1", "Hi")
        await ChatbotService.send(db_session, "visitor-2", "Hey")
        await db_session.commit()

        logs = await admin_client.get("/api/v1/admin/chatbot/logs")
        assert len(logs.json()) == 4

        cleared = await admin_client.delete(
            "/api/v1/admin/chatbot/logs", params={"sessionId": "visitor-1"}
        )
        assert cleared.json()["deleted"] == 2

        updated = await admin_client.put(
            "/api/v1/admin/chatbot/settings",
            json={"enabled": False, "systemPrompt": "Be brief."},
        )
        assert updated.json()["enabled"] is False
        assert updated.json()["systemPrompt"] == "Be brief."
        current = await admin_client.get("/api/v1/admin/chatbot/settings")
        assert current.json()["enabled"] is False


# =============================================================================
# AI helpers
# =============================================================================


class TestAdminAI:
    """Tests for the AI helper endpoints."""

    @pytest.mark.asyncio
    async def test_blog_draft_fallback(self, admin_client: AsyncClient, no_llm) -> None:
        response = await admin_client.post(
            "/api/v1/admin/ai/blog-draft", json={"topic": "Vector Search", "keywords": ["AI"]}
        )

        assert response.status_code == 200
        assert response.json()["used_llm"] is False
        assert response.json()["slug"] == "vector-search"

    @pytest.mark.asyncio
    async def test_readme(self, admin_client: AsyncClient, fake_llm) -> None:
        project = (
            await admin_client.post("/api/v1/admin/projects", json={"title": "Bot"})
        ).json()
        fake_llm.reply = '{"content": "# Bot"}'

        response = await admin_client.post(
            "/api/v1/admin/ai/readme", json={"projectId": project["id"]}
        )
        stored = await admin_client.get(f"/api/v1/admin/projects/{project['id']}")

        assert response.json()["content"] == "# Bot"
        assert stored.json()["ai_readme_draft"] == "# Bot"
        assert stored.json()["ai_readme_approved"] is False

    @pytest.mark.asyncio
    async def test_embeddings(self, admin_client: AsyncClient, fake_llm) -> None:
        response = await admin_client.post(
            "/api/v1/admin/ai/embeddings", json={"texts": ["a", "bb"]}
        )

        assert response.json()["count"] == 2
        assert response.json()["dimensions"] == 3

    @pytest.mark.asyncio
    async def test_embeddings_not_configured(self, admin_client: AsyncClient, no_llm) -> None:
        response = await admin_client.post("/api/v1/admin/ai/embeddings", json={"texts": ["a"]})
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_feature_disabled(
        self, admin_client: AsyncClient, fake_llm, override_settings
    ) -> None:
        override_settings(feature_ai_blog_draft=False)

        response = await admin_client.post(
            "/api/v1/admin/ai/blog-draft", json={"topic": "Anything"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "FEATURE_DISABLED"
