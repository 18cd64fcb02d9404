"""Tests for the admin access gate decisions."""

import pytest

from portfolio.core.access import (
    ALLOW,
    REDIRECT,
    UNAUTHORIZED,
    is_authenticated_payload,
    resolve_access,
)


class TestResolveAccess:
    """Tests for resolve_access."""

    @pytest.mark.parametrize(
        "path",
        ["/_next/static/chunk.js", "/favicon.ico", "/robots.txt", "/sitemap.xml", "/images/a.png"],
    )
    def test_public_assets_always_allowed(self, path: str) -> None:
        assert resolve_access(path, "", authenticated=False).action == ALLOW

    def test_authenticated_is_allowed_everywhere(self) -> None:
        assert resolve_access("/api/v1/admin/projects", "", authenticated=True).action == ALLOW
        assert resolve_access("/admin", "", authenticated=True).action == ALLOW

    def test_admin_api_is_unauthorized(self) -> None:
        assert resolve_access("/api/v1/admin", "", False).action == UNAUTHORIZED
        assert resolve_access("/api/v1/admin/blogs", "", False).action == UNAUTHORIZED

    def test_admin_pages_redirect_with_next(self) -> None:
        decision = resolve_access("/admin/projects", "tab=drafts", False)
        assert decision.action == REDIRECT
        assert decision.location == "/admin/login?next=%2Fadmin%2Fprojects%3Ftab%3Ddrafts"

    def test_login_pages_allowed(self) -> None:
        assert resolve_access("/admin/login", "", False).action == ALLOW
        assert resolve_access("/login", "", False).action == ALLOW

    def test_legacy_admin_paths_redirect_to_legacy_login(self) -> None:
        decision = resolve_access("/dashboard", "", False)
        assert decision.action == REDIRECT
        assert decision.location == "/login?next=%2Fdashboard"

    def test_prefix_must_match_whole_segment(self) -> None:
        assert resolve_access("/administrator", "", False).action == ALLOW
        assert resolve_access("/chatbots", "", False).action == ALLOW

    def test_public_pages_allowed(self) -> None:
        assert resolve_access("/projects/rag-bot", "", False).action == ALLOW


class TestIsAuthenticatedPayload:
    """Tests for is_authenticated_payload."""

    @pytest.mark.parametrize(
        "payload",
        [{"ok": True}, {"authenticated": True}, {"user": {"id": "1"}}],
    )
    def test_authenticated_shapes(self, payload: dict) -> None:
        assert is_authenticated_payload(payload) is True

    @pytest.mark.parametrize(
        "payload",
        [None, [], {"ok": "true"}, {"authenticated": False}, {"user": None}],
    )
    def test_unauthenticated_shapes(self, payload: object) -> None:
        assert is_authenticated_payload(payload) is False
