"""Route gate in front of the admin surface.

`resolve_access` is a pure decision over (path, query, authenticated).
`AccessGateMiddleware` applies it to every request: admin API calls
without a session get a 401 JSON body, admin pages redirect to login.
The middleware only checks that a live session exists; role checks stay
with `require_admin`.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.core.auth import AuthService, get_token_from_request
from portfolio.core.config import get_settings
from portfolio.core.database import db_manager
from portfolio.core.logging import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIXES = (
    "/_next/",
    "/favicon.ico",
    "/robots.txt",
    "/sitemap.xml",
    "/images/",
    "/icons/",
    "/assets/",
    "/fallback/",
)

ADMIN_API_PREFIX = "/api/v1/admin"
ADMIN_LOGIN_PATH = "/admin/login"
LEGACY_LOGIN_PATH = "/login"

LEGACY_ADMIN_PATHS = (
    "/dashboard",
    "/content",
    "/blogs/edit",
    "/projects/edit",
    "/media",
    "/seo",
    "/settings",
    "/chat",
    "/chatbot",
)

ALLOW = "allow"
UNAUTHORIZED = "unauthorized"
REDIRECT = "redirect"


@dataclass(frozen=True)
class AccessDecision:
    action: str
    location: str | None = None


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def resolve_access(path: str, query: str, authenticated: bool) -> AccessDecision:
    """Decide what happens to a request before it reaches a route."""
    if any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES):
        return AccessDecision(ALLOW)
    if authenticated:
        return AccessDecision(ALLOW)

    if _matches(path, ADMIN_API_PREFIX):
        return AccessDecision(UNAUTHORIZED)

    if path in (ADMIN_LOGIN_PATH, LEGACY_LOGIN_PATH):
        return AccessDecision(ALLOW)

    next_target = quote(path + (f"?{query}" if query else ""), safe="")
    if _matches(path, "/admin"):
        return AccessDecision(REDIRECT, f"{ADMIN_LOGIN_PATH}?next={next_target}")
    if any(_matches(path, prefix) for prefix in LEGACY_ADMIN_PATHS):
        return AccessDecision(REDIRECT, f"{LEGACY_LOGIN_PATH}?next={next_target}")

    return AccessDecision(ALLOW)


def is_authenticated_payload(payload: Any) -> bool:
    """Interpret a session-check response body."""
    if not isinstance(payload, dict):
        return False
    if payload.get("ok") is True or payload.get("authenticated") is True:
        return True
    return isinstance(payload.get("user"), dict)


def _needs_session_check(path: str) -> bool:
    if _matches(path, ADMIN_API_PREFIX) or _matches(path, "/admin"):
        return True
    return any(_matches(path, prefix) for prefix in LEGACY_ADMIN_PATHS)


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Reject or redirect unauthenticated requests to admin routes."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        path = request.url.path
        if not get_settings().auth_required or not _needs_session_check(path):
            return await call_next(request)

        authenticated = await self._has_session(request)
        decision = resolve_access(path, request.url.query, authenticated)

        if decision.action == UNAUTHORIZED:
            logger.info(
                "Admin API request without session",
                extra={"path": path, "method": request.method},
            )
            return JSONResponse(
                status_code=401,
                content={"ok": False, "error": "UNAUTHENTICATED"},
                headers={"Cache-Control": "no-store"},
            )
        if decision.action == REDIRECT and decision.location:
            return RedirectResponse(decision.location, status_code=307)
        return await call_next(request)

    async def _has_session(self, request: Request) -> bool:
        token = get_token_from_request(request)
        if not token:
            return False
        async with db_manager.session_factory() as db:
            admin = await AuthService.get_admin_for_token(db, token)
        return admin is not None
