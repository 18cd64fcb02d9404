"""Admin authentication endpoints.

- POST /api/v1/auth/login - Exchange email/password for a session
- POST /api/v1/auth/logout - Revoke the current session
- GET /api/v1/auth/me - The signed-in admin (401 otherwise)
- GET /api/v1/auth/session - Session check used by the frontend gate

The session token is returned in the body and set as an httpOnly cookie.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.auth import AdminInfo, AuthService, get_current_admin, get_token_from_request
from portfolio.core.config import get_settings
from portfolio.core.database import get_session
from portfolio.core.exceptions import AuthError
from portfolio.core.logging import get_logger
from portfolio.core.rate_limit import get_client_ip, login_limiter, rate_limit
from portfolio.models.admin import Admin
from portfolio.schemas.auth import AdminResponse, LoginRequest, LoginResponse, SessionResponse
from portfolio.schemas.common import OkResponse
from portfolio.services.analytics import AnalyticsService

logger = get_logger(__name__)

router = APIRouter()


def _admin_response(admin: Admin) -> AdminResponse:
    info = AdminInfo.from_model(admin)
    return AdminResponse(
        id=info.id, email=info.email, display_name=info.display_name, role=info.role
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
    dependencies=[Depends(rate_limit(login_limiter))],
)
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    ip = get_client_ip(request)
    user_agent = request.headers.get("user-agent")
    admin, admin_session = await AuthService.login(
        session, data.email, data.password, ip=ip, user_agent=user_agent
    )

    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=admin_session.token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    await AnalyticsService.record(
        session, "admin_login", "/admin/login", payload={"admin_id": admin.id}, ip=ip,
        user_agent=user_agent,
    )
    return LoginResponse(
        token=admin_session.token,
        expires_at=admin_session.expires_at,
        user=_admin_response(admin),
    )


@router.post("/logout", response_model=OkResponse, summary="Admin logout")
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
) -> OkResponse:
    await AuthService.logout(session, get_token_from_request(request))
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return OkResponse()


@router.get("/me", response_model=AdminResponse, summary="Signed-in admin")
async def me(admin: Admin | None = Depends(get_current_admin)) -> AdminResponse:
    if admin is None:
        raise AuthError("Authentication required.")
    return _admin_response(admin)


@router.get("/session", response_model=SessionResponse, summary="Session check")
async def session_status(admin: Admin | None = Depends(get_current_admin)) -> SessionResponse:
    if admin is None:
        return SessionResponse(ok=False, authenticated=False, user=None)
    return SessionResponse(ok=True, authenticated=True, user=_admin_response(admin))
