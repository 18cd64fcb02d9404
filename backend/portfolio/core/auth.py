"""Admin authentication.

Admins log in with email and password. Passwords are stored as werkzeug
hashes; a successful login creates an `admin_sessions` row holding an
opaque token. The token travels back as an httpOnly cookie or a Bearer
header and is resolved on every admin request by `require_admin`.
"""

import secrets
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from portfolio.core.config import get_settings
from portfolio.core.database import get_session
from portfolio.core.exceptions import AuthError
from portfolio.core.logging import auth_logger, get_logger
from portfolio.models.admin import Admin, AdminSession
from portfolio.repositories.admin import AdminRepository, AdminSessionRepository
from portfolio.utils.dates import ensure_utc, utcnow
from portfolio.utils.validation import validate_login

logger = get_logger(__name__)

ADMIN_ROLE = "admin"
INVALID_CREDENTIALS = "Invalid credentials."


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str | None, password: str) -> bool:
    """Compare a password with a stored hash. A missing hash never matches."""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


@dataclass
class AdminInfo:
    """Public view of the signed-in admin."""

    id: str
    email: str
    display_name: str | None
    role: str

    @classmethod
    def from_model(cls, admin: Admin) -> "AdminInfo":
        return cls(
            id=admin.id,
            email=admin.email,
            display_name=admin.display_name,
            role=admin.role,
        )


# Returned by require_admin when auth_required is off (local development)
_DEV_ADMIN = AdminInfo(
    id="00000000-0000-0000-0000-000000000000",
    email="dev@localhost",
    display_name="Developer",
    role=ADMIN_ROLE,
)


class AuthService:
    """Login, logout and session lookup for admins."""

    @staticmethod
    async def login(
        db: AsyncSession,
        email: str,
        password: str,
        ip: str = "unknown",
        user_agent: str | None = None,
    ) -> tuple[Admin, AdminSession]:
        """Check credentials and open a new session.

        Raises:
            ValidationError: malformed email or password.
            AuthError: unknown email, wrong password, inactive admin or no hash.
        """
        normalized_email, raw_password = validate_login(email, password)

        admin = await AdminRepository(db).get_by_email(normalized_email)
        if admin is None:
            auth_logger.login_failure(normalized_email, ip, "unknown_email")
            raise AuthError(INVALID_CREDENTIALS)
        if not admin.is_active:
            auth_logger.login_failure(normalized_email, ip, "inactive")
            raise AuthError(INVALID_CREDENTIALS)
        if not check_password(admin.password_hash, raw_password):
            auth_logger.login_failure(normalized_email, ip, "bad_password")
            raise AuthError(INVALID_CREDENTIALS)

        settings = get_settings()
        session = await AdminSessionRepository(db).create(
            token=secrets.token_urlsafe(32),
            admin_id=admin.id,
            expires_at=utcnow() + timedelta(hours=settings.session_ttl_hours),
            user_agent=(user_agent or "")[:512] or None,
            ip=ip[:64],
        )
        auth_logger.login_success(admin.id, admin.email, ip)
        return admin, session

    @staticmethod
    async def logout(db: AsyncSession, token: str | None) -> bool:
        """Revoke the session behind `token`. Safe to call repeatedly."""
        if not token:
            return False
        repo = AdminSessionRepository(db)
        session = await repo.get_by_token(token)
        if session is None:
            return False
        revoked = await repo.revoke(token) > 0
        if revoked:
            auth_logger.session_revoked(session.admin_id, token)
        return revoked

    @staticmethod
    async def get_admin_for_token(db: AsyncSession, token: str | None) -> Admin | None:
        """The admin owning a live (unrevoked, unexpired) session, else None."""
        if not token:
            return None
        session = await AdminSessionRepository(db).get_by_token(token)
        if session is None:
            auth_logger.session_rejected("unknown_token", token)
            return None
        if session.revoked:
            auth_logger.session_rejected("revoked", token)
            return None
        expires_at = ensure_utc(session.expires_at)
        if expires_at is None or expires_at <= utcnow():
            auth_logger.session_rejected("expired", token)
            return None

        admin = await AdminRepository(db).get_by_id(session.admin_id)
        if admin is None or not admin.is_active:
            auth_logger.session_rejected("inactive_admin", token)
            return None
        return admin

    @staticmethod
    async def bootstrap_admin(db: AsyncSession) -> Admin | None:
        """Create the configured admin when the admins table is empty."""
        settings = get_settings()
        if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
            return None

        repo = AdminRepository(db)
        if await repo.count() > 0:
            return None

        admin = await repo.create(
            email=settings.bootstrap_admin_email.strip().lower(),
            password_hash=hash_password(settings.bootstrap_admin_password),
            display_name="Admin",
            role=ADMIN_ROLE,
        )
        logger.info("Bootstrap admin created", extra={"admin_id": admin.id})
        return admin


def get_token_from_request(request: Request) -> str | None:
    """Bearer token first, then the session cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    cookie = request.cookies.get(get_settings().session_cookie_name)
    return cookie or None


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> Admin | None:
    return await AuthService.get_admin_for_token(db, get_token_from_request(request))


async def require_admin(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> AdminInfo:
    """Dependency guarding admin endpoints.

    Raises:
        AuthError: 401 without a live session, 403 when the role is not admin.
    """
    if not get_settings().auth_required:
        return _DEV_ADMIN

    admin = await AuthService.get_admin_for_token(db, get_token_from_request(request))
    if admin is None:
        raise AuthError("Authentication required.")
    if admin.role != ADMIN_ROLE:
        raise AuthError("Admin access required.", forbidden=True)

    request.state.admin_id = admin.id
    return AdminInfo.from_model(admin)
