"""Admin and admin session repositories."""

from datetime import datetime

from sqlalchemy import update

from portfolio.models.admin import Admin, AdminSession
from portfolio.repositories.base import BaseRepository


class AdminRepository(BaseRepository[Admin]):
    model = Admin

    async def get_by_email(self, email: str) -> Admin | None:
        return await self.get_by(email=email)


class AdminSessionRepository(BaseRepository[AdminSession]):
    model = AdminSession

    async def get_by_token(self, token: str) -> AdminSession | None:
        return await self.get_by(token=token)

    async def revoke(self, token: str) -> int:
        """Mark the session revoked. Returns the number of rows touched."""
        async with self._operation("UPDATE revoke"):
            result = await self.session.execute(
                update(AdminSession)
                .where(AdminSession.token == token, AdminSession.revoked.is_(False))
                .values(revoked=True)
            )
            return int(result.rowcount or 0)

    async def purge_expired(self, now: datetime) -> int:
        """Revoke every session that expired before `now`."""
        async with self._operation("UPDATE purge_expired"):
            result = await self.session.execute(
                update(AdminSession)
                .where(AdminSession.expires_at < now, AdminSession.revoked.is_(False))
                .values(revoked=True)
            )
            return int(result.rowcount or 0)
