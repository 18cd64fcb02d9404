"""Media repository."""

from portfolio.models.media import Media
from portfolio.repositories.base import BaseRepository


class MediaRepository(BaseRepository[Media]):
    model = Media

    async def list_recent(self, limit: int, offset: int) -> list[Media]:
        return await self.list_where(
            order_by=(Media.created_at.desc(),), limit=limit, offset=offset
        )
