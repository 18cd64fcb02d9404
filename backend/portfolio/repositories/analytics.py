"""Analytics event repository."""

from datetime import datetime

from sqlalchemy import select

from portfolio.models.analytics_event import AnalyticsEvent
from portfolio.repositories.base import BaseRepository


class AnalyticsRepository(BaseRepository[AnalyticsEvent]):
    model = AnalyticsEvent

    async def list_since(
        self, since: datetime, path_prefix: str | None = None
    ) -> list[AnalyticsEvent]:
        where = [AnalyticsEvent.created_at >= since]
        if path_prefix:
            where.append(AnalyticsEvent.path.startswith(path_prefix, autoescape=True))
        return await self.list_where(*where, order_by=(AnalyticsEvent.created_at.asc(),))

    async def has_duplicate(self, dedupe_key: str, since: datetime) -> bool:
        """Whether an event with this dedupe key was stored at or after `since`."""
        async with self._operation("SELECT dedupe", dedupe_key=dedupe_key):
            result = await self.session.execute(
                select(AnalyticsEvent.id)
                .where(
                    AnalyticsEvent.dedupe_key == dedupe_key,
                    AnalyticsEvent.created_at >= since,
                )
                .limit(1)
            )
            return result.first() is not None
