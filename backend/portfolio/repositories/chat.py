"""Chatbot and live chat repositories."""

from datetime import datetime

from sqlalchemy import delete, select

from portfolio.models.chat import ChatbotMessage, LivechatMessage, LivechatSession
from portfolio.repositories.base import BaseRepository


class ChatbotMessageRepository(BaseRepository[ChatbotMessage]):
    model = ChatbotMessage

    async def history(self, session_id: str) -> list[ChatbotMessage]:
        return await self.list_where(
            ChatbotMessage.session_id == session_id,
            order_by=(ChatbotMessage.created_at.asc(),),
        )

    async def recent(self, limit: int) -> list[ChatbotMessage]:
        return await self.list_where(
            order_by=(ChatbotMessage.created_at.desc(),), limit=limit
        )

    async def clear(self, session_id: str | None = None) -> int:
        """Delete one conversation, or all of them when session_id is None."""
        async with self._operation("DELETE clear", session_id=session_id):
            stmt = delete(ChatbotMessage)
            if session_id is not None:
                stmt = stmt.where(ChatbotMessage.session_id == session_id)
            result = await self.session.execute(stmt)
            return int(result.rowcount or 0)


class LivechatSessionRepository(BaseRepository[LivechatSession]):
    model = LivechatSession

    async def list_by_status(self, status: str | None) -> list[LivechatSession]:
        where = (LivechatSession.status == status,) if status else ()
        return await self.list_where(
            *where,
            order_by=(
                LivechatSession.last_message_at.desc().nulls_last(),
                LivechatSession.created_at.desc(),
            ),
        )


class LivechatMessageRepository(BaseRepository[LivechatMessage]):
    model = LivechatMessage

    async def list_for_session(
        self,
        session_id: str,
        limit: int,
        offset: int,
        direction: str,
        since: datetime | None,
    ) -> list[LivechatMessage]:
        async with self._operation("SELECT messages", session_id=session_id):
            order = (
                LivechatMessage.created_at.asc()
                if direction == "asc"
                else LivechatMessage.created_at.desc()
            )
            stmt = select(LivechatMessage).where(LivechatMessage.session_id == session_id)
            if since is not None:
                stmt = stmt.where(LivechatMessage.created_at > since)
            result = await self.session.execute(
                stmt.order_by(order).offset(offset).limit(limit)
            )
            return list(result.scalars().all())

    async def clear(self, session_id: str) -> int:
        async with self._operation("DELETE clear", session_id=session_id):
            result = await self.session.execute(
                delete(LivechatMessage).where(LivechatMessage.session_id == session_id)
            )
            return int(result.rowcount or 0)
