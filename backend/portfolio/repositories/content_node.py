"""Content tree repository."""

from sqlalchemy import select

from portfolio.models.content_node import ContentNode
from portfolio.repositories.base import BaseRepository


class ContentNodeRepository(BaseRepository[ContentNode]):
    model = ContentNode

    async def list_ordered(self, published_only: bool = False) -> list[ContentNode]:
        """All nodes ordered by parent (roots first), order_index, title."""
        where = (ContentNode.is_published.is_(True),) if published_only else ()
        return await self.list_where(
            *where,
            order_by=(
                ContentNode.parent_id.asc().nulls_first(),
                ContentNode.order_index.asc(),
                ContentNode.title.asc(),
            ),
        )

    async def has_children(self, node_id: str) -> bool:
        async with self._operation("SELECT children", node_id=node_id):
            result = await self.session.execute(
                select(ContentNode.id).where(ContentNode.parent_id == node_id).limit(1)
            )
            return result.first() is not None

    async def parent_map(self) -> dict[str, str | None]:
        """id -> parent_id for every node, used for cycle checks."""
        async with self._operation("SELECT parent map"):
            result = await self.session.execute(
                select(ContentNode.id, ContentNode.parent_id)
            )
            return {row.id: row.parent_id for row in result}
