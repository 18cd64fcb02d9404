"""Generic async repository shared by every table.

Handles all database operations for one model class.
Follows the layered architecture pattern: API -> Service -> Repository -> Database.

ERROR LOGGING REQUIREMENTS:
- Log method entry/exit at DEBUG level with parameters (sanitized)
- Log all exceptions with full stack trace and context
- Include entity IDs in all logs
- Add timing logs for operations >1 second
"""

import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.database import Base
from portfolio.core.logging import db_logger, get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """CRUD operations for one model with timing and error logging.

    Subclasses set `model` and add table-specific queries.
    """

    model: type[ModelT]
    SLOW_OPERATION_THRESHOLD_MS = 1000  # 1 second

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def table_name(self) -> str:
        return str(self.model.__tablename__)

    @asynccontextmanager
    async def _operation(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Time a database operation and log failures with table context."""
        start_time = time.monotonic()
        logger.debug(
            f"{operation} on {self.table_name}",
            extra={"table": self.table_name, **context},
        )
        try:
            yield
        except IntegrityError as e:
            logger.error(
                f"{operation} on {self.table_name} failed - integrity error",
                extra={
                    "table": self.table_name,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    **context,
                },
                exc_info=True,
            )
            raise
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e,
                table=self.table_name,
                context=f"{operation} {context}" if context else operation,
            )
            raise
        finally:
            duration_ms = (time.monotonic() - start_time) * 1000
            if duration_ms > self.SLOW_OPERATION_THRESHOLD_MS:
                db_logger.slow_query(
                    query=f"{operation} {self.table_name}",
                    duration_ms=duration_ms,
                    table=self.table_name,
                )

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        async with self._operation("SELECT by id", entity_id=entity_id):
            return await self.session.get(self.model, entity_id)

    async def get_by(self, **filters: Any) -> ModelT | None:
        """First row matching all equality filters."""
        async with self._operation("SELECT by fields", filters=list(filters)):
            stmt = select(self.model).filter_by(**filters).limit(1)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_where(
        self,
        *where: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelT]:
        async with self._operation("SELECT list", limit=limit, offset=offset):
            stmt: Select[tuple[ModelT]] = select(self.model)
            if where:
                stmt = stmt.where(*where)
            if order_by:
                stmt = stmt.order_by(*order_by)
            if offset:
                stmt = stmt.offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def count(self, *where: ColumnElement[bool]) -> int:
        async with self._operation("SELECT count"):
            stmt = select(func.count()).select_from(self.model)
            if where:
                stmt = stmt.where(*where)
            result = await self.session.execute(stmt)
            return int(result.scalar_one())

    async def create(self, **fields: Any) -> ModelT:
        async with self._operation("INSERT", fields=sorted(fields)):
            entity = self.model(**fields)
            self.session.add(entity)
            await self.session.flush()
            await self.session.refresh(entity)
            logger.debug(
                f"Created {self.table_name} row",
                extra={"table": self.table_name, "entity_id": getattr(entity, "id", None)},
            )
            return entity

    async def update(self, entity: ModelT, **fields: Any) -> ModelT:
        """Apply `fields` to an already-loaded entity and flush."""
        entity_id = getattr(entity, "id", None)
        async with self._operation("UPDATE", entity_id=entity_id, fields=sorted(fields)):
            for key, value in fields.items():
                setattr(entity, key, value)
            await self.session.flush()
            await self.session.refresh(entity)
            return entity

    async def delete(self, entity: ModelT) -> None:
        entity_id = getattr(entity, "id", None)
        async with self._operation("DELETE", entity_id=entity_id):
            await self.session.delete(entity)
            await self.session.flush()
            logger.info(
                f"Deleted {self.table_name} row",
                extra={"table": self.table_name, "entity_id": entity_id},
            )
