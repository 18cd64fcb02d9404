"""Async engine, sessions and transactions for the portfolio database.

Sessions are handed to request handlers by `get_session`, which commits
when the handler returns. Anything slower than
DB_SLOW_QUERY_THRESHOLD_MS is logged at WARNING; SQLAlchemy failures are
rolled back and logged with the table they touched, when it can be told
from the error text.
"""

import re
import time
from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from portfolio.core.config import Settings, get_settings
from portfolio.core.logging import db_logger, get_logger

logger = get_logger(__name__)

_ASYNC_SCHEMES = (("postgres://", "postgresql+asyncpg://"), ("postgresql://", "postgresql+asyncpg://"))

_TABLE_IN_ERROR = re.compile(
    r'relation "(?P<a>[^"]+)"'
    r"|table '(?P<b>[^']+)'"
    r'|(?:INSERT INTO|UPDATE|DELETE FROM) "?(?P<c>[^\s"]+)"?',
    re.IGNORECASE,
)


class Base(DeclarativeBase):
    """Declarative base for every portfolio table."""

    pass


def to_async_url(url: str) -> str:
    """Point a postgres:// or postgresql:// URL at the asyncpg driver."""
    for prefix, replacement in _ASYNC_SCHEMES:
        if url.startswith(prefix):
            return replacement + url[len(prefix) :]
    return url


def connect_args(settings: Settings) -> dict[str, Any]:
    """asyncpg connect arguments shared by the app engine and migrations."""
    args: dict[str, Any] = {
        "timeout": settings.db_connect_timeout,
        "command_timeout": settings.db_command_timeout,
    }
    if settings.environment == "production":
        # asyncpg spells it 'ssl', not 'sslmode'
        args["ssl"] = "require"
    return args


def _engine_options(settings: Settings) -> dict[str, Any]:
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
        "echo": settings.debug,
        "connect_args": connect_args(settings),
    }


class DatabaseManager:
    """Owns the process-wide engine and session factory."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        return self._session_factory

    def init_db(self) -> None:
        settings = get_settings()
        url = to_async_url(str(settings.database_url))
        try:
            engine = create_async_engine(url, **_engine_options(settings))
        except Exception as e:
            db_logger.connection_error(e, url)
            raise

        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        logger.info(
            "Database engine initialized",
            extra={"pool_size": settings.db_pool_size, "max_overflow": settings.db_max_overflow},
        )

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connections closed")

    async def check_connection(self) -> bool:
        """Run SELECT 1; False (and a logged error) when the database is unreachable."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_logger.connection_error(e, str(get_settings().database_url))
            return False
        return True


db_manager = DatabaseManager()


@contextmanager
def _timed(label: str, table: str | None = None) -> Iterator[None]:
    threshold_ms = get_settings().db_slow_query_threshold_ms
    started = time.monotonic()
    try:
        yield
    finally:
        duration_ms = (time.monotonic() - started) * 1000
        if duration_ms > threshold_ms:
            db_logger.slow_query(query=label, duration_ms=duration_ms, table=table)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Usage:
        @router.get("/projects")
        async def list_projects(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with db_manager.session_factory() as session:
        with _timed("session_transaction"):
            try:
                yield session
                await session.commit()
            except PoolTimeoutError:
                settings = get_settings()
                db_logger.pool_exhausted(settings.db_pool_size, settings.db_max_overflow)
                raise
            except SQLAlchemyError as e:
                await session.rollback()
                db_logger.transaction_failure(
                    e,
                    table=_extract_table_from_error(e),
                    context="Session rollback after SQLAlchemy error",
                )
                raise


@asynccontextmanager
async def transaction(
    session: AsyncSession, table: str | None = None
) -> AsyncGenerator[AsyncSession, None]:
    """Commit the block's work on exit, roll back and log on SQLAlchemy errors.

    Usage:
        async with transaction(session, table="settings"):
            ...
    """
    with _timed(f"transaction on {table or 'unknown'}", table=table):
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            db_logger.transaction_failure(e, table=table, context="Explicit transaction rollback")
            raise


def _extract_table_from_error(error: Exception) -> str | None:
    match = _TABLE_IN_ERROR.search(str(error))
    if match is None:
        return None
    return match.group("a") or match.group("b") or match.group("c")
