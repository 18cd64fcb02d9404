"""Alembic migration environment for the portfolio schema.

The URL comes from DATABASE_URL via the app settings, never from
alembic.ini, and is rewritten for asyncpg. Online runs log start and
finish through the database logger.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

# Registers every table on Base.metadata
import portfolio.models  # noqa: F401
from portfolio.core.config import get_settings
from portfolio.core.database import Base, connect_args, to_async_url
from portfolio.core.logging import db_logger

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _url() -> str:
    return to_async_url(str(get_settings().database_url))


def run_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    context.configure(
        url=_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    head = context.get_head_revision()
    version = str(head) if head else "initial"
    db_logger.migration_start(version=version, description=f"Upgrading portfolio schema to {version}")

    engine = create_async_engine(
        _url(), poolclass=pool.NullPool, connect_args=connect_args(get_settings())
    )
    succeeded = False
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
        succeeded = True
    finally:
        db_logger.migration_end(version=version, success=succeeded)
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
