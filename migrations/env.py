"""Alembic environment for async migrations.

The database URL comes from ``Settings.database_config``; the ``.ini`` file
only configures logging and the script location.
"""

import asyncio
import logging
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

# Model modules register their tables on Base.metadata when imported
import src.domain.access.models
import src.domain.catalog.models
import src.domain.hierarchy.models
import src.domain.ledger.models  # noqa: F401
from src.core.config import get_settings
from src.infrastructure.database.base import Base

config = context.config

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting to a database."""
    logger.info("Running migrations in offline mode")

    context.configure(
        url=get_settings().database_config.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations over an asyncpg connection."""
    logger.info("Running migrations in online mode with async engine")

    db_config = get_settings().database_config
    configuration: dict[str, Any] = {
        "sqlalchemy.url": db_config.database_url,
        "sqlalchemy.echo": db_config.echo,
    }

    # Migrations hold a single connection; no pool options apply
    connectable = async_engine_from_config(
        configuration, prefix="sqlalchemy.", poolclass=pool.NullPool
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
