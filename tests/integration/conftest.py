"""Fixtures for tests against a real PostgreSQL database.

Tests use the ``_test`` sibling of the configured database and are skipped
when it cannot be reached. Every test starts from freshly created tables.
"""

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import asyncpg
import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

import src.domain.access.models
import src.domain.catalog.models
import src.domain.hierarchy.models
import src.domain.ledger.models  # noqa: F401
from src.core.config import get_settings
from src.domain.access.service import MembershipService
from src.domain.hierarchy.schemas import ActivityCreate, BranchCreate, ChannelCreate
from src.domain.hierarchy.service import HierarchyAuthority
from src.infrastructure.database.base import Base

type SessionFactory = async_sessionmaker[AsyncSession]


@dataclass(frozen=True)
class Tree:
    """Ids of a channel with one activity, one branch and one register."""

    channel_id: int
    activity_id: int
    branch_id: int
    register_id: int


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    url = get_settings().database_config.get_test_database_url()
    engine = create_async_engine(url, poolclass=NullPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError, asyncpg.PostgresError) as e:
        await engine.dispose()
        pytest.skip(f"Test database unavailable: {e}")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> SessionFactory:
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: SessionFactory) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


async def create_tree(
    session: AsyncSession,
    *,
    code: str = "ACME",
    legal_ident: str = "3101123456",
    owner: str = "owner",
    numbering: dict[str, object] | None = None,
) -> Tree:
    """Create a channel owned by ``owner`` down to one register and commit."""
    hierarchy = HierarchyAuthority(session)
    channel = await hierarchy.create_channel(
        ChannelCreate(
            code=code, name=code, legal_ident=legal_ident, legal_ident_type="02"
        )
    )
    await MembershipService(session).grant_owner(owner, channel.id)
    activity = await hierarchy.create_activity(
        channel.id, ActivityCreate(code="722003", personal_name="Software")
    )
    branch = await hierarchy.create_branch(
        channel.id, BranchCreate(activity_id=activity.id, code="001", name="Centro")
    )
    register, _ = await hierarchy.create_register(
        channel.id, branch.id, "1", numbering
    )
    await session.commit()
    return Tree(channel.id, activity.id, branch.id, register.id)


@pytest.fixture
async def tree(db_session: AsyncSession) -> Tree:
    return await create_tree(db_session)
