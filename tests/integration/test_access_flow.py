"""Membership lifecycle and access decisions against PostgreSQL."""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, ErrorCode
from src.domain.access.guard import DENIED, MembershipAccessGuard
from src.domain.access.schemas import MembershipUpdate
from src.domain.access.service import MembershipService
from src.domain.hierarchy.service import HierarchyAuthority
from tests.integration.conftest import SessionFactory, Tree


@pytest.mark.integration
class TestAccessFlow:
    async def test_owner_is_admin(self, db_session: AsyncSession, tree: Tree) -> None:
        decision = await MembershipAccessGuard(db_session).authorize(
            "owner", tree.channel_id
        )

        assert decision.member
        assert decision.is_admin

    async def test_request_then_approve(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        guard = MembershipAccessGuard(db_session)
        memberships = MembershipService(db_session)

        await memberships.request_access("clerk", tree.channel_id)
        await db_session.commit()
        assert await guard.authorize("clerk", tree.channel_id) is DENIED

        await memberships.set_membership(
            tree.channel_id, "clerk", MembershipUpdate(is_active=True)
        )
        await db_session.commit()
        decision = await guard.authorize("clerk", tree.channel_id)

        assert decision.member
        assert not decision.is_admin

    async def test_repeated_request(self, db_session: AsyncSession, tree: Tree) -> None:
        with pytest.raises(ConflictError):
            await MembershipService(db_session).request_access(
                "owner", tree.channel_id
            )

    async def test_deactivated_channel_denies_everyone(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        await HierarchyAuthority(db_session).deactivate_channel(tree.channel_id)
        await db_session.commit()

        decision = await MembershipAccessGuard(db_session).authorize(
            "owner", tree.channel_id
        )

        assert decision is DENIED


@pytest.mark.integration
class TestLastAdmin:
    async def test_owner_cannot_step_down_alone(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        with pytest.raises(ConflictError) as exc_info:
            await MembershipService(db_session).set_membership(
                tree.channel_id, "owner", MembershipUpdate(is_admin=False)
            )

        assert exc_info.value.error_code == ErrorCode.LAST_ADMIN.value

    async def test_owner_steps_down_after_promoting(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        memberships = MembershipService(db_session)
        await memberships.request_access("clerk", tree.channel_id)
        await memberships.set_membership(
            tree.channel_id, "clerk", MembershipUpdate(is_active=True, is_admin=True)
        )

        owner = await memberships.set_membership(
            tree.channel_id, "owner", MembershipUpdate(is_admin=False)
        )

        assert not owner.is_admin

    async def test_concurrent_demotions_keep_one_admin(
        self, db_session: AsyncSession, session_factory: SessionFactory, tree: Tree
    ) -> None:
        memberships = MembershipService(db_session)
        await memberships.request_access("clerk", tree.channel_id)
        await memberships.set_membership(
            tree.channel_id, "clerk", MembershipUpdate(is_active=True, is_admin=True)
        )
        await db_session.commit()

        async def demote(user_id: str) -> None:
            async with session_factory() as session:
                await MembershipService(session).set_membership(
                    tree.channel_id, user_id, MembershipUpdate(is_admin=False)
                )
                await session.commit()

        results = await asyncio.gather(
            demote("owner"), demote("clerk"), return_exceptions=True
        )

        assert sum(isinstance(r, ConflictError) for r in results) == 1
        assert sum(r is None for r in results) == 1
