"""Membership storage."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ErrorCode
from src.domain.access.models import Membership
from src.domain.hierarchy.models import Channel
from src.infrastructure.database.repository import BaseRepository


class MembershipRepository(BaseRepository[Membership]):
    unique_violations = {
        "uq_user_channels_user_id_channel_id": (
            ErrorCode.CONFLICT,
            "A membership for this user and channel already exists",
        ),
    }

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Membership)

    async def get(self, user_id: str, channel_id: int) -> Membership | None:
        return await self.find_one_by(user_id=user_id, channel_id=channel_id)

    async def get_with_channel_state(
        self, user_id: str, channel_id: int
    ) -> tuple[Membership, bool] | None:
        """The membership together with the channel's ``is_active`` flag."""
        stmt = (
            select(Membership, Channel.is_active)
            .join(Channel, Channel.id == Membership.channel_id)
            .where(Membership.user_id == user_id, Membership.channel_id == channel_id)
        )
        with self._storage("get_with_channel_state"):
            row = (await self.session.execute(stmt)).first()
        return None if row is None else (row[0], row[1])

    async def lock_active_admins(self, channel_id: int) -> list[str]:
        """User ids of the channel's active admins, row-locked until commit.

        Concurrent demotions queue on these locks, so each one sees the admins
        left by the previous one.
        """
        stmt = (
            select(Membership.user_id)
            .where(
                Membership.channel_id == channel_id,
                Membership.is_active.is_(True),
                Membership.is_admin.is_(True),
            )
            .order_by(Membership.id)
            .with_for_update()
        )
        with self._storage("lock_active_admins"):
            return list(await self.session.scalars(stmt))
