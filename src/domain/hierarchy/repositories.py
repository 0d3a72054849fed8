"""Repositories for the ownership hierarchy.

Lookups that take a ``channel_id`` only return entities reachable from that
channel, so a foreign id looks exactly like a missing one.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ErrorCode
from src.domain.hierarchy.models import Activity, Branch, Channel, Register
from src.infrastructure.database.repository import BaseRepository


class ChannelRepository(BaseRepository[Channel]):
    unique_violations = {
        "uq_channels_code": (ErrorCode.DUPLICATE_CODE, "Channel code already exists"),
        "uq_channels_legal_ident_type_legal_ident": (
            ErrorCode.DUPLICATE_IDENT,
            "A channel with this identification already exists",
        ),
    }

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Channel)


class ActivityRepository(BaseRepository[Activity]):
    unique_violations = {
        "uq_activities_code_channel_id": (
            ErrorCode.DUPLICATE_CODE,
            "Activity code already exists in this channel",
        ),
    }

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Activity)

    async def get_in_channel(
        self, activity_id: int, channel_id: int
    ) -> Activity | None:
        return await self.find_one_by(id=activity_id, channel_id=channel_id)


class BranchRepository(BaseRepository[Branch]):
    unique_violations = {
        "uq_branches_code_activity_id": (
            ErrorCode.DUPLICATE_CODE,
            "Branch code already exists for this activity",
        ),
    }

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Branch)

    async def get_in_channel(self, branch_id: int, channel_id: int) -> Branch | None:
        stmt = (
            select(Branch)
            .join(Activity, Activity.id == Branch.activity_id)
            .where(Branch.id == branch_id, Activity.channel_id == channel_id)
        )
        with self._storage("get_in_channel"):
            return (await self.session.scalars(stmt)).first()

    async def list_in_channel(
        self, channel_id: int, activity_id: int | None = None
    ) -> list[Branch]:
        """Branches of the channel ordered by code, optionally for one activity."""
        stmt = (
            select(Branch)
            .join(Activity, Activity.id == Branch.activity_id)
            .where(Activity.channel_id == channel_id)
            .order_by(Branch.code, Branch.id)
        )
        if activity_id is not None:
            stmt = stmt.where(Branch.activity_id == activity_id)
        with self._storage("list_in_channel"):
            return list((await self.session.scalars(stmt)).all())


class RegisterRepository(BaseRepository[Register]):
    unique_violations = {
        "uq_registers_number_branch_id": (
            ErrorCode.DUPLICATE_NUMBER,
            "Register number already exists in this branch",
        ),
    }

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Register)

    async def get_in_channel(
        self, register_id: int, channel_id: int
    ) -> tuple[Register, Branch] | None:
        """The register and its branch, if the register belongs to the channel."""
        stmt = (
            select(Register, Branch)
            .join(Branch, Branch.id == Register.branch_id)
            .join(Activity, Activity.id == Branch.activity_id)
            .where(Register.id == register_id, Activity.channel_id == channel_id)
        )
        with self._storage("get_in_channel"):
            row = (await self.session.execute(stmt)).first()
        return (row[0], row[1]) if row else None
