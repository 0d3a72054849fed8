"""Membership lifecycle: owner grants, access requests and approvals."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, ErrorCode, NotFoundError
from src.domain.access.models import Membership
from src.domain.access.repository import MembershipRepository
from src.domain.access.schemas import MembershipUpdate


class MembershipService:
    def __init__(self, session: AsyncSession) -> None:
        self.memberships = MembershipRepository(session)

    async def grant_owner(self, user_id: str, channel_id: int) -> Membership:
        """Make the creator of a channel its first active admin."""
        membership = await self.memberships.create(
            Membership(
                user_id=user_id, channel_id=channel_id, is_admin=True, is_active=True
            )
        )
        logger.info("Channel owner granted", channel_id=channel_id, user_id=user_id)
        return membership

    async def request_access(self, user_id: str, channel_id: int) -> Membership:
        """Record a pending membership for ``user_id``.

        Raises:
            ConflictError: The user already has a membership, pending or not.
        """
        if await self.memberships.get(user_id, channel_id) is not None:
            raise ConflictError(
                "Access to this channel was already requested",
                context={"channel_id": channel_id},
            )
        membership = await self.memberships.create(
            Membership(user_id=user_id, channel_id=channel_id)
        )
        logger.info("Channel access requested", channel_id=channel_id, user_id=user_id)
        return membership

    async def list_memberships(self, channel_id: int) -> list[Membership]:
        return await self.memberships.list_by(
            channel_id=channel_id, order_by=Membership.user_id
        )

    async def set_membership(
        self, channel_id: int, user_id: str, data: MembershipUpdate
    ) -> Membership:
        """Approve, revoke or change the admin flag of a membership.

        Raises:
            NotFoundError: No membership for ``user_id`` in this channel.
            ConflictError: ``LAST_ADMIN`` when the change would leave the
                channel without an active admin.
        """
        membership = await self.memberships.get(user_id, channel_id)
        if membership is None:
            raise NotFoundError(
                "Membership not found",
                context={"channel_id": channel_id, "user_id": user_id},
            )

        changes = data.model_dump(exclude_none=True)
        if not changes:
            return membership

        if _loses_admin(membership, changes):
            await self._ensure_other_admin(channel_id, user_id)

        membership = await self.memberships.update(membership, changes)
        logger.info(
            "Membership updated",
            channel_id=channel_id,
            user_id=user_id,
            is_active=membership.is_active,
            is_admin=membership.is_admin,
        )
        return membership

    async def _ensure_other_admin(self, channel_id: int, user_id: str) -> None:
        admins = await self.memberships.lock_active_admins(channel_id)
        if not any(admin != user_id for admin in admins):
            raise ConflictError(
                "A channel must keep at least one active admin",
                error_code=ErrorCode.LAST_ADMIN,
                context={"channel_id": channel_id, "user_id": user_id},
            )


def _loses_admin(membership: Membership, changes: dict[str, bool]) -> bool:
    if not (membership.is_active and membership.is_admin):
        return False
    return not changes.get("is_active", True) or not changes.get("is_admin", True)
