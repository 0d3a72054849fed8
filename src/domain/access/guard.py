"""Access guard: decides whether a caller may act on a channel.

The guard is a contract; ``MembershipAccessGuard`` is the implementation
backed by the ``user_channels`` table. Callers turn a decision into an error
with ``require_member`` and ``require_admin``.
"""

from dataclasses import dataclass
from typing import Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import AuthorizationError
from src.domain.access.repository import MembershipRepository


@dataclass(frozen=True, slots=True)
class AccessDecision:
    member: bool
    is_admin: bool = False


DENIED = AccessDecision(member=False)


class AccessGuard(Protocol):
    async def authorize(self, user_id: str, channel_id: int) -> AccessDecision: ...


class MembershipAccessGuard:
    """Grants access to active members of active channels.

    Pending memberships, revoked memberships and deactivated channels all
    produce a denial; admin rights only count for a member.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.memberships = MembershipRepository(session)

    async def authorize(self, user_id: str, channel_id: int) -> AccessDecision:
        found = await self.memberships.get_with_channel_state(user_id, channel_id)
        if found is None:
            return DENIED

        membership, channel_active = found
        if not (membership.is_active and channel_active):
            return DENIED
        return AccessDecision(member=True, is_admin=membership.is_admin)


def require_member(
    decision: AccessDecision, *, user_id: str | None = None, channel_id: int
) -> AccessDecision:
    """Return ``decision`` if it grants membership.

    Raises:
        AuthorizationError: The caller is not an active member.
    """
    if not decision.member:
        logger.warning(
            "Access denied to channel", channel_id=channel_id, user_id=user_id
        )
        raise AuthorizationError(
            "Not a member of this channel", context={"channel_id": channel_id}
        )
    return decision


def require_admin(
    decision: AccessDecision, *, user_id: str | None = None, channel_id: int
) -> AccessDecision:
    """Return ``decision`` if it grants admin rights.

    Raises:
        AuthorizationError: The caller is not an admin member.
    """
    require_member(decision, user_id=user_id, channel_id=channel_id)
    if not decision.is_admin:
        logger.warning(
            "Admin action denied on channel", channel_id=channel_id, user_id=user_id
        )
        raise AuthorizationError(
            "Channel admin rights required", context={"channel_id": channel_id}
        )
    return decision
