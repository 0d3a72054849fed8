"""Membership routes: access requests and their approval by admins."""

from fastapi import APIRouter, status

from src.api.dependencies import ChannelAdmin, CurrentUser, Hierarchy, Memberships
from src.domain.access.models import Membership
from src.domain.access.schemas import MembershipRead, MembershipUpdate

router = APIRouter(prefix="/memberships")


@router.post("", response_model=MembershipRead, status_code=status.HTTP_201_CREATED)
async def request_access(
    channel_id: int,
    user_id: CurrentUser,
    hierarchy: Hierarchy,
    memberships: Memberships,
) -> Membership:
    """Ask to join a channel. The membership stays pending until approved."""
    await hierarchy.get_channel(channel_id)
    return await memberships.request_access(user_id, channel_id)


@router.get("", response_model=list[MembershipRead])
async def list_memberships(
    channel_id: int, access: ChannelAdmin, memberships: Memberships
) -> list[Membership]:
    return await memberships.list_memberships(channel_id)


@router.patch("/{user_id}", response_model=MembershipRead)
async def set_membership(
    channel_id: int,
    user_id: str,
    data: MembershipUpdate,
    access: ChannelAdmin,
    memberships: Memberships,
) -> Membership:
    """Approve, revoke or change the admin flag of a member."""
    return await memberships.set_membership(channel_id, user_id, data)
