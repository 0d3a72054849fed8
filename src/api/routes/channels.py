"""Channel and activity routes."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import (
    ChannelAdmin,
    ChannelMember,
    CurrentUser,
    Hierarchy,
    Memberships,
)
from src.domain.hierarchy.models import Activity, Channel
from src.domain.hierarchy.schemas import (
    ActivityCreate,
    ActivityRead,
    ChannelCreate,
    ChannelRead,
    ChannelUpdate,
)

router = APIRouter()


@router.post("", response_model=ChannelRead, status_code=status.HTTP_201_CREATED)
async def create_channel(
    data: ChannelCreate,
    user_id: CurrentUser,
    hierarchy: Hierarchy,
    memberships: Memberships,
) -> Channel:
    """Create a channel; the caller becomes its first admin."""
    channel = await hierarchy.create_channel(data)
    await memberships.grant_owner(user_id, channel.id)
    return channel


@router.get("/{channel_id}", response_model=ChannelRead)
async def get_channel(
    channel_id: int, access: ChannelMember, hierarchy: Hierarchy
) -> Channel:
    return await hierarchy.get_channel(channel_id)


@router.patch("/{channel_id}", response_model=ChannelRead)
async def update_channel(
    channel_id: int, data: ChannelUpdate, access: ChannelMember, hierarchy: Hierarchy
) -> Channel:
    return await hierarchy.update_channel(channel_id, data)


@router.delete("/{channel_id}", response_model=ChannelRead)
async def deactivate_channel(
    channel_id: int, access: ChannelAdmin, hierarchy: Hierarchy
) -> Channel:
    """Deactivate a channel. Its data is kept; members lose access."""
    return await hierarchy.deactivate_channel(channel_id)


@router.get("/{channel_id}/activities", response_model=list[ActivityRead])
async def list_activities(
    channel_id: int, access: ChannelMember, hierarchy: Hierarchy
) -> list[Activity]:
    return await hierarchy.list_activities(channel_id)


@router.post(
    "/{channel_id}/activities",
    response_model=ActivityRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_activity(
    channel_id: int, data: ActivityCreate, access: ChannelMember, hierarchy: Hierarchy
) -> Activity:
    return await hierarchy.create_activity(channel_id, data)


@router.delete(
    "/{channel_id}/activities/{activity_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_activity(
    channel_id: int,
    activity_id: int,
    access: ChannelMember,
    hierarchy: Hierarchy,
    force: Annotated[
        bool, Query(description="Also delete branches and registers")
    ] = False,
) -> None:
    await hierarchy.delete_activity(channel_id, activity_id, force=force)
