"""Branch and register routes, scoped to ``/channels/{channel_id}``."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import ChannelMember, Hierarchy, Ledger
from src.domain.hierarchy.models import Branch
from src.domain.hierarchy.schemas import (
    BranchCreate,
    BranchRead,
    BranchUpdate,
    RegisterCreate,
    RegisterRead,
    RegisterRenumber,
)

router = APIRouter()

ForceDelete = Annotated[
    bool, Query(description="Also delete dependent registers and their counters")
]


@router.get("/branches", response_model=list[BranchRead])
async def list_branches(
    channel_id: int,
    access: ChannelMember,
    hierarchy: Hierarchy,
    activity_id: int | None = None,
) -> list[Branch]:
    return await hierarchy.list_branches(channel_id, activity_id)


@router.post(
    "/branches", response_model=BranchRead, status_code=status.HTTP_201_CREATED
)
async def create_branch(
    channel_id: int, data: BranchCreate, access: ChannelMember, hierarchy: Hierarchy
) -> Branch:
    return await hierarchy.create_branch(channel_id, data)


@router.get("/branches/{branch_id}", response_model=BranchRead)
async def get_branch(
    channel_id: int, branch_id: int, access: ChannelMember, hierarchy: Hierarchy
) -> Branch:
    return await hierarchy.get_branch(channel_id, branch_id)


@router.patch("/branches/{branch_id}", response_model=BranchRead)
async def update_branch(
    channel_id: int,
    branch_id: int,
    data: BranchUpdate,
    access: ChannelMember,
    hierarchy: Hierarchy,
) -> Branch:
    return await hierarchy.update_branch(channel_id, branch_id, data)


@router.delete("/branches/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_branch(
    channel_id: int,
    branch_id: int,
    access: ChannelMember,
    hierarchy: Hierarchy,
    force: ForceDelete = False,
) -> None:
    await hierarchy.delete_branch(channel_id, branch_id, force=force)


@router.get("/branches/{branch_id}/registers", response_model=list[RegisterRead])
async def list_registers(
    channel_id: int, branch_id: int, access: ChannelMember, hierarchy: Hierarchy
) -> list[RegisterRead]:
    """Registers of a branch with their numbering tables."""
    return [
        RegisterRead(
            id=register.id,
            branch_id=register.branch_id,
            number=register.number,
            numbering=table,
        )
        for register, table in await hierarchy.list_registers(channel_id, branch_id)
    ]


@router.post(
    "/branches/{branch_id}/registers",
    response_model=RegisterRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_register(
    channel_id: int,
    branch_id: int,
    data: RegisterCreate,
    access: ChannelMember,
    hierarchy: Hierarchy,
) -> RegisterRead:
    """Create a register and its ten counters.

    Unknown document types and non-numeric values in ``numbering`` are
    ignored; missing types start at zero.
    """
    register, table = await hierarchy.create_register(
        channel_id, branch_id, data.number, data.numbering
    )
    return RegisterRead(
        id=register.id,
        branch_id=register.branch_id,
        number=register.number,
        numbering=table,
    )


@router.patch("/registers/{register_id}", response_model=RegisterRead)
async def renumber_register(
    channel_id: int,
    register_id: int,
    data: RegisterRenumber,
    access: ChannelMember,
    hierarchy: Hierarchy,
    ledger: Ledger,
) -> RegisterRead:
    register = await hierarchy.renumber_register(channel_id, register_id, data.number)
    return RegisterRead(
        id=register.id,
        branch_id=register.branch_id,
        number=register.number,
        numbering=await ledger.numbering_table(register.id),
    )


@router.delete("/registers/{register_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_register(
    channel_id: int, register_id: int, access: ChannelMember, hierarchy: Hierarchy
) -> None:
    await hierarchy.delete_register(channel_id, register_id)
