"""Counter routes: read, override and allocate consecutive numbers."""

from typing import Annotated

from fastapi import APIRouter, Body, status
from loguru import logger

from src.api.dependencies import ChannelAdmin, ChannelMember, Hierarchy, Ledger
from src.core.exceptions import ValidationError
from src.domain.ledger.schemas import AllocationRead, CounterRead, NumberingRead
from src.domain.ledger.service import format_consecutive

router = APIRouter(prefix="/registers/{register_id}/numbering")


@router.get("", response_model=NumberingRead)
async def get_numbering(
    channel_id: int,
    register_id: int,
    access: ChannelMember,
    hierarchy: Hierarchy,
    ledger: Ledger,
) -> NumberingRead:
    await hierarchy.get_register(channel_id, register_id)
    return NumberingRead(
        register_id=register_id, numbering=await ledger.numbering_table(register_id)
    )


@router.put("", response_model=NumberingRead)
async def set_counters(
    channel_id: int,
    register_id: int,
    numbering: Annotated[
        dict[str, object], Body(examples=[{"01": "120", "04": "7"}])
    ],
    access: ChannelAdmin,
    hierarchy: Hierarchy,
    ledger: Ledger,
) -> NumberingRead:
    """Overwrite counters; entries that are not valid counters are ignored."""
    await hierarchy.get_register(channel_id, register_id)
    table = await ledger.set_counters(register_id, numbering)
    return NumberingRead(register_id=register_id, numbering=table)


@router.get("/{document_type}", response_model=CounterRead)
async def peek(
    channel_id: int,
    register_id: int,
    document_type: str,
    access: ChannelMember,
    hierarchy: Hierarchy,
    ledger: Ledger,
) -> CounterRead:
    await hierarchy.get_register(channel_id, register_id)
    return CounterRead(
        register_id=register_id,
        document_type=document_type,
        value=await ledger.peek(register_id, document_type),
    )


@router.post(
    "/{document_type}/next",
    response_model=AllocationRead,
    status_code=status.HTTP_201_CREATED,
)
async def allocate_next(
    channel_id: int,
    register_id: int,
    document_type: str,
    access: ChannelMember,
    hierarchy: Hierarchy,
    ledger: Ledger,
) -> AllocationRead:
    """Allocate the next number of ``document_type`` for the register.

    The allocation is committed before the response is built; a number that
    was allocated is never handed out again, even if the caller never
    receives this response.
    """
    register, branch = await hierarchy.get_register(channel_id, register_id)
    value = await ledger.allocate_next(register_id, document_type)

    try:
        consecutive = format_consecutive(
            branch.code, register.number, document_type, value
        )
    except ValidationError as e:
        logger.warning(
            "Allocated {} but cannot build consecutive: {}",
            value,
            e.message,
            register_id=register_id,
            document_type=document_type,
        )
        consecutive = None

    return AllocationRead(
        register_id=register_id,
        document_type=document_type,
        value=value,
        consecutive=consecutive,
    )
