"""Hierarchy authority: structural changes across Channel -> Register.

Every uniqueness rule is checked twice. The pre-check produces a precise
``ConflictError``; the database constraint catches the race between two
concurrent creators and is translated to the same error by the repository.

All lookups are channel-scoped: an id from another channel is reported as
not found.
"""

import re
from collections.abc import Mapping
from typing import Final

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, ErrorCode, NotFoundError, ValidationError
from src.core.types import NumberingTable
from src.domain.document_types import merge_numbering_table
from src.domain.hierarchy.models import Activity, Branch, Channel, Register
from src.domain.hierarchy.repositories import (
    ActivityRepository,
    BranchRepository,
    ChannelRepository,
    RegisterRepository,
)
from src.domain.hierarchy.schemas import (
    ActivityCreate,
    BranchCreate,
    BranchUpdate,
    ChannelCreate,
    ChannelUpdate,
)
from src.domain.ledger.service import RegisterLedger

BRANCH_CODE: Final[re.Pattern[str]] = re.compile(r"\d{3}", re.ASCII)


def validate_branch_code(code: str) -> str:
    """Return ``code`` if it is exactly three ASCII digits.

    Raises:
        ValidationError: ``INVALID_CODE`` otherwise.
    """
    if not BRANCH_CODE.fullmatch(code):
        raise ValidationError(
            "Branch code must be exactly three digits",
            error_code=ErrorCode.INVALID_CODE,
            context={"code": code},
        )
    return code


def validate_register_number(number: str) -> str:
    """Return the trimmed register number.

    Raises:
        ValidationError: The number is blank.
    """
    trimmed = number.strip()
    if not trimmed:
        raise ValidationError(
            "Register number must not be blank", context={"number": number}
        )
    return trimmed


class HierarchyAuthority:
    """Single entry point for creating, changing and removing hierarchy nodes.

    Args:
        session: Session of the current unit of work.
        ledger: Ledger used to seed and read register counters.
    """

    def __init__(self, session: AsyncSession, ledger: RegisterLedger | None = None):
        self.channels = ChannelRepository(session)
        self.activities = ActivityRepository(session)
        self.branches = BranchRepository(session)
        self.registers = RegisterRepository(session)
        self.ledger = ledger or RegisterLedger(session)

    # Channels

    async def create_channel(self, data: ChannelCreate) -> Channel:
        """Create a channel.

        Raises:
            ConflictError: ``DUPLICATE_CODE`` or ``DUPLICATE_IDENT``.
        """
        if await self.channels.find_one_by(code=data.code):
            raise ConflictError(
                f"Channel code '{data.code}' already exists",
                error_code=ErrorCode.DUPLICATE_CODE,
                context={"code": data.code},
            )
        if await self.channels.find_one_by(
            legal_ident_type=data.legal_ident_type, legal_ident=data.legal_ident
        ):
            raise ConflictError(
                "A channel with this identification already exists",
                error_code=ErrorCode.DUPLICATE_IDENT,
                context={"legal_ident_type": data.legal_ident_type},
            )

        channel = await self.channels.create(Channel(**data.model_dump()))
        logger.info("Channel {} created", channel.code, channel_id=channel.id)
        return channel

    async def get_channel(self, channel_id: int) -> Channel:
        channel = await self.channels.get_by_id(channel_id)
        if channel is None:
            raise NotFoundError(
                f"Channel {channel_id} not found", context={"channel_id": channel_id}
            )
        return channel

    async def update_channel(self, channel_id: int, data: ChannelUpdate) -> Channel:
        """Change the name or contact fields of a channel."""
        channel = await self.get_channel(channel_id)
        return await self.channels.update(channel, data.model_dump(exclude_unset=True))

    async def deactivate_channel(self, channel_id: int) -> Channel:
        """Soft-delete a channel; its data stays in place."""
        channel = await self.get_channel(channel_id)
        if not channel.is_active:
            return channel
        channel = await self.channels.update(channel, {"is_active": False})
        logger.warning("Channel deactivated", channel_id=channel_id)
        return channel

    # Activities

    async def list_activities(self, channel_id: int) -> list[Activity]:
        return await self.activities.list_by(
            channel_id=channel_id, order_by=Activity.code
        )

    async def get_activity(self, channel_id: int, activity_id: int) -> Activity:
        activity = await self.activities.get_in_channel(activity_id, channel_id)
        if activity is None:
            raise NotFoundError(
                f"Activity {activity_id} not found",
                context={"activity_id": activity_id},
            )
        return activity

    async def create_activity(self, channel_id: int, data: ActivityCreate) -> Activity:
        """Register an economic activity for a channel.

        Raises:
            ConflictError: ``DUPLICATE_CODE`` within the channel.
        """
        await self.get_channel(channel_id)
        if await self.activities.find_one_by(code=data.code, channel_id=channel_id):
            raise ConflictError(
                f"Activity code '{data.code}' already exists in this channel",
                error_code=ErrorCode.DUPLICATE_CODE,
                context={"code": data.code},
            )

        activity = await self.activities.create(
            Activity(channel_id=channel_id, **data.model_dump())
        )
        logger.info(
            "Activity {} created",
            activity.code,
            channel_id=channel_id,
            activity_id=activity.id,
        )
        return activity

    async def delete_activity(
        self, channel_id: int, activity_id: int, *, force: bool = False
    ) -> None:
        """Remove an activity; with ``force`` its branches and registers too.

        Raises:
            ConflictError: ``HAS_DEPENDENTS`` when branches exist and
                ``force`` is false.
        """
        activity = await self.get_activity(channel_id, activity_id)
        branches = await self.branches.list_by(activity_id=activity.id)
        if branches and not force:
            raise ConflictError(
                f"Activity {activity_id} still has {len(branches)} branches",
                error_code=ErrorCode.HAS_DEPENDENTS,
                context={"activity_id": activity_id, "branches": len(branches)},
            )

        for branch in branches:
            await self._delete_branch_tree(branch)
        await self.activities.delete(activity)
        logger.info(
            "Activity deleted",
            channel_id=channel_id,
            activity_id=activity_id,
            cascaded_branches=len(branches),
        )

    # Branches

    async def list_branches(
        self, channel_id: int, activity_id: int | None = None
    ) -> list[Branch]:
        return await self.branches.list_in_channel(channel_id, activity_id)

    async def get_branch(self, channel_id: int, branch_id: int) -> Branch:
        branch = await self.branches.get_in_channel(branch_id, channel_id)
        if branch is None:
            raise NotFoundError(
                f"Branch {branch_id} not found", context={"branch_id": branch_id}
            )
        return branch

    async def _ensure_branch_code_free(
        self, code: str, activity_id: int, exclude_id: int | None = None
    ) -> None:
        if await self.branches.find_one_by(
            code=code, activity_id=activity_id, exclude_id=exclude_id
        ):
            raise ConflictError(
                f"Branch code '{code}' already exists for this activity",
                error_code=ErrorCode.DUPLICATE_CODE,
                context={"code": code, "activity_id": activity_id},
            )

    async def create_branch(self, channel_id: int, data: BranchCreate) -> Branch:
        """Create a branch under one of the channel's activities.

        Raises:
            ValidationError: ``INVALID_CODE`` unless the code is three digits.
            NotFoundError: The activity is not in this channel.
            ConflictError: ``DUPLICATE_CODE`` for the activity.
        """
        code = validate_branch_code(data.code)
        await self.get_activity(channel_id, data.activity_id)
        await self._ensure_branch_code_free(code, data.activity_id)

        branch = await self.branches.create(Branch(**data.model_dump()))
        logger.info(
            "Branch {} created", code, channel_id=channel_id, branch_id=branch.id
        )
        return branch

    async def rename_branch_code(
        self, channel_id: int, branch_id: int, new_code: str
    ) -> Branch:
        """Change a branch code after format and uniqueness checks."""
        return await self.update_branch(
            channel_id, branch_id, BranchUpdate(code=new_code)
        )

    async def update_branch(
        self, channel_id: int, branch_id: int, data: BranchUpdate
    ) -> Branch:
        """Change branch attributes; a new code goes through rename checks."""
        branch = await self.get_branch(channel_id, branch_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        new_code = changes.get("code")
        if new_code is not None and new_code != branch.code:
            validate_branch_code(new_code)
            await self._ensure_branch_code_free(
                new_code, branch.activity_id, exclude_id=branch.id
            )
            logger.info(
                "Branch code {} renamed to {}",
                branch.code,
                new_code,
                channel_id=channel_id,
                branch_id=branch_id,
            )

        return await self.branches.update(branch, changes)

    async def delete_branch(
        self, channel_id: int, branch_id: int, *, force: bool = False
    ) -> None:
        """Remove a branch; with ``force`` its registers too.

        Raises:
            ConflictError: ``HAS_DEPENDENTS`` when registers exist and
                ``force`` is false.
        """
        branch = await self.get_branch(channel_id, branch_id)
        registers = await self.registers.count_by(branch_id=branch.id)
        if registers and not force:
            raise ConflictError(
                f"Branch {branch_id} still has {registers} registers",
                error_code=ErrorCode.HAS_DEPENDENTS,
                context={"branch_id": branch_id, "registers": registers},
            )

        await self._delete_branch_tree(branch)
        logger.info(
            "Branch deleted",
            channel_id=channel_id,
            branch_id=branch_id,
            cascaded_registers=registers,
        )

    async def _delete_branch_tree(self, branch: Branch) -> None:
        # Counters go with their register through ON DELETE CASCADE
        for register in await self.registers.list_by(branch_id=branch.id):
            await self.registers.delete(register)
        await self.branches.delete(branch)

    # Registers

    async def list_registers(
        self, channel_id: int, branch_id: int
    ) -> list[tuple[Register, NumberingTable]]:
        """Registers of a branch ordered by number, with their counters."""
        await self.get_branch(channel_id, branch_id)
        registers = await self.registers.list_by(
            branch_id=branch_id, order_by=Register.number
        )
        tables = await self.ledger.counters.get_tables([r.id for r in registers])
        return [(register, tables[register.id]) for register in registers]

    async def get_register(
        self, channel_id: int, register_id: int
    ) -> tuple[Register, Branch]:
        """The register and its branch.

        Raises:
            NotFoundError: ``REGISTER_NOT_FOUND`` if the register is not in
                this channel.
        """
        found = await self.registers.get_in_channel(register_id, channel_id)
        if found is None:
            raise NotFoundError(
                f"Register {register_id} not found",
                error_code=ErrorCode.REGISTER_NOT_FOUND,
                context={"register_id": register_id},
            )
        return found

    async def _ensure_register_number_free(
        self, number: str, branch_id: int, exclude_id: int | None = None
    ) -> None:
        if await self.registers.find_one_by(
            number=number, branch_id=branch_id, exclude_id=exclude_id
        ):
            raise ConflictError(
                f"Register number '{number}' already exists in this branch",
                error_code=ErrorCode.DUPLICATE_NUMBER,
                context={"number": number, "branch_id": branch_id},
            )

    async def create_register(
        self,
        channel_id: int,
        branch_id: int,
        number: str,
        initial_numbering: Mapping[str, object] | None = None,
    ) -> tuple[Register, NumberingTable]:
        """Create a register with its ten counters.

        ``initial_numbering`` entries override the zero defaults; entries
        with unknown types or non-numeric values are ignored.

        Raises:
            ValidationError: The number is blank.
            NotFoundError: The branch is not in this channel.
            ConflictError: ``DUPLICATE_NUMBER`` within the branch.
        """
        number = validate_register_number(number)
        await self.get_branch(channel_id, branch_id)
        await self._ensure_register_number_free(number, branch_id)

        register = await self.registers.create(
            Register(branch_id=branch_id, number=number)
        )
        table = merge_numbering_table(
            initial_numbering, self.ledger.config.max_counter
        )
        await self.ledger.seed(register.id, table)

        logger.info(
            "Register {} created",
            number,
            channel_id=channel_id,
            branch_id=branch_id,
            register_id=register.id,
        )
        return register, table

    async def renumber_register(
        self, channel_id: int, register_id: int, new_number: str
    ) -> Register:
        """Change a register number, keeping it unique within the branch."""
        new_number = validate_register_number(new_number)
        register, _ = await self.get_register(channel_id, register_id)
        if new_number == register.number:
            return register

        await self._ensure_register_number_free(
            new_number, register.branch_id, exclude_id=register.id
        )
        return await self.registers.update(register, {"number": new_number})

    async def delete_register(self, channel_id: int, register_id: int) -> None:
        """Remove a register together with its counters."""
        register, _ = await self.get_register(channel_id, register_id)
        await self.registers.delete(register)
        logger.info(
            "Register deleted", channel_id=channel_id, register_id=register_id
        )
