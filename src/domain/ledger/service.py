"""Register ledger: consecutive numbers per register and document type.

``allocate_next`` is the hot path. It is a single guarded ``UPDATE ...
RETURNING`` committed immediately, so concurrent callers on the same
register and type receive distinct, strictly increasing numbers and the
stored counter always equals the number of successful allocations since the
last administrative override. Allocation is never retried; reads are.
"""

from collections.abc import Mapping
from typing import Final, NoReturn

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import LedgerConfig, get_settings
from src.core.exceptions import (
    CounterOverflowError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)
from src.core.observability import trace_operation
from src.core.retry import retry_read
from src.core.types import NumberingTable
from src.domain.document_types import (
    NUMERIC_VALUE,
    accepted_counter_values,
    parse_document_type,
)
from src.domain.ledger.repository import CounterRepository

BRANCH_CODE_WIDTH: Final[int] = 3
REGISTER_NUMBER_WIDTH: Final[int] = 5
DOCUMENT_TYPE_WIDTH: Final[int] = 2
SEQUENCE_WIDTH: Final[int] = 10


def _pad(part: str, width: int, label: str) -> str:
    if not NUMERIC_VALUE.fullmatch(part) or len(part.lstrip("0")) > width:
        raise ValidationError(
            f"{label} '{part}' does not fit {width} digits",
            context={label.lower().replace(" ", "_"): part, "width": width},
        )
    return part.zfill(width)[-width:]


def format_consecutive(
    branch_code: str, register_number: str, document_type: str, value: int
) -> str:
    """Build the 20-digit consecutive number of a fiscal document.

    Layout: branch (3) + register (5) + document type (2) + sequence (10).

    Example:
        >>> format_consecutive("001", "1", "01", 42)
        '00100001010000000042'

    Raises:
        ValidationError: A part is not numeric or does not fit its width.
    """
    parse_document_type(document_type)
    return (
        _pad(branch_code, BRANCH_CODE_WIDTH, "Branch code")
        + _pad(register_number.strip(), REGISTER_NUMBER_WIDTH, "Register number")
        + document_type
        + _pad(str(value), SEQUENCE_WIDTH, "Sequence")
    )


class RegisterLedger:
    """Counter operations for registers.

    Callers are expected to have verified that the register belongs to the
    requesting channel; the ledger only knows register ids.

    Args:
        session: Session of the current unit of work.
        config: Ledger settings; defaults to ``Settings.ledger_config``.
    """

    def __init__(self, session: AsyncSession, config: LedgerConfig | None = None):
        self.counters = CounterRepository(session)
        self.config = config or get_settings().ledger_config

    async def allocate_next(self, register_id: int, document_type: str) -> int:
        """Allocate the next number of ``document_type`` on a register.

        The increment is committed before returning; a caller that gives up
        afterwards leaves a gap, never a duplicate.

        Raises:
            ValidationError: ``UNKNOWN_DOCUMENT_TYPE``; storage is not touched.
            NotFoundError: ``REGISTER_NOT_FOUND``.
            CounterOverflowError: The counter is at ``max_counter``.
            StorageError: The store failed; the outcome is unknown to the
                caller and the allocation is not retried.
        """
        parse_document_type(document_type)

        with trace_operation(
            "ledger.allocate_next",
            register_id=register_id,
            document_type=document_type,
        ):
            new_value = await self.counters.increment(
                register_id, document_type, self.config.max_counter
            )
            if new_value is None:
                await self._raise_allocation_failure(register_id, document_type)
            await self.counters.commit()

        value = int(new_value)
        logger.info(
            "Allocated consecutive {} for document type {}",
            value,
            document_type,
            register_id=register_id,
            document_type=document_type,
            value=value,
        )
        return value

    async def _raise_allocation_failure(
        self, register_id: int, document_type: str
    ) -> NoReturn:
        if not await self.counters.register_exists(register_id):
            raise NotFoundError(
                f"Register {register_id} not found",
                error_code=ErrorCode.REGISTER_NOT_FOUND,
                context={"register_id": register_id},
            )

        current = await self.counters.get_value(register_id, document_type)
        if current is None:
            raise NotFoundError(
                f"Register {register_id} has no counter for type {document_type}",
                context={"register_id": register_id, "document_type": document_type},
            )

        logger.critical(
            "Counter exhausted at {}",
            current,
            register_id=register_id,
            document_type=document_type,
            max_counter=self.config.max_counter,
        )
        raise CounterOverflowError(
            f"Counter for document type {document_type} reached its maximum",
            context={
                "register_id": register_id,
                "document_type": document_type,
                "max_counter": self.config.max_counter,
            },
        )

    async def peek(self, register_id: int, document_type: str) -> int:
        """Last allocated number, without allocating.

        Raises:
            ValidationError: ``UNKNOWN_DOCUMENT_TYPE``.
            NotFoundError: ``REGISTER_NOT_FOUND``.
        """
        parse_document_type(document_type)

        async def read() -> str | None:
            return await self.counters.get_value(register_id, document_type)

        value = await retry_read(
            read, name="ledger.peek", reset=self.counters.reset_for_retry
        )
        if value is None:
            raise NotFoundError(
                f"Register {register_id} not found",
                error_code=ErrorCode.REGISTER_NOT_FOUND,
                context={"register_id": register_id, "document_type": document_type},
            )
        return int(value)

    async def numbering_table(self, register_id: int) -> NumberingTable:
        """Every counter of a register, keyed by document type code."""

        async def read() -> NumberingTable:
            return await self.counters.get_table(register_id)

        table = await retry_read(
            read, name="ledger.numbering_table", reset=self.counters.reset_for_retry
        )
        if not table:
            raise NotFoundError(
                f"Register {register_id} not found",
                error_code=ErrorCode.REGISTER_NOT_FOUND,
                context={"register_id": register_id},
            )
        return table

    async def seed(self, register_id: int, table: Mapping[str, str]) -> None:
        """Create the counters of a newly created register."""
        await self.counters.write_values(register_id, table)

    async def set_counters(
        self, register_id: int, partial_table: Mapping[str, object]
    ) -> NumberingTable:
        """Overwrite counters administratively.

        Entries with unknown types or non-numeric values are ignored. There
        is no monotonicity check: rewinding a counter makes the next
        allocations reissue numbers, so every rewind is logged.

        Returns:
            NumberingTable: The register's full table after the change.

        Raises:
            NotFoundError: ``REGISTER_NOT_FOUND``.
        """
        with trace_operation("ledger.set_counters", register_id=register_id):
            current = await self.counters.get_table(register_id)
            if not current:
                raise NotFoundError(
                    f"Register {register_id} not found",
                    error_code=ErrorCode.REGISTER_NOT_FOUND,
                    context={"register_id": register_id},
                )

            accepted = accepted_counter_values(partial_table, self.config.max_counter)
            for code, value in accepted.items():
                previous = current.get(code, "0")
                if int(value) < int(previous):
                    logger.warning(
                        "Counter rewound from {} to {}",
                        previous,
                        value,
                        register_id=register_id,
                        document_type=code,
                    )

            await self.counters.write_values(register_id, accepted)

        logger.info(
            "Counters overridden for {} document types",
            len(accepted),
            register_id=register_id,
            document_types=sorted(accepted),
        )
        return current | accepted
