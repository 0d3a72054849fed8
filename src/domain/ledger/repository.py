"""Counter storage with single-statement allocation."""

from collections.abc import Mapping

from sqlalchemy import BigInteger, String, cast, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.types import NumberingTable
from src.domain.hierarchy.models import Register
from src.domain.ledger.models import RegisterCounter
from src.infrastructure.database.repository import BaseRepository


class CounterRepository(BaseRepository[RegisterCounter]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RegisterCounter)

    async def increment(
        self, register_id: int, document_type: str, max_value: int
    ) -> str | None:
        """Add one to a counter and return the new value, atomically.

        The read-modify-write happens inside one ``UPDATE ... RETURNING``, so
        PostgreSQL's row lock orders concurrent callers. A counter already at
        ``max_value`` is left untouched.

        Returns:
            str | None: The new value, or None when no row was updated
                (missing counter or counter at its maximum).
        """
        current = cast(RegisterCounter.value, BigInteger)
        stmt = (
            update(RegisterCounter)
            .where(
                RegisterCounter.register_id == register_id,
                RegisterCounter.document_type == document_type,
                current < max_value,
            )
            .values(value=cast(current + 1, String))
            .returning(RegisterCounter.value)
            .execution_options(synchronize_session=False)
        )
        with self._storage("increment"):
            self._mark_written()
            return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_value(self, register_id: int, document_type: str) -> str | None:
        stmt = select(RegisterCounter.value).where(
            RegisterCounter.register_id == register_id,
            RegisterCounter.document_type == document_type,
        )
        with self._storage("get_value"):
            return await self.session.scalar(stmt)

    async def get_table(self, register_id: int) -> NumberingTable:
        stmt = (
            select(RegisterCounter.document_type, RegisterCounter.value)
            .where(RegisterCounter.register_id == register_id)
            .order_by(RegisterCounter.document_type)
        )
        with self._storage("get_table"):
            rows = (await self.session.execute(stmt)).all()
        return {document_type: value for document_type, value in rows}

    async def get_tables(self, register_ids: list[int]) -> dict[int, NumberingTable]:
        """Numbering tables of several registers in one query."""
        tables: dict[int, NumberingTable] = {rid: {} for rid in register_ids}
        if not register_ids:
            return tables

        stmt = (
            select(
                RegisterCounter.register_id,
                RegisterCounter.document_type,
                RegisterCounter.value,
            )
            .where(RegisterCounter.register_id.in_(register_ids))
            .order_by(RegisterCounter.register_id, RegisterCounter.document_type)
        )
        with self._storage("get_tables"):
            rows = (await self.session.execute(stmt)).all()
        for register_id, document_type, value in rows:
            tables[register_id][document_type] = value
        return tables

    async def write_values(self, register_id: int, values: Mapping[str, str]) -> None:
        """Insert or overwrite counters of one register."""
        if not values:
            return

        stmt = pg_insert(RegisterCounter).values(
            [
                {"register_id": register_id, "document_type": code, "value": value}
                for code, value in values.items()
            ]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["register_id", "document_type"],
            set_={"value": stmt.excluded.value, "updated_at": func.now()},
        )
        with self._storage("write_values"):
            self._mark_written()
            await self.session.execute(stmt)

    async def register_exists(self, register_id: int) -> bool:
        stmt = select(Register.id).where(Register.id == register_id)
        with self._storage("register_exists"):
            return (await self.session.scalar(stmt)) is not None
