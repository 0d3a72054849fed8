"""Tenant override storage."""

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.catalog.models import CatalogOverride
from src.domain.catalog.schemas import CatalogOverrideUpsert
from src.infrastructure.database.repository import BaseRepository


class CatalogOverrideRepository(BaseRepository[CatalogOverride]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CatalogOverride)

    async def get(self, channel_id: int, code: str) -> CatalogOverride | None:
        return await self.find_one_by(channel_id=channel_id, code=code)

    async def list_for_channel(self, channel_id: int) -> list[CatalogOverride]:
        return await self.list_by(channel_id=channel_id, order_by=CatalogOverride.code)

    async def upsert(
        self, channel_id: int, code: str, payload: CatalogOverrideUpsert
    ) -> CatalogOverride:
        """Insert or replace the channel's override for ``code``.

        Concurrent writers are serialized by ``ON CONFLICT DO UPDATE``; the
        last one wins.
        """
        values = payload.model_dump()
        stmt = pg_insert(CatalogOverride).values(
            channel_id=channel_id, code=code, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["code", "channel_id"],
            set_={
                **{key: stmt.excluded[key] for key in values},
                "updated_at": func.now(),
            },
        ).returning(CatalogOverride)

        with self._storage("upsert"):
            self._mark_written()
            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            return result.one()
