"""Generic async repository for SQLAlchemy models.

Repositories are constructed per request around an injected ``AsyncSession``.
Every statement runs inside ``translate_storage_errors`` so callers only ever
see domain exceptions: ``StorageError`` for transient failures and the
``ConflictError`` registered in ``unique_violations`` for unique constraints.
"""

from collections.abc import Mapping
from contextlib import AbstractContextManager
from typing import Any, ClassVar

from loguru import logger
from sqlalchemy import Select, event, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from src.infrastructure.database.base import BaseModel
from src.infrastructure.database.errors import (
    UniqueViolations,
    translate_storage_errors,
)

PENDING_WRITES_KEY = "pending_writes"


@event.listens_for(Session, "after_commit")
@event.listens_for(Session, "after_rollback")
def _clear_pending_writes(session: Session) -> None:
    session.info.pop(PENDING_WRITES_KEY, None)


class BaseRepository[T: BaseModel]:
    """Base repository providing common CRUD operations.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class RegisterRepository(BaseRepository[Register]):
            unique_violations = {
                "uq_registers_number_branch_id": (
                    ErrorCode.DUPLICATE_NUMBER,
                    "Register number already exists in this branch",
                ),
            }

            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Register)
    """

    unique_violations: ClassVar[UniqueViolations] = {}

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class

    def _mark_written(self) -> None:
        self.session.info[PENDING_WRITES_KEY] = True

    @property
    def has_pending_writes(self) -> bool:
        """Whether the session's transaction holds uncommitted writes.

        Covers statements already flushed by any repository sharing the
        session, as well as objects added or modified but not yet flushed.
        """
        session = self.session
        return bool(session.info.get(PENDING_WRITES_KEY)) or any(
            (session.new, session.dirty, session.deleted)
        )

    def _storage(self, operation: str) -> AbstractContextManager[None]:
        return translate_storage_errors(
            f"{self.model_class.__name__}.{operation}", self.unique_violations
        )

    def _filtered(self, filters: Mapping[str, object]) -> Select[tuple[T]]:
        stmt = select(self.model_class)
        for field, value in filters.items():
            if not hasattr(self.model_class, field):
                msg = f"{self.model_class.__name__} has no field '{field}'"
                raise AttributeError(msg)
            stmt = stmt.where(getattr(self.model_class, field) == value)
        return stmt

    async def get_by_id(self, entity_id: int) -> T | None:
        """Retrieve a model instance by its ID.

        Args:
            entity_id: The primary key ID of the model to retrieve.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        with self._storage("get_by_id"):
            instance = await self.session.get(self.model_class, entity_id)

        logger.debug(
            "{} {} by ID {}",
            "Found" if instance else "Missing",
            self.model_class.__name__,
            entity_id,
        )
        return instance

    async def list_by(self, *, order_by: Any = None, **filters: object) -> list[T]:
        """List instances matching every filter.

        Args:
            order_by: Column to order by; defaults to the primary key.
            **filters: Field-value pairs to filter by.

        Returns:
            list[T]: Matching instances.
        """
        stmt = self._filtered(filters).order_by(
            order_by if order_by is not None else self.model_class.id
        )
        with self._storage("list_by"):
            result = await self.session.scalars(stmt)
            return list(result.all())

    async def find_one_by(
        self, *, exclude_id: int | None = None, **filters: object
    ) -> T | None:
        """Find the first instance matching every filter.

        Args:
            exclude_id: Primary key to ignore, used when re-checking the
                uniqueness of an entity that is being modified.
            **filters: Field-value pairs to filter by.

        Returns:
            T | None: The first matching instance, None otherwise.
        """
        stmt = self._filtered(filters)
        if exclude_id is not None:
            stmt = stmt.where(self.model_class.id != exclude_id)
        stmt = stmt.order_by(self.model_class.id).limit(1)

        with self._storage("find_one_by"):
            result = await self.session.scalars(stmt)
            return result.first()

    async def count_by(self, **filters: object) -> int:
        """Count instances matching every filter."""
        stmt = select(func.count()).select_from(self._filtered(filters).subquery())
        with self._storage("count_by"):
            return (await self.session.scalar(stmt)) or 0

    async def create(self, obj: T) -> T:
        """Persist a new instance and load server-generated values.

        Args:
            obj: The model instance to create.

        Returns:
            T: The created instance with populated ID and timestamps.

        Raises:
            ConflictError: A registered unique constraint was violated.
        """
        with self._storage("create"):
            self._mark_written()
            self.session.add(obj)
            await self.session.flush()
            await self.session.refresh(obj)

        logger.info("Created {} with ID {}", self.model_class.__name__, obj.id)
        return obj

    async def update(self, instance: T, data: Mapping[str, object]) -> T:
        """Apply ``data`` to ``instance`` and flush.

        Args:
            instance: A persistent instance loaded through this session.
            data: Field-value pairs to set.

        Returns:
            T: The refreshed instance.

        Raises:
            ConflictError: A registered unique constraint was violated.
        """
        for key, value in data.items():
            if not hasattr(instance, key):
                msg = f"{self.model_class.__name__} has no field '{key}'"
                raise AttributeError(msg)
            setattr(instance, key, value)

        with self._storage("update"):
            self._mark_written()
            await self.session.flush()
            await self.session.refresh(instance)

        logger.info(
            "Updated {} ID {} - fields: {}",
            self.model_class.__name__,
            instance.id,
            sorted(data),
        )
        return instance

    async def delete(self, instance: T) -> None:
        """Delete ``instance`` and flush."""
        with self._storage("delete"):
            self._mark_written()
            await self.session.delete(instance)
            await self.session.flush()

        logger.info("Deleted {} ID {}", self.model_class.__name__, instance.id)

    async def commit(self) -> None:
        """Commit the current transaction of the session."""
        with self._storage("commit"):
            await self.session.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction of the session."""
        with self._storage("rollback"):
            await self.session.rollback()

    async def reset_for_retry(self) -> bool:
        """Roll back so a failed read can be retried on a fresh connection.

        A transaction holding writes is left untouched: rolling it back would
        discard work the caller still expects to be committed.

        Returns:
            bool: True when the session was rolled back, False when it holds
                pending writes and the read must not be retried.
        """
        if self.has_pending_writes:
            return False
        await self.rollback()
        return True
