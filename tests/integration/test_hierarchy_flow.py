"""Hierarchy changes and counter overrides against PostgreSQL."""

import asyncio

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    StorageError,
)
from src.domain.hierarchy.models import Register
from src.domain.hierarchy.schemas import BranchCreate
from src.domain.hierarchy.service import HierarchyAuthority
from src.domain.ledger.service import RegisterLedger
from tests.integration.conftest import SessionFactory, Tree, create_tree


@pytest.mark.integration
class TestCounterOverride:
    async def test_override_then_allocate(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        ledger = RegisterLedger(db_session)

        table = await ledger.set_counters(tree.register_id, {"04": "7", "99": "1"})
        await db_session.commit()

        assert table["04"] == "7"
        assert await ledger.peek(tree.register_id, "04") == 7
        assert await ledger.allocate_next(tree.register_id, "04") == 8

    async def test_initial_numbering_is_merged(self, db_session: AsyncSession) -> None:
        tree = await create_tree(db_session, numbering={"01": "0120", "02": "abc"})

        table = await RegisterLedger(db_session).numbering_table(tree.register_id)

        assert table["01"] == "120"
        assert table["02"] == "0"
        assert len(table) == 10


@pytest.mark.integration
class TestRegisterNumbers:
    async def test_duplicate_number_in_branch(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)

        with pytest.raises(ConflictError) as exc_info:
            await hierarchy.create_register(tree.channel_id, tree.branch_id, " 1 ")

        assert exc_info.value.error_code == ErrorCode.DUPLICATE_NUMBER.value

    async def test_same_number_in_another_branch(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)
        branch = await hierarchy.create_branch(
            tree.channel_id,
            BranchCreate(activity_id=tree.activity_id, code="002", name="Norte"),
        )

        register, _ = await hierarchy.create_register(tree.channel_id, branch.id, "1")

        assert register.number == "1"

    async def test_concurrent_creators_get_one_conflict(
        self, session_factory: SessionFactory, tree: Tree
    ) -> None:
        async def create(number: str) -> None:
            async with session_factory() as session:
                await HierarchyAuthority(session).create_register(
                    tree.channel_id, tree.branch_id, number
                )
                await session.commit()

        results = await asyncio.gather(
            create("2"), create("2"), return_exceptions=True
        )

        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(conflicts) == 1
        assert conflicts[0].error_code == ErrorCode.DUPLICATE_NUMBER.value
        assert results.count(None) == 1

    async def test_renumber_to_taken_number(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)
        register, _ = await hierarchy.create_register(
            tree.channel_id, tree.branch_id, "2"
        )

        with pytest.raises(ConflictError):
            await hierarchy.renumber_register(tree.channel_id, register.id, "1")


@pytest.mark.integration
class TestChannelScope:
    async def test_foreign_register_is_not_found(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        other = await create_tree(db_session, code="OTHER", legal_ident="3101999999")

        with pytest.raises(NotFoundError) as exc_info:
            await HierarchyAuthority(db_session).get_register(
                other.channel_id, tree.register_id
            )

        assert exc_info.value.error_code == ErrorCode.REGISTER_NOT_FOUND.value

    async def test_foreign_branch_is_not_found(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        other = await create_tree(db_session, code="OTHER", legal_ident="3101999999")

        with pytest.raises(NotFoundError):
            await HierarchyAuthority(db_session).get_branch(
                other.channel_id, tree.branch_id
            )


@pytest.mark.integration
class TestDeletion:
    async def test_branch_with_registers_needs_force(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)

        with pytest.raises(ConflictError) as exc_info:
            await hierarchy.delete_branch(tree.channel_id, tree.branch_id)

        assert exc_info.value.error_code == ErrorCode.HAS_DEPENDENTS.value

    async def test_forced_activity_delete_removes_subtree(
        self, db_session: AsyncSession, tree: Tree
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)

        await hierarchy.delete_activity(tree.channel_id, tree.activity_id, force=True)
        await db_session.commit()

        assert await hierarchy.list_branches(tree.channel_id) == []
        assert await hierarchy.ledger.counters.get_table(tree.register_id) == {}


@pytest.mark.integration
class TestReadAfterWrite:
    async def test_failed_read_keeps_flushed_renumber(
        self,
        db_session: AsyncSession,
        session_factory: SessionFactory,
        tree: Tree,
        mocker: MockerFixture,
    ) -> None:
        hierarchy = HierarchyAuthority(db_session)
        ledger = RegisterLedger(db_session)
        get_table = mocker.patch.object(
            ledger.counters, "get_table", side_effect=StorageError("down")
        )

        await hierarchy.renumber_register(tree.channel_id, tree.register_id, "2")
        with pytest.raises(StorageError):
            await ledger.numbering_table(tree.register_id)
        await db_session.commit()

        get_table.assert_awaited_once()
        async with session_factory() as session:
            register = await session.get(Register, tree.register_id)
        assert register is not None
        assert register.number == "2"

    async def test_read_without_writes_is_retried(
        self, db_session: AsyncSession, tree: Tree, mocker: MockerFixture
    ) -> None:
        ledger = RegisterLedger(db_session)
        get_table = mocker.patch.object(
            ledger.counters,
            "get_table",
            side_effect=[StorageError("down"), {"01": "0"}],
        )

        assert await ledger.numbering_table(tree.register_id) == {"01": "0"}
        assert get_table.await_count == 2
