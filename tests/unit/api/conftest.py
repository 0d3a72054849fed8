"""Fixtures for API tests: the app with mocked services and access guard."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pytest_mock import MockerFixture, MockType

from src.api.dependencies import (
    get_access_guard,
    get_catalog,
    get_hierarchy,
    get_ledger,
    get_memberships,
)
from src.api.main import create_app
from src.domain.access.guard import AccessDecision
from src.domain.access.service import MembershipService
from src.domain.catalog.resolver import CatalogResolver
from src.domain.hierarchy.service import HierarchyAuthority
from src.domain.ledger.service import RegisterLedger


@pytest.fixture
def guard(mocker: MockerFixture) -> MockType:
    guard = mocker.AsyncMock()
    guard.authorize.return_value = AccessDecision(member=True, is_admin=True)
    return guard


@pytest.fixture
def hierarchy(mocker: MockerFixture) -> MockType:
    return mocker.AsyncMock(spec=HierarchyAuthority)


@pytest.fixture
def ledger(mocker: MockerFixture) -> MockType:
    return mocker.AsyncMock(spec=RegisterLedger)


@pytest.fixture
def catalog(mocker: MockerFixture) -> MockType:
    return mocker.AsyncMock(spec=CatalogResolver)


@pytest.fixture
def memberships(mocker: MockerFixture) -> MockType:
    return mocker.AsyncMock(spec=MembershipService)


@pytest.fixture
def app(
    guard: MockType,
    hierarchy: MockType,
    ledger: MockType,
    catalog: MockType,
    memberships: MockType,
) -> FastAPI:
    application = create_app()
    application.dependency_overrides.update(
        {
            get_access_guard: lambda: guard,
            get_hierarchy: lambda: hierarchy,
            get_ledger: lambda: ledger,
            get_catalog: lambda: catalog,
            get_memberships: lambda: memberships,
        }
    )
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
