"""Unit tests for the API routes with mocked services."""

from datetime import UTC, datetime

import pytest
import pytest_check as check
from httpx import AsyncClient
from pytest_mock import MockerFixture, MockType

from src.core.exceptions import ConflictError, ErrorCode, NotFoundError
from src.domain.access.guard import DENIED, AccessDecision
from src.domain.access.models import Membership
from src.domain.catalog.schemas import CatalogEntry
from src.domain.document_types import default_numbering_table
from src.domain.hierarchy.models import Branch, Channel, Register
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
CHANNEL = "/api/v1/channels/1"
USER_HEADERS = {"X-User-ID": "u1"}


def register_pair(number: str = "1") -> tuple[Register, Branch]:
    return (
        Register(id=7, branch_id=2, number=number),
        Branch(id=2, activity_id=3, code="001"),
    )


@pytest.mark.unit
class TestCallerIdentity:
    async def test_missing_user_header(
        self, client: AsyncClient, guard: MockType
    ) -> None:
        response = await client.get(f"{CHANNEL}/activities")

        assert response.status_code == 403
        assert response.json()["error_code"] == ErrorCode.FORBIDDEN.value
        guard.authorize.assert_not_awaited()

    async def test_blank_user_header(self, client: AsyncClient) -> None:
        response = await client.get(
            f"{CHANNEL}/activities", headers={"X-User-ID": "  "}
        )

        assert response.status_code == 403

    async def test_non_member(
        self, client: AsyncClient, guard: MockType, hierarchy: MockType
    ) -> None:
        guard.authorize.return_value = DENIED

        response = await client.get(f"{CHANNEL}/activities", headers=USER_HEADERS)

        assert response.status_code == 403
        guard.authorize.assert_awaited_once_with("u1", 1)
        hierarchy.list_activities.assert_not_awaited()


@pytest.mark.unit
class TestChannelRoutes:
    async def test_create_channel_grants_owner(
        self, client: AsyncClient, hierarchy: MockType, memberships: MockType
    ) -> None:
        hierarchy.create_channel.return_value = Channel(
            id=1,
            code="ACME",
            name="Acme",
            legal_ident="3101123456",
            legal_ident_type="02",
            phone="",
            phone_code="",
            vat_registration="",
            is_active=True,
            created_at=NOW,
            updated_at=NOW,
        )

        response = await client.post(
            "/api/v1/channels",
            json={
                "code": "acme",
                "name": "Acme",
                "legal_ident": "3101123456",
                "legal_ident_type": "02",
            },
            headers=USER_HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["code"] == "ACME"
        memberships.grant_owner.assert_awaited_once_with("u1", 1)

    async def test_unknown_payload_keys_are_rejected(
        self, client: AsyncClient, hierarchy: MockType
    ) -> None:
        response = await client.post(
            "/api/v1/channels",
            json={
                "code": "acme",
                "name": "Acme",
                "legal_ident": "1",
                "legal_ident_type": "02",
                "owner": "someone",
            },
            headers=USER_HEADERS,
        )

        assert response.status_code == 422
        hierarchy.create_channel.assert_not_awaited()

    async def test_deactivate_requires_admin(
        self, client: AsyncClient, guard: MockType, hierarchy: MockType
    ) -> None:
        guard.authorize.return_value = AccessDecision(member=True)

        response = await client.delete(CHANNEL, headers=USER_HEADERS)

        assert response.status_code == 403
        hierarchy.deactivate_channel.assert_not_awaited()

    async def test_forced_activity_delete(
        self, client: AsyncClient, hierarchy: MockType
    ) -> None:
        response = await client.delete(
            f"{CHANNEL}/activities/3", params={"force": "true"}, headers=USER_HEADERS
        )

        assert response.status_code == 204
        hierarchy.delete_activity.assert_awaited_once_with(1, 3, force=True)


@pytest.mark.unit
class TestRegisterRoutes:
    async def test_create_register(
        self, client: AsyncClient, hierarchy: MockType
    ) -> None:
        table = default_numbering_table() | {"04": "7"}
        hierarchy.create_register.return_value = (
            Register(id=7, branch_id=2, number="1"),
            table,
        )

        response = await client.post(
            f"{CHANNEL}/branches/2/registers",
            json={"number": "1", "numbering": {"04": "7", "99": "x"}},
            headers=USER_HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["numbering"] == table
        hierarchy.create_register.assert_awaited_once_with(
            1, 2, "1", {"04": "7", "99": "x"}
        )

    async def test_duplicate_register_number(
        self, client: AsyncClient, hierarchy: MockType
    ) -> None:
        hierarchy.create_register.side_effect = ConflictError(
            "Register number '1' already exists in this branch",
            error_code=ErrorCode.DUPLICATE_NUMBER,
            context={"number": "1", "branch_id": 2},
        )

        response = await client.post(
            f"{CHANNEL}/branches/2/registers",
            json={"number": "1"},
            headers=USER_HEADERS,
        )

        body = response.json()
        check.equal(response.status_code, 409)
        check.equal(body["error_code"], ErrorCode.DUPLICATE_NUMBER.value)
        check.equal(body["details"], {"number": "1", "branch_id": 2})


@pytest.mark.unit
class TestNumberingRoutes:
    async def test_allocate_next(
        self, client: AsyncClient, hierarchy: MockType, ledger: MockType
    ) -> None:
        hierarchy.get_register.return_value = register_pair()
        ledger.allocate_next.return_value = 42

        response = await client.post(
            f"{CHANNEL}/registers/7/numbering/01/next", headers=USER_HEADERS
        )

        assert response.status_code == 201
        assert response.json() == {
            "register_id": 7,
            "document_type": "01",
            "value": 42,
            "consecutive": "00100001010000000042",
        }
        hierarchy.get_register.assert_awaited_once_with(1, 7)
        ledger.allocate_next.assert_awaited_once_with(7, "01")

    async def test_allocation_survives_unformattable_number(
        self, client: AsyncClient, hierarchy: MockType, ledger: MockType
    ) -> None:
        hierarchy.get_register.return_value = register_pair(number="CAJA-1")
        ledger.allocate_next.return_value = 5

        response = await client.post(
            f"{CHANNEL}/registers/7/numbering/04/next", headers=USER_HEADERS
        )

        assert response.status_code == 201
        assert response.json()["value"] == 5
        assert response.json()["consecutive"] is None

    async def test_register_of_another_channel_is_checked_first(
        self, client: AsyncClient, hierarchy: MockType, ledger: MockType
    ) -> None:
        hierarchy.get_register.side_effect = NotFoundError(
            "Register 7 not found", error_code=ErrorCode.REGISTER_NOT_FOUND
        )

        response = await client.post(
            f"{CHANNEL}/registers/7/numbering/01/next", headers=USER_HEADERS
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == ErrorCode.REGISTER_NOT_FOUND.value
        ledger.allocate_next.assert_not_awaited()

    async def test_peek(
        self, client: AsyncClient, hierarchy: MockType, ledger: MockType
    ) -> None:
        hierarchy.get_register.return_value = register_pair()
        ledger.peek.return_value = 120

        response = await client.get(
            f"{CHANNEL}/registers/7/numbering/01", headers=USER_HEADERS
        )

        assert response.json()["value"] == 120

    async def test_set_counters_requires_admin(
        self,
        client: AsyncClient,
        guard: MockType,
        hierarchy: MockType,
        ledger: MockType,
    ) -> None:
        guard.authorize.return_value = AccessDecision(member=True)

        response = await client.put(
            f"{CHANNEL}/registers/7/numbering", json={"01": "5"}, headers=USER_HEADERS
        )

        assert response.status_code == 403
        ledger.set_counters.assert_not_awaited()

    async def test_set_counters(
        self, client: AsyncClient, hierarchy: MockType, ledger: MockType
    ) -> None:
        hierarchy.get_register.return_value = register_pair()
        ledger.set_counters.return_value = default_numbering_table() | {"04": "7"}

        response = await client.put(
            f"{CHANNEL}/registers/7/numbering",
            json={"04": "7", "xx": 3},
            headers=USER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["numbering"]["04"] == "7"
        ledger.set_counters.assert_awaited_once_with(7, {"04": "7", "xx": 3})


@pytest.mark.unit
class TestCatalogRoutes:
    async def test_lookup(self, client: AsyncClient, catalog: MockType) -> None:
        catalog.lookup.return_value = CatalogEntry(
            code="1234", source="tenant", kind="Servicio"
        )

        response = await client.get(f"{CHANNEL}/catalog/1234", headers=USER_HEADERS)

        assert response.status_code == 200
        assert response.json()["source"] == "tenant"
        catalog.lookup.assert_awaited_once_with(1, "1234")

    async def test_options(self, client: AsyncClient, catalog: MockType) -> None:
        catalog.list_options.return_value = ["Bien", "Servicio"]

        response = await client.get(
            f"{CHANNEL}/catalog-options",
            params={"field": "bienoserv"},
            headers=USER_HEADERS,
        )

        assert response.json()["options"] == ["Bien", "Servicio"]

    async def test_search_limit_is_bounded(
        self, client: AsyncClient, catalog: MockType
    ) -> None:
        response = await client.get(
            f"{CHANNEL}/catalog-search", params={"limit": 0}, headers=USER_HEADERS
        )

        assert response.status_code == 422
        assert "limit" in response.json()["details"]["validation_errors"]
        catalog.search.assert_not_awaited()

    async def test_search(self, client: AsyncClient, catalog: MockType) -> None:
        catalog.search.return_value = []

        await client.get(
            f"{CHANNEL}/catalog-search",
            params={"mode": "tenant", "q": "arroz", "limit": 5},
            headers=USER_HEADERS,
        )

        catalog.search.assert_awaited_once_with(1, "tenant", "arroz", 5)


@pytest.mark.unit
class TestMembershipRoutes:
    async def test_any_caller_may_request_access(
        self,
        client: AsyncClient,
        guard: MockType,
        hierarchy: MockType,
        memberships: MockType,
    ) -> None:
        memberships.request_access.return_value = Membership(
            id=3,
            user_id="u1",
            channel_id=1,
            is_admin=False,
            is_active=False,
            created_at=NOW,
        )

        response = await client.post(f"{CHANNEL}/memberships", headers=USER_HEADERS)

        assert response.status_code == 201
        assert response.json()["is_active"] is False
        hierarchy.get_channel.assert_awaited_once_with(1)
        guard.authorize.assert_not_awaited()

    async def test_approval_requires_admin(
        self, client: AsyncClient, guard: MockType, memberships: MockType
    ) -> None:
        guard.authorize.return_value = AccessDecision(member=True)

        response = await client.patch(
            f"{CHANNEL}/memberships/u2", json={"is_active": True}, headers=USER_HEADERS
        )

        assert response.status_code == 403
        memberships.set_membership.assert_not_awaited()


@pytest.mark.unit
class TestServiceRoutes:
    async def test_health_degrades_without_database(
        self, client: AsyncClient, mocker: MockerFixture
    ) -> None:
        mocker.patch(
            "src.api.main.check_database_connection", return_value=(False, "down")
        )

        body = (await client.get("/health")).json()

        assert body["status"] == "degraded"
        assert body["database"] is False
        assert body["reference_catalog"] == 9

    async def test_info(self, client: AsyncClient) -> None:
        body = (await client.get("/info")).json()

        assert body["app_name"] == "Consecutivo"
        assert body["environment"] == "development"
