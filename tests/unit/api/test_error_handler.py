"""Unit tests for src/api/middleware/error_handler.py."""

from collections.abc import AsyncGenerator

import pytest
import pytest_check as check
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pytest_mock import MockerFixture

from src.api.middleware.error_handler import (
    register_exception_handlers,
    status_code_for,
)
from src.api.middleware.request_context import RequestContextMiddleware
from src.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ConsecutivoError,
    CounterOverflowError,
    ErrorCode,
    NotFoundError,
    StorageError,
    ValidationError,
)

RAISED: dict[str, Exception] = {
    "validation": ValidationError(
        "Unknown document type '11'",
        error_code=ErrorCode.UNKNOWN_DOCUMENT_TYPE,
        context={"document_type": "11"},
    ),
    "storage": StorageError("Storage unavailable during Register.get_by_id"),
    "overflow": CounterOverflowError(
        "Counter for document type 01 reached its maximum",
        context={"register_id": 7, "document_type": "01"},
    ),
    "secret": ValidationError(
        "Bad credentials", context={"password": "hunter2", "user": "u1"}
    ),
    "crash": RuntimeError("boom"),
}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)

    @app.get("/raise/{name}")
    async def raise_error(name: str) -> None:
        raise RAISED[name]

    @app.get("/items/{item_id}")
    async def get_item(item_id: int) -> dict[str, int]:
        return {"item_id": item_id}

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.unit
class TestStatusCodeFor:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ValidationError("x"), 400),
            (AuthorizationError("x"), 403),
            (NotFoundError("x"), 404),
            (ConflictError("x"), 409),
            (StorageError("x"), 503),
            (CounterOverflowError("x"), 500),
        ],
    )
    def test_families(self, exc: ConsecutivoError, expected: int) -> None:
        assert status_code_for(exc) == expected

    def test_base_class_is_internal(self) -> None:
        assert status_code_for(ConsecutivoError(ErrorCode.INTERNAL_ERROR, "x")) == 500


@pytest.mark.unit
class TestConsecutivoErrorHandler:
    async def test_validation_error(self, client: AsyncClient) -> None:
        response = await client.get("/raise/validation")

        body = response.json()
        check.equal(response.status_code, 400)
        check.equal(body["error_code"], "UNKNOWN_DOCUMENT_TYPE")
        check.equal(body["details"], {"document_type": "11"})
        check.equal(body["severity"], "LOW")
        check.is_not_none(body["correlation_id"])
        check.is_not_none(body["request_id"])

    async def test_storage_error_is_retryable(self, client: AsyncClient) -> None:
        response = await client.get("/raise/storage")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"

    async def test_overflow_is_critical(self, client: AsyncClient) -> None:
        response = await client.get("/raise/overflow")

        assert response.status_code == 500
        assert response.json()["severity"] == "CRITICAL"
        assert "Retry-After" not in response.headers

    async def test_sensitive_context_is_redacted(self, client: AsyncClient) -> None:
        details = (await client.get("/raise/secret")).json()["details"]

        assert details["password"] == "[REDACTED]"
        assert details["user"] == "u1"

    async def test_correlation_id_is_propagated(self, client: AsyncClient) -> None:
        response = await client.get(
            "/raise/validation", headers={"X-Correlation-ID": "corr-123"}
        )

        assert response.json()["correlation_id"] == "corr-123"
        assert response.headers["X-Correlation-ID"] == "corr-123"


@pytest.mark.unit
class TestFrameworkErrors:
    async def test_request_validation(self, client: AsyncClient) -> None:
        response = await client.get("/items/abc")

        body = response.json()
        assert response.status_code == 422
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "item_id" in body["details"]["validation_errors"]

    async def test_unknown_route(self, client: AsyncClient) -> None:
        response = await client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    async def test_unhandled_exception(self, client: AsyncClient) -> None:
        response = await client.get("/raise/crash")

        body = response.json()
        assert response.status_code == 500
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["severity"] == "CRITICAL"

    async def test_unhandled_exception_in_production(
        self, client: AsyncClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.dict("os.environ", {"ENVIRONMENT": "production"})

        body = (await client.get("/raise/crash")).json()

        assert body["message"] == "An internal server error occurred"
        assert body["details"] is None
