"""Unit tests for src/infrastructure/database/errors.py."""

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.core.exceptions import ConflictError, ErrorCode, StorageError
from src.infrastructure.database.errors import is_transient, translate_storage_errors

VIOLATIONS = {
    "uq_registers_number_branch_id": (
        ErrorCode.DUPLICATE_NUMBER,
        "Register number already exists in this branch",
    ),
}


def integrity_error(constraint: str) -> IntegrityError:
    return IntegrityError(
        "INSERT INTO registers ...",
        {},
        Exception(f'duplicate key value violates unique constraint "{constraint}"'),
    )


@pytest.mark.unit
class TestIsTransient:
    @pytest.mark.parametrize(
        "exc",
        [
            OperationalError("SELECT 1", {}, Exception("connection refused")),
            PoolTimeoutError("QueuePool limit reached"),
            ConnectionResetError(),
            TimeoutError(),
            DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True),
        ],
    )
    def test_transient(self, exc: BaseException) -> None:
        assert is_transient(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            DBAPIError("SELECT 1", {}, Exception("syntax error")),
            ValueError("bad"),
            integrity_error("uq_registers_number_branch_id"),
        ],
    )
    def test_not_transient(self, exc: BaseException) -> None:
        assert not is_transient(exc)


@pytest.mark.unit
class TestTranslateStorageErrors:
    def test_registered_unique_violation(self) -> None:
        error = integrity_error("uq_registers_number_branch_id")

        with (
            pytest.raises(ConflictError) as exc_info,
            translate_storage_errors("Register.create", VIOLATIONS),
        ):
            raise error

        assert exc_info.value.error_code == ErrorCode.DUPLICATE_NUMBER.value
        assert exc_info.value.context == {
            "constraint": "uq_registers_number_branch_id"
        }
        assert exc_info.value.__cause__ is error

    def test_unregistered_constraint_propagates(self) -> None:
        with (
            pytest.raises(IntegrityError),
            translate_storage_errors("Register.create", VIOLATIONS),
        ):
            raise integrity_error("fk_registers_branch_id_branches")

    def test_transient_failure(self) -> None:
        with (
            pytest.raises(StorageError) as exc_info,
            translate_storage_errors("Register.list_by"),
        ):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        assert exc_info.value.context == {"operation": "Register.list_by"}
        assert exc_info.value.is_retryable

    def test_other_errors_propagate(self) -> None:
        with (
            pytest.raises(KeyError),
            translate_storage_errors("Register.list_by"),
        ):
            raise KeyError("x")

    def test_no_error(self) -> None:
        with translate_storage_errors("Register.list_by"):
            value = 1

        assert value == 1
