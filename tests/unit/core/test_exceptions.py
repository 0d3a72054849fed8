"""Unit tests for src/core/exceptions.py."""

import pytest
import pytest_check

from src.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ConsecutivoError,
    CounterOverflowError,
    ErrorCode,
    NotFoundError,
    Severity,
    StorageError,
    ValidationError,
)


@pytest.mark.unit
class TestExceptionTaxonomy:
    """Default codes and severities of each exception family."""

    @pytest.mark.parametrize(
        ("error_class", "code", "severity"),
        [
            (ValidationError, ErrorCode.VALIDATION_ERROR, Severity.LOW),
            (ConflictError, ErrorCode.CONFLICT, Severity.LOW),
            (NotFoundError, ErrorCode.NOT_FOUND, Severity.LOW),
            (AuthorizationError, ErrorCode.FORBIDDEN, Severity.HIGH),
            (StorageError, ErrorCode.STORAGE_UNAVAILABLE, Severity.HIGH),
            (CounterOverflowError, ErrorCode.COUNTER_OVERFLOW, Severity.CRITICAL),
        ],
    )
    def test_defaults(
        self, error_class: type[ConsecutivoError], code: ErrorCode, severity: Severity
    ) -> None:
        error = error_class("boom")

        with pytest_check.check:
            assert error.error_code == code.value
        with pytest_check.check:
            assert error.severity is severity
        with pytest_check.check:
            assert error.message == "boom"
        with pytest_check.check:
            assert isinstance(error, ConsecutivoError)

    def test_specific_code_overrides_default(self) -> None:
        error = NotFoundError(
            "Register 9 not found", error_code=ErrorCode.REGISTER_NOT_FOUND
        )

        assert error.error_code == "REGISTER_NOT_FOUND"
        assert str(error) == "[REGISTER_NOT_FOUND] Register 9 not found"

    def test_only_storage_errors_are_retryable(self) -> None:
        assert StorageError("down").is_retryable
        assert not ConflictError("dup").is_retryable
        assert not CounterOverflowError("full").is_retryable

    def test_alerting_follows_severity(self) -> None:
        assert CounterOverflowError("full").should_alert
        assert AuthorizationError("no").should_alert
        assert ValidationError("bad").is_expected
        assert not ValidationError("bad").should_alert

    def test_cause_is_chained(self) -> None:
        cause = OSError("connection reset")
        error = StorageError("down", cause=cause)

        assert error.cause is cause
        assert error.__cause__ is cause

    def test_context_defaults_to_empty_dict(self) -> None:
        assert ConflictError("dup").context == {}

    def test_fingerprint_is_stable_for_same_location(self) -> None:
        def raise_it() -> ValidationError:
            return ValidationError("bad", error_code=ErrorCode.INVALID_CODE)

        first, second = raise_it(), raise_it()

        assert first.fingerprint == second.fingerprint
        assert len(first.fingerprint) == 16

    def test_repr_includes_context(self) -> None:
        error = ConflictError("dup", context={"number": "1"})

        assert "ConflictError(error_code='CONFLICT'" in repr(error)
        assert "'number': '1'" in repr(error)
