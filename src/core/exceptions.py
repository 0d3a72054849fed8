"""Structured exception hierarchy for consistent error handling.

This module defines the complete exception system for Consecutivo. Every
error raised by the numbering engine, the hierarchy authority or the catalog
resolver is typed at the point of detection and travels unchanged to the API
boundary, where it is rendered as an ``ErrorResponse``.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **ConsecutivoError**: Base exception with rich context and fingerprinting
- **Specialized exceptions**: Validation, conflict, not found, authorization,
  storage and counter overflow errors

Retry policy:
- ``StorageError`` is the only transient kind (``is_retryable``), and the core
  only retries it for read operations.
- ``CounterOverflowError`` is fatal and requires operator intervention.
"""

import hashlib
import traceback
from enum import Enum

from src.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for Consecutivo.

    Generic codes are the defaults of each exception class; the specific
    codes let clients correct their input without parsing messages.
    """

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    INVALID_CODE = "INVALID_CODE"
    """A structural code (e.g. a branch code) has the wrong format."""

    UNKNOWN_DOCUMENT_TYPE = "UNKNOWN_DOCUMENT_TYPE"
    """The document type is not one of the ten fiscal document kinds."""

    UNSUPPORTED_FIELD = "UNSUPPORTED_FIELD"
    """The catalog field cannot be enumerated."""

    # Conflict errors
    CONFLICT = "CONFLICT"
    """A uniqueness rule was violated."""

    DUPLICATE_CODE = "DUPLICATE_CODE"
    """Another entity in the same parent scope already uses this code."""

    DUPLICATE_IDENT = "DUPLICATE_IDENT"
    """Another channel already uses this legal identification."""

    DUPLICATE_NUMBER = "DUPLICATE_NUMBER"
    """Another register in the same branch already uses this number."""

    HAS_DEPENDENTS = "HAS_DEPENDENTS"
    """The entity still owns children and deletion was not forced."""

    LAST_ADMIN = "LAST_ADMIN"
    """The change would leave the channel without an active admin."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    REGISTER_NOT_FOUND = "REGISTER_NOT_FOUND"
    """The register does not exist in the caller's channel."""

    CATALOG_CODE_NOT_FOUND = "CATALOG_CODE_NOT_FOUND"
    """The code is in neither the tenant overrides nor the reference catalog."""

    # Authorization errors
    FORBIDDEN = "FORBIDDEN"
    """The access guard denied the operation."""

    # Storage errors
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    """The backing store could not be reached or timed out."""

    # Counter errors
    COUNTER_OVERFLOW = "COUNTER_OVERFLOW"
    """A numbering counter reached the largest representable value."""


class Severity(Enum):
    """Severity levels for errors in Consecutivo."""

    LOW = "LOW"
    """Caller errors that don't impact the system."""

    MEDIUM = "MEDIUM"
    """Errors that may affect some features but not critical operations."""

    HIGH = "HIGH"
    """Errors impacting security, availability or data integrity."""

    CRITICAL = "CRITICAL"
    """Errors requiring immediate operator attention."""


class ConsecutivoError(Exception):
    """Base exception class for all Consecutivo exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time, excluding this frame
        self.stack_trace = traceback.format_stack()[:-1]
        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Returns:
            str: A hash of the error type, code and raising location.
        """
        max_frames = 5
        relevant_frames = self.stack_trace[-max_frames:]

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"
        for frame in relevant_frames:
            if "site-packages" not in frame and "src/" in frame:
                first_line = frame.strip().split("\n")[0]
                fingerprint_data += f":{first_line}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    @property
    def is_retryable(self) -> bool:
        """Whether a caller may retry the same request unchanged."""
        return False

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(ConsecutivoError):
    """Malformed input: wrong code format, unknown document type, bad field.

    Safe to retry after the caller corrects the input.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class ConflictError(ConsecutivoError):
    """Uniqueness violation: duplicate code, number, identification or key.

    The caller must choose a different key; never retried automatically.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.CONFLICT,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class NotFoundError(ConsecutivoError):
    """The referenced entity does not exist in the caller's scope."""

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.NOT_FOUND,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class AuthorizationError(ConsecutivoError):
    """The access guard denied the operation for this user and channel."""

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.FORBIDDEN,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)


class StorageError(ConsecutivoError):
    """Transient storage failure: connection loss, timeout, pool exhaustion."""

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.STORAGE_UNAVAILABLE,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)

    @property
    def is_retryable(self) -> bool:
        """Storage failures may be retried with backoff."""
        return True


class CounterOverflowError(ConsecutivoError):
    """A numbering counter cannot be incremented without exceeding its range.

    The counter is left untouched; an operator has to intervene.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.COUNTER_OVERFLOW,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.CRITICAL, context, cause)
