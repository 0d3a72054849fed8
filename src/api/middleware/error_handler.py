"""Global exception handlers for the FastAPI application.

Domain exceptions travel unchanged from the service layer to here, where
each family gets its HTTP status and is rendered as an ``ErrorResponse``.
"""

import traceback
from typing import Any, Final

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.constants import HTTP_500_INTERNAL_SERVER_ERROR
from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.context import RequestContext, generate_request_id
from src.core.error_context import sanitize_dict, sanitize_error_context
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

STATUS_BY_ERROR: Final[tuple[tuple[type[ConsecutivoError], int], ...]] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (CounterOverflowError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

ERROR_CODE_BY_STATUS: Final[dict[int, ErrorCode]] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION_ERROR,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.VALIDATION_ERROR,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
}

LOG_LEVEL_BY_SEVERITY: Final[dict[Severity, str]] = {
    Severity.LOW: "WARNING",
    Severity.MEDIUM: "WARNING",
    Severity.HIGH: "ERROR",
    Severity.CRITICAL: "CRITICAL",
}


def get_service_info(settings: Settings) -> ServiceInfo:
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def status_code_for(exc: ConsecutivoError) -> int:
    """HTTP status for a domain exception; 500 for unmapped families."""
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _render(status_code: int, error_response: ErrorResponse) -> Response:
    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


async def consecutivo_error_handler(request: Request, exc: Exception) -> Response:
    """Handle ConsecutivoError exceptions.

    The error context is sanitized before it is logged or returned.

    Args:
        request: The request that caused the exception.
        exc: The ConsecutivoError to handle.

    Returns:
        Response: ORJSONResponse with the error details.

    Raises:
        TypeError: If exc is not a ConsecutivoError instance.
    """
    if not isinstance(exc, ConsecutivoError):
        raise TypeError(f"Expected ConsecutivoError, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()
    status_code = status_code_for(exc)

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
            "status_code": status_code,
            "fingerprint": exc.fingerprint,
        },
    )
    logger.log(
        LOG_LEVEL_BY_SEVERITY[exc.severity],
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        correlation_id=correlation_id,
        user_id=RequestContext.get_user_id(),
        **error_context,
    )

    debug_info = None
    if settings.environment == "development":
        debug_info = {
            "stack_trace": exc.stack_trace,
            "error_context": exc.context,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    response = _render(
        status_code,
        ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=sanitize_dict(exc.context) or None,
            correlation_id=correlation_id,
            request_id=generate_request_id(),
            severity=exc.severity.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )
    if exc.is_retryable:
        response.headers["Retry-After"] = "1"
    return response


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Field errors are grouped by dotted location, e.g. ``numbering.01``.

    Raises:
        TypeError: If exc is not a RequestValidationError instance.
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = error.get("loc", ())
        field_name = ".".join(str(part) for part in location[1:]) or "root"
        field_errors.setdefault(field_name, []).append(
            error.get("msg", "Invalid value")
        )

    logger.warning(
        "Request validation failed",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        validation_errors=field_errors,
    )

    return _render(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            error_code=ErrorCode.VALIDATION_ERROR.value,
            message="Request validation failed",
            details={"validation_errors": field_errors},
            correlation_id=correlation_id,
            request_id=generate_request_id(),
            severity=Severity.LOW.value,
            service_info=get_service_info(settings),
        ),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, wrong methods).

    Raises:
        TypeError: If exc is not an HTTPException instance.
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    error_code = ERROR_CODE_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    severity = (
        Severity.HIGH
        if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR
        else Severity.LOW
    )

    logger.warning(
        "HTTP exception",
        correlation_id=correlation_id,
        status=exc.status_code,
        method=request.method,
        path=str(request.url.path),
        detail=exc.detail,
    )

    return _render(
        exc.status_code,
        ErrorResponse(
            error_code=error_code.value,
            message=str(exc.detail),
            correlation_id=correlation_id,
            request_id=generate_request_id(),
            severity=severity.value,
            service_info=get_service_info(settings),
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle anything the other handlers did not.

    In production the response carries no internal details.
    """
    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=correlation_id,
        request_method=request.method,
        request_path=str(request.url.path),
    )

    details: dict[str, Any] | None = None
    debug_info: dict[str, Any] | None = None
    if settings.environment == "production":
        message = "An internal server error occurred"
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }

    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error_code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            details=details,
            correlation_id=correlation_id,
            request_id=generate_request_id(),
            severity=Severity.CRITICAL.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application."""
    app.add_exception_handler(ConsecutivoError, consecutivo_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers registered")
