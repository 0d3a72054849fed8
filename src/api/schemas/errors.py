"""Error response body shared by every failing endpoint.

Clients branch on ``error_code``; ``message`` is for people. The correlation
ID ties the response to the server logs of the request.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ServiceInfo(BaseModel):
    """Identifies the service instance that produced an error."""

    name: str = Field(..., examples=["Consecutivo"])
    version: str = Field(..., examples=["0.1.0"])
    environment: str = Field(..., examples=["development", "production"])


class ErrorResponse(BaseModel):
    """Standard error body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error_code": "UNKNOWN_DOCUMENT_TYPE",
                    "message": "Unknown document type '11'",
                    "details": {"document_type": "11"},
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2026-03-02T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "Consecutivo",
                        "version": "0.1.0",
                        "environment": "production",
                    },
                },
                {
                    "error_code": "DUPLICATE_NUMBER",
                    "message": "Register number '1' already exists in this branch",
                    "details": {"number": "1", "branch_id": 7},
                    "timestamp": "2026-03-02T12:00:01+00:00",
                    "severity": "LOW",
                },
                {
                    "error_code": "STORAGE_UNAVAILABLE",
                    "message": "Database unavailable during counter allocation",
                    "timestamp": "2026-03-02T12:00:02+00:00",
                    "severity": "HIGH",
                },
            ]
        }
    )

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["REGISTER_NOT_FOUND", "FORBIDDEN", "COUNTER_OVERFLOW"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Error context, e.g. the offending code or field errors",
    )
    correlation_id: str | None = Field(
        default=None, description="Correlation ID of the request"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the error occurred (timezone aware)",
    )
    severity: str | None = Field(
        default=None,
        description="LOW, MEDIUM, HIGH or CRITICAL",
        examples=["LOW", "CRITICAL"],
    )
    service_info: ServiceInfo | None = None
    request_id: str | None = Field(
        default=None,
        description=(
            "Unique request identifier; unlike the correlation ID it never "
            "spans services"
        ),
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )
    debug_info: dict[str, Any] | None = Field(
        default=None, description="Stack trace and cause, development only"
    )
