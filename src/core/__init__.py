"""Core package for cross-cutting application functionality.

- **config**: Pydantic settings with nested sections
- **context**: Correlation ID and caller identity tracking
- **exceptions**: Exception taxonomy with error codes and severities
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Loguru setup and stdlib interception
- **observability**: OpenTelemetry tracing
- **retry**: Backoff for read operations hitting transient storage errors
- **types**: Shared type aliases
"""
