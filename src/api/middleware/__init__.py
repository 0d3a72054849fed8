"""Cross-cutting request handling.

- **RequestContextMiddleware**: correlation ID and caller identity
- **RequestLoggingMiddleware**: request/response logging with timing
- **error_handler**: maps domain exceptions to ``ErrorResponse`` bodies

Middleware run in reverse order of registration; the context middleware is
registered last so its bound fields are present in the request logs.
"""
