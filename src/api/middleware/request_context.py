"""Request context middleware: correlation IDs and the calling user.

The correlation ID is taken from ``X-Correlation-ID`` or generated, stored in
``RequestContext`` and bound to every log record of the request. The caller
from ``X-User-ID`` is recorded the same way so authorization failures and
mutations can be attributed without passing the user around.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.api.constants import CORRELATION_ID_HEADER
from src.core.constants import USER_ID_HEADER
from src.core.context import RequestContext, generate_correlation_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets up request-scoped context and echoes the correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip() or None

        RequestContext.set_correlation_id(correlation_id)
        if user_id:
            RequestContext.set_user_id(user_id)

        try:
            # contextualize scopes the bound fields to this request
            with logger.contextualize(correlation_id=correlation_id, user_id=user_id):
                response = await call_next(request)
                response.headers[CORRELATION_ID_HEADER] = correlation_id
                return response
        finally:
            RequestContext.clear()
