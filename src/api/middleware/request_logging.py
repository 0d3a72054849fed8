"""HTTP request/response logging with slow request detection.

Each request logs a start and a completion (or failure) record carrying
method, path, client, duration and status, bound together by the request ID.
Paths in ``LogConfig.excluded_paths`` (health checks) are not logged.
"""

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from src.api.constants import MAX_USER_AGENT_LENGTH, REQUEST_ID_HEADER
from src.core.config import LogConfig, get_settings
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.context import generate_request_id


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its timing.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
    """

    def __init__(self, app: ASGIApp, *, log_config: LogConfig) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)
        self.trust_proxy_headers = get_settings().environment == "production"

    def _client_ip(self, request: Request) -> str:
        if self.trust_proxy_headers:
            if forwarded_for := request.headers.get("x-forwarded-for"):
                return forwarded_for.split(",")[0].strip()
            if real_ip := request.headers.get("x-real-ip"):
                return real_ip.strip()

        return request.client.host if request.client else "unknown"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        user_agent = request.headers.get("user-agent", "unknown")

        with logger.contextualize(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=self._client_ip(request),
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH],
        ):
            logger.info(
                "Request started",
                query_params=dict(request.query_params) or None,
            )
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Request failed",
                    duration_ms=self._elapsed_ms(start_time),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = self._elapsed_ms(start_time)
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=duration_ms,
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND, 2)
