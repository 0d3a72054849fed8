"""FastAPI application factory and lifecycle.

Startup verifies the database connection and loads the reference catalog, so
a misconfigured instance fails before it accepts traffic. Middleware run in
reverse order of registration.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any, cast

from fastapi import Depends, FastAPI
from loguru import logger

from src.api.constants import API_V1_PREFIX
from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.routes import branches, catalog, channels, memberships, numbering
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.core.observability import instrument_app, setup_tracing
from src.domain.catalog.reference import get_reference_catalog
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
    get_engine,
)

CHANNEL_SCOPE = f"{API_V1_PREFIX}/channels/{{channel_id}}"


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Raises:
        RuntimeError: The database is unreachable or the reference catalog
            cannot be loaded.
    """
    is_healthy, error_msg = await check_database_connection()
    if not is_healthy:
        logger.error("Database connection failed during startup: {}", error_msg)
        msg = f"Database connection failed: {error_msg}"
        raise RuntimeError(msg)
    logger.info("Database connection successful")

    try:
        reference = get_reference_catalog()
    except (OSError, ValueError) as e:
        logger.error("Reference catalog could not be loaded: {}", e)
        msg = f"Reference catalog unavailable: {e}"
        raise RuntimeError(msg) from e

    logger.info(
        "Application startup complete - {} v{} ({} reference entries)",
        app_instance.title,
        app_instance.version,
        len(reference),
    )

    yield

    logger.info("Application shutdown initiated")
    await close_database()
    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance; defaults to get_settings().

    Returns:
        FastAPI: Configured application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Exception handlers before middleware
    register_exception_handlers(application)

    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)
    application.add_middleware(RequestContextMiddleware)

    application.include_router(
        channels.router, prefix=f"{API_V1_PREFIX}/channels", tags=["channels"]
    )
    for router, tag in (
        (branches.router, "hierarchy"),
        (numbering.router, "numbering"),
        (catalog.router, "catalog"),
        (memberships.router, "memberships"),
    ):
        application.include_router(router, prefix=CHANNEL_SCOPE, tags=[tag])

    @application.get("/health")
    async def health() -> dict[str, object]:
        """Liveness and readiness check.

        Reports ``degraded`` instead of failing when the database or the
        reference catalog is unavailable.
        """
        health_status: dict[str, object] = {
            "status": "healthy",
            "database": False,
            "reference_catalog": None,
        }

        is_healthy, error_msg = await check_database_connection()
        health_status["database"] = is_healthy
        if is_healthy:
            pool = cast("Any", get_engine().pool)
            logger.bind(
                metric_type="db.pool.health",
                checked_out=pool.checkedout(),
                size=pool.size(),
                overflow=pool.overflow(),
            ).debug("Database pool health check")
        else:
            logger.warning("Database health check failed: {}", error_msg)
            health_status["status"] = "degraded"

        try:
            health_status["reference_catalog"] = len(get_reference_catalog())
        except (OSError, ValueError) as e:
            logger.warning("Reference catalog health check failed: {}", e)
            health_status["status"] = "degraded"

        return health_status

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    instrument_app(application, settings)

    return application


app = create_app()
