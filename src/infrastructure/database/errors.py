"""Translation of driver and SQLAlchemy failures into domain exceptions.

Connection loss, pool exhaustion and timeouts become ``StorageError``; a
unique-constraint violation becomes the ``ConflictError`` registered for that
constraint name. Everything else propagates unchanged.
"""

from collections.abc import Generator, Mapping
from contextlib import contextmanager

from loguru import logger
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.core.exceptions import ConflictError, ErrorCode, StorageError

type UniqueViolations = Mapping[str, tuple[ErrorCode, str]]

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    ConnectionError,
    TimeoutError,
)


def is_transient(exc: BaseException) -> bool:
    """Whether ``exc`` signals an unreachable or overloaded backing store."""
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def conflict_from_integrity_error(
    exc: IntegrityError, unique_violations: UniqueViolations
) -> ConflictError | None:
    """Map an ``IntegrityError`` to the conflict registered for its constraint.

    Args:
        exc: The error raised by the flush or statement.
        unique_violations: Constraint name to (error code, message).

    Returns:
        ConflictError | None: The matching conflict, or None when the
            violated constraint is not registered.
    """
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    for constraint_name, (error_code, message) in unique_violations.items():
        if constraint_name in detail:
            return ConflictError(
                message,
                error_code=error_code,
                context={"constraint": constraint_name},
                cause=exc,
            )
    return None


@contextmanager
def translate_storage_errors(
    operation: str, unique_violations: UniqueViolations | None = None
) -> Generator[None]:
    """Re-raise storage failures inside the block as domain exceptions.

    Args:
        operation: Name of the operation, used in messages and logs.
        unique_violations: Constraint name to (error code, message) for
            unique violations the caller knows how to explain.

    Raises:
        StorageError: The backing store could not be reached or timed out.
        ConflictError: A registered unique constraint was violated.
    """
    try:
        yield
    except IntegrityError as exc:
        conflict = conflict_from_integrity_error(exc, unique_violations or {})
        if conflict is None:
            raise
        logger.info(
            "Unique constraint rejected {}",
            operation,
            constraint=conflict.context["constraint"],
        )
        raise conflict from exc
    except Exception as exc:
        if not is_transient(exc):
            raise
        logger.error(
            "Storage unavailable during {}: {}",
            operation,
            type(exc).__name__,
            operation=operation,
        )
        raise StorageError(
            f"Storage unavailable during {operation}",
            context={"operation": operation},
            cause=exc,
        ) from exc
