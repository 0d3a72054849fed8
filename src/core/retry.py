"""Exponential backoff for read operations.

Only reads are retried: a failed read has no side effects, whereas a
counter allocation that timed out may already have been committed.
"""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from src.core.config import get_settings
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.exceptions import StorageError


async def retry_read[T](
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    reset: Callable[[], Awaitable[bool]] | None = None,
    attempts: int | None = None,
    base_delay_ms: int | None = None,
) -> T:
    """Run ``operation``, retrying on ``StorageError`` with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory performing the read.
        name: Operation name used in log records.
        reset: Called before each retry, typically a session rollback so the
            next attempt starts on a fresh connection. Returns False when the
            session cannot be reset without losing writes, in which case the
            error is raised immediately.
        attempts: Total attempts; defaults to ``LedgerConfig.read_retry_attempts``.
        base_delay_ms: First delay; defaults to
            ``LedgerConfig.read_retry_base_delay_ms``. Doubles on each retry.

    Returns:
        T: The value returned by ``operation``.

    Raises:
        StorageError: When every attempt failed, or on the first failure when
            ``reset`` refuses to reset the session.
    """
    config = get_settings().ledger_config
    total = attempts if attempts is not None else config.read_retry_attempts
    delay_ms = (
        base_delay_ms if base_delay_ms is not None else config.read_retry_base_delay_ms
    )

    for attempt in range(1, total + 1):
        try:
            return await operation()
        except StorageError:
            if attempt == total:
                logger.error(
                    "Read {} failed after {} attempts", name, total, operation=name
                )
                raise
            if reset is not None and not await reset():
                logger.error(
                    "Read {} failed inside a transaction holding writes, not retrying",
                    name,
                    operation=name,
                    attempt=attempt,
                )
                raise
            logger.warning(
                "Read {} hit a storage error, retrying in {}ms",
                name,
                delay_ms,
                operation=name,
                attempt=attempt,
            )
            await asyncio.sleep(delay_ms / MILLISECONDS_PER_SECOND)
            delay_ms *= 2

    msg = f"retry_read requires at least one attempt, got {total}"
    raise ValueError(msg)
