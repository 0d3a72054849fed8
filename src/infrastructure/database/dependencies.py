"""FastAPI dependency providing one database session per request."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.session import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Yield a request-scoped session.

    The session is committed when the handler returns and rolled back when it
    raises. Operations that must survive a later failure, such as counter
    allocation, commit explicitly through their repository.

    Yields:
        AsyncGenerator[AsyncSession]: The request's session.
    """
    async with get_async_session() as session:
        yield session


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
