"""Async PostgreSQL persistence.

- **base**: declarative base and common model fields
- **session**: engine and session lifecycle
- **repository**: generic repository with storage-error translation
- **errors**: mapping of driver failures to domain exceptions
- **dependencies**: FastAPI session dependency
"""

from src.infrastructure.database.base import Base, BaseModel
from src.infrastructure.database.dependencies import DatabaseSession, get_db
from src.infrastructure.database.repository import BaseRepository
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
    create_database_engine,
    get_async_session,
    get_engine,
    get_session_factory,
)

__all__ = [
    "Base",
    "BaseModel",
    "BaseRepository",
    "DatabaseSession",
    "check_database_connection",
    "close_database",
    "create_database_engine",
    "get_async_session",
    "get_db",
    "get_engine",
    "get_session_factory",
]
