"""Persisted consecutive counters."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.document_types import INITIAL_COUNTER
from src.infrastructure.database.base import BaseModel


class RegisterCounter(BaseModel):
    """Last allocated number of one document type on one register.

    ``value`` is a decimal string so the full ten-digit range survives any
    client that reads it back as JSON.
    """

    __tablename__ = "register_counters"
    __table_args__ = (UniqueConstraint("register_id", "document_type"),)

    register_id: Mapped[int] = mapped_column(
        ForeignKey("registers.id", ondelete="CASCADE"), nullable=False
    )
    document_type: Mapped[str] = mapped_column(String(2), nullable=False)
    value: Mapped[str] = mapped_column(
        String(20), nullable=False, default=INITIAL_COUNTER, server_default="0"
    )
