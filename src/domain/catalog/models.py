"""Tenant catalog overrides."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.base import BaseModel

CODE_MAX_LENGTH = 20


class CatalogOverride(BaseModel):
    """A channel's replacement for one reference catalog entry.

    When present it replaces the reference entry with the same code as a
    whole; fields are never merged.
    """

    __tablename__ = "catalog_overrides"
    __table_args__ = (UniqueConstraint("code", "channel_id"),)

    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    official_description: Mapped[str] = mapped_column(
        String(1000), nullable=False, default=""
    )
    kind: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    personal_description: Mapped[str] = mapped_column(
        String(1000), nullable=False, default=""
    )
    discounted_goods_description: Mapped[str] = mapped_column(
        String(200), nullable=False, default=""
    )
    economic_activity: Mapped[str] = mapped_column(
        String(20), nullable=False, default=""
    )
    useful_life: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    imported: Mapped[str] = mapped_column(String(20), nullable=False, default="")
