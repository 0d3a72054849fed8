"""Ownership hierarchy: Channel -> Activity -> Branch -> Register.

Foreign keys between levels are ``RESTRICT``: a parent with children cannot
be removed by accident. Removing a subtree is an explicit operation of
``HierarchyAuthority``.
"""

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.base import BaseModel

DEFAULT_ACTIVITY_NAME = "Actividad personalizada"


class Channel(BaseModel):
    """A tenant: the legal entity issuing fiscal documents."""

    __tablename__ = "channels"
    __table_args__ = (UniqueConstraint("legal_ident_type", "legal_ident"),)

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    legal_ident: Mapped[str] = mapped_column(String(20), nullable=False)
    legal_ident_type: Mapped[str] = mapped_column(String(2), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    phone_code: Mapped[str] = mapped_column(String(5), nullable=False, default="")
    vat_registration: Mapped[str] = mapped_column(
        String(50), nullable=False, default=""
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )


class Activity(BaseModel):
    """An economic activity registered by a channel."""

    __tablename__ = "activities"
    __table_args__ = (UniqueConstraint("code", "channel_id"),)

    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    personal_name: Mapped[str] = mapped_column(String(200), nullable=False)
    original_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default=DEFAULT_ACTIVITY_NAME
    )
    kind: Mapped[str] = mapped_column(String(1), nullable=False, default="S")
    status: Mapped[str] = mapped_column(String(1), nullable=False, default="A")


class Branch(BaseModel):
    """A physical establishment; its three-digit code prefixes every consecutive."""

    __tablename__ = "branches"
    __table_args__ = (UniqueConstraint("code", "activity_id"),)

    activity_id: Mapped[int] = mapped_column(
        ForeignKey("activities.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(3), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    province: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    canton: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    district: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")


class Register(BaseModel):
    """A cash register (point of sale) owning one counter per document type."""

    __tablename__ = "registers"
    __table_args__ = (UniqueConstraint("number", "branch_id"),)

    branch_id: Mapped[int] = mapped_column(
        ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    number: Mapped[str] = mapped_column(String(20), nullable=False)
