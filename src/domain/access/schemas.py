"""Membership payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MembershipUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool | None = None
    is_admin: bool | None = None


class MembershipRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    channel_id: int
    is_admin: bool
    is_active: bool
    created_at: datetime
