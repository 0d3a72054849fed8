"""Request and response models for the ownership hierarchy.

Code formats (three-digit branch codes, non-blank register numbers) are
checked by ``HierarchyAuthority`` rather than here, so they surface as domain
``ValidationError`` with a specific error code.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.types import NumberingTable
from src.domain.hierarchy.models import DEFAULT_ACTIVITY_NAME


class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class _Output(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ChannelCreate(_Input):
    """Attributes of a new channel."""

    code: str = Field(..., min_length=1, max_length=50, examples=["ACME"])
    name: str = Field(..., min_length=1, max_length=100)
    legal_ident: str = Field(..., min_length=1, max_length=20, examples=["3101123456"])
    legal_ident_type: str = Field(..., min_length=1, max_length=2, examples=["02"])
    phone: str = Field(default="", max_length=20)
    phone_code: str = Field(default="", max_length=5, examples=["506"])
    vat_registration: str = Field(default="", max_length=50)

    @field_validator("code")
    @classmethod
    def uppercase_code(cls, v: str) -> str:
        """Channel codes are stored uppercase."""
        return v.upper()


class ChannelUpdate(_Input):
    """Mutable channel attributes; code and legal identification are fixed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    phone_code: str | None = Field(default=None, max_length=5)
    vat_registration: str | None = Field(default=None, max_length=50)


class ChannelRead(_Output):
    id: int
    code: str
    name: str
    legal_ident: str
    legal_ident_type: str
    phone: str
    phone_code: str
    vat_registration: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ActivityCreate(_Input):
    """Attributes of a new economic activity."""

    code: str = Field(..., min_length=1, max_length=20, examples=["722003"])
    personal_name: str = Field(..., min_length=1, max_length=200)
    original_name: str = Field(default=DEFAULT_ACTIVITY_NAME, max_length=200)
    kind: str = Field(default="S", min_length=1, max_length=1)
    status: str = Field(default="A", min_length=1, max_length=1)


class ActivityRead(_Output):
    id: int
    channel_id: int
    code: str
    personal_name: str
    original_name: str
    kind: str
    status: str


class BranchCreate(_Input):
    """Attributes of a new branch."""

    activity_id: int
    code: str = Field(..., max_length=10, examples=["001"])
    name: str = Field(..., min_length=1, max_length=200)
    province: str = Field(default="", max_length=50)
    canton: str = Field(default="", max_length=50)
    district: str = Field(default="", max_length=50)
    address: str = Field(default="", max_length=500)


class BranchUpdate(_Input):
    """Branch changes; a new ``code`` is validated like a rename."""

    code: str | None = Field(default=None, max_length=10)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    province: str | None = Field(default=None, max_length=50)
    canton: str | None = Field(default=None, max_length=50)
    district: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)


class BranchRead(_Output):
    id: int
    activity_id: int
    code: str
    name: str
    province: str
    canton: str
    district: str
    address: str


class RegisterCreate(_Input):
    """A new register with optional starting counters.

    ``numbering`` is merged over the all-zero table; entries with unknown
    document types or non-numeric values are ignored.
    """

    number: str = Field(..., max_length=20, examples=["00001"])
    numbering: dict[str, object] | None = Field(
        default=None, examples=[{"01": "120", "04": "35"}]
    )


class RegisterRenumber(_Input):
    number: str = Field(..., max_length=20)


class RegisterRead(BaseModel):
    id: int
    branch_id: int
    number: str
    numbering: NumberingTable
