"""Catalog entry shapes and the enumerable fields."""

from datetime import datetime
from enum import Enum
from typing import Final, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.core.exceptions import ErrorCode, ValidationError


class CatalogField(Enum):
    """Fields whose distinct values can be listed as options."""

    KIND = "kind"
    """Goods or service."""

    CATEGORY = "category"
    """Tax category."""

    OFFICIAL_DESCRIPTION = "official_description"
    """Official product or service description."""

    DISCOUNTED_GOODS_DESCRIPTION = "discounted_goods_description"
    """Description used for discounted goods."""


# camelCase spellings and the keys of the reference dataset
FIELD_ALIASES: Final[dict[str, CatalogField]] = {
    "officialDescription": CatalogField.OFFICIAL_DESCRIPTION,
    "discountedGoodsDescription": CatalogField.DISCOUNTED_GOODS_DESCRIPTION,
    "bienoserv": CatalogField.KIND,
    "categoria": CatalogField.CATEGORY,
    "descripOf": CatalogField.OFFICIAL_DESCRIPTION,
    "descripGasInv": CatalogField.DISCOUNTED_GOODS_DESCRIPTION,
}


def parse_catalog_field(name: str) -> CatalogField:
    """Resolve a field name or alias.

    Raises:
        ValidationError: ``UNSUPPORTED_FIELD`` for any other name.
    """
    if name in FIELD_ALIASES:
        return FIELD_ALIASES[name]
    try:
        return CatalogField(name)
    except ValueError as e:
        raise ValidationError(
            f"Field '{name}' cannot be listed",
            error_code=ErrorCode.UNSUPPORTED_FIELD,
            context={
                "field": name,
                "allowed": [f.value for f in CatalogField],
            },
            cause=e,
        ) from e


class ReferenceEntry(BaseModel):
    """One entry of the shared reference catalog.

    Accepts both the dataset's original keys and the field names.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    code: str = Field(validation_alias=AliasChoices("code", "codigo"), min_length=1)
    official_description: str = Field(
        default="", validation_alias=AliasChoices("official_description", "descripOf")
    )
    kind: str = Field(default="", validation_alias=AliasChoices("kind", "bienoserv"))
    category: str = Field(
        default="", validation_alias=AliasChoices("category", "categoria")
    )
    useful_life: str = Field(
        default="", validation_alias=AliasChoices("useful_life", "vidaUtil")
    )
    imported: str = Field(
        default="", validation_alias=AliasChoices("imported", "importado")
    )
    discounted_goods_description: str = Field(
        default="",
        validation_alias=AliasChoices("discounted_goods_description", "descripGasInv"),
    )

    @field_validator("useful_life", "imported", mode="before")
    @classmethod
    def stringify(cls, v: object) -> str:
        """Numbers in the dataset are kept as their text form."""
        return "" if v is None else str(v)

    @field_validator(
        "official_description",
        "kind",
        "category",
        "discounted_goods_description",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return "" if v is None else v


class CatalogOverrideUpsert(BaseModel):
    """A channel's version of a catalog entry.

    Unknown keys are rejected rather than stored.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    category: str = Field(..., min_length=1, max_length=200)
    official_description: str = Field(default="", max_length=1000)
    kind: str = Field(default="", max_length=50)
    personal_description: str = Field(default="", max_length=1000)
    discounted_goods_description: str = Field(default="", max_length=200)
    economic_activity: str = Field(default="", max_length=20)
    useful_life: str = Field(default="", max_length=20)
    imported: str = Field(default="", max_length=20)


class CatalogOverrideRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel_id: int
    code: str
    category: str
    official_description: str
    kind: str
    personal_description: str
    discounted_goods_description: str
    economic_activity: str
    useful_life: str
    imported: str
    updated_at: datetime


class CatalogEntry(BaseModel):
    """A resolved catalog entry and where it came from."""

    code: str
    source: Literal["tenant", "reference"]
    official_description: str = ""
    kind: str = ""
    category: str = ""
    personal_description: str = ""
    discounted_goods_description: str = ""
    economic_activity: str = ""
    useful_life: str = ""
    imported: str = ""


class KindStats(BaseModel):
    total: int
    tenant_sourced: int
    reference_sourced: int


class KindOptions(BaseModel):
    """Document kinds available to a channel with their provenance counts."""

    options: list[str]
    stats: KindStats


class CatalogOptions(BaseModel):
    field: str
    options: list[str]
