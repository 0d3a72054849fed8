"""Catalog routes: resolution, options and tenant overrides."""

from typing import Annotated

from fastapi import APIRouter, Query

from src.api.dependencies import Catalog, ChannelMember
from src.domain.catalog.models import CatalogOverride
from src.domain.catalog.resolver import DEFAULT_SEARCH_LIMIT, SearchMode
from src.domain.catalog.schemas import (
    CatalogEntry,
    CatalogOptions,
    CatalogOverrideRead,
    CatalogOverrideUpsert,
    KindOptions,
)

router = APIRouter()


@router.get("/catalog/{code}", response_model=CatalogEntry)
async def lookup(
    channel_id: int, code: str, access: ChannelMember, catalog: Catalog
) -> CatalogEntry:
    """Resolve a code: the channel's override if any, else the reference."""
    return await catalog.lookup(channel_id, code)


@router.get("/catalog-options", response_model=CatalogOptions)
async def list_options(
    channel_id: int,
    field: Annotated[str, Query(examples=["category", "officialDescription"])],
    access: ChannelMember,
    catalog: Catalog,
) -> CatalogOptions:
    return CatalogOptions(
        field=field, options=await catalog.list_options(channel_id, field)
    )


@router.get("/catalog-kinds", response_model=KindOptions)
async def list_document_kinds(
    channel_id: int, access: ChannelMember, catalog: Catalog
) -> KindOptions:
    return await catalog.list_document_kinds(channel_id)


@router.get("/catalog-overrides", response_model=list[CatalogOverrideRead])
async def list_overrides(
    channel_id: int, access: ChannelMember, catalog: Catalog
) -> list[CatalogOverride]:
    return await catalog.list_overrides(channel_id)


@router.put("/catalog-overrides/{code}", response_model=CatalogOverrideRead)
async def upsert_override(
    channel_id: int,
    code: str,
    payload: CatalogOverrideUpsert,
    access: ChannelMember,
    catalog: Catalog,
) -> CatalogOverride:
    """Create or replace the channel's entry for ``code``."""
    return await catalog.upsert_override(channel_id, code, payload)


@router.get("/catalog-search", response_model=list[CatalogEntry])
async def search(
    channel_id: int,
    access: ChannelMember,
    catalog: Catalog,
    mode: SearchMode = "merged",
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Annotated[int, Query(ge=1, le=500)] = DEFAULT_SEARCH_LIMIT,
) -> list[CatalogEntry]:
    return await catalog.search(channel_id, mode, q, limit)
