"""Catalog resolution: tenant overrides take precedence over the reference.

For any code, a channel sees exactly one entry: its own override when one
exists, otherwise the reference entry. Option lists follow the same rule, so
a reference value never leaks through for a code the channel has overridden.
"""

from typing import Literal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import CatalogConfig, get_settings
from src.core.exceptions import ErrorCode, NotFoundError, ValidationError
from src.core.observability import trace_operation
from src.core.retry import retry_read
from src.domain.catalog.models import CODE_MAX_LENGTH, CatalogOverride
from src.domain.catalog.reference import ReferenceCatalog, get_reference_catalog
from src.domain.catalog.repository import CatalogOverrideRepository
from src.domain.catalog.schemas import (
    CatalogEntry,
    CatalogField,
    CatalogOverrideUpsert,
    KindOptions,
    KindStats,
    ReferenceEntry,
    parse_catalog_field,
)

type SearchMode = Literal["tenant", "merged"]

DEFAULT_SEARCH_LIMIT = 100

SEARCHABLE_FIELDS = ("code", "official_description", "personal_description", "category")


def tenant_entry(override: CatalogOverride) -> CatalogEntry:
    return CatalogEntry(
        code=override.code,
        source="tenant",
        official_description=override.official_description,
        kind=override.kind,
        category=override.category,
        personal_description=override.personal_description,
        discounted_goods_description=override.discounted_goods_description,
        economic_activity=override.economic_activity,
        useful_life=override.useful_life,
        imported=override.imported,
    )


def reference_entry(entry: ReferenceEntry) -> CatalogEntry:
    return CatalogEntry(source="reference", **entry.model_dump())


def usable_option(value: str, placeholder: str) -> str | None:
    """The trimmed value, or None for blanks and the placeholder."""
    trimmed = value.strip()
    if not trimmed or trimmed == placeholder:
        return None
    return trimmed


def matches(entry: CatalogEntry, needle: str) -> bool:
    """Case-insensitive substring match over the searchable fields."""
    return any(needle in getattr(entry, name).casefold() for name in SEARCHABLE_FIELDS)


class CatalogResolver:
    """Override-wins lookups and option enumeration for one session.

    Args:
        session: Session of the current unit of work.
        reference: Reference catalog; defaults to the process-wide one.
        config: Catalog settings; defaults to ``Settings.catalog_config``.
    """

    def __init__(
        self,
        session: AsyncSession,
        reference: ReferenceCatalog | None = None,
        config: CatalogConfig | None = None,
    ) -> None:
        self.overrides = CatalogOverrideRepository(session)
        self.reference = reference if reference is not None else get_reference_catalog()
        self.config = config or get_settings().catalog_config

    async def _channel_overrides(self, channel_id: int) -> list[CatalogOverride]:
        async def read() -> list[CatalogOverride]:
            return await self.overrides.list_for_channel(channel_id)

        return await retry_read(
            read, name="catalog.list_overrides", reset=self.overrides.reset_for_retry
        )

    async def lookup(self, channel_id: int, code: str) -> CatalogEntry:
        """Resolve ``code`` for a channel.

        Raises:
            NotFoundError: ``CATALOG_CODE_NOT_FOUND`` in both tiers.
        """
        code = code.strip()
        with trace_operation("catalog.lookup", channel_id=channel_id, code=code):

            async def read() -> CatalogOverride | None:
                return await self.overrides.get(channel_id, code)

            override = await retry_read(
                read, name="catalog.lookup", reset=self.overrides.reset_for_retry
            )
            if override is not None:
                return tenant_entry(override)

            if (entry := self.reference.get(code)) is not None:
                return reference_entry(entry)

        raise NotFoundError(
            f"Catalog code '{code}' not found",
            error_code=ErrorCode.CATALOG_CODE_NOT_FOUND,
            context={"code": code},
        )

    def _split_values(
        self, overrides: list[CatalogOverride], field: CatalogField
    ) -> tuple[set[str], set[str]]:
        placeholder = self.config.placeholder
        overridden = {override.code for override in overrides}

        tenant_values = {
            value
            for override in overrides
            if (value := usable_option(getattr(override, field.value), placeholder))
        }
        reference_values = {
            value
            for entry in self.reference
            if entry.code not in overridden
            and (value := usable_option(getattr(entry, field.value), placeholder))
        }
        return tenant_values, reference_values

    async def list_options(self, channel_id: int, field: str) -> list[str]:
        """Sorted distinct values of ``field`` visible to the channel.

        Raises:
            ValidationError: ``UNSUPPORTED_FIELD``.
        """
        catalog_field = parse_catalog_field(field)
        with trace_operation(
            "catalog.list_options", channel_id=channel_id, field=catalog_field.value
        ):
            overrides = await self._channel_overrides(channel_id)
            tenant_values, reference_values = self._split_values(
                overrides, catalog_field
            )
        return sorted(tenant_values | reference_values)

    async def list_document_kinds(self, channel_id: int) -> KindOptions:
        """Kind options with counts of where they come from.

        ``tenant_sourced`` counts kinds present in the channel's overrides;
        ``reference_sourced`` counts kinds only the reference contributes.
        """
        overrides = await self._channel_overrides(channel_id)
        tenant_kinds, reference_kinds = self._split_values(overrides, CatalogField.KIND)
        options = sorted(tenant_kinds | reference_kinds)
        return KindOptions(
            options=options,
            stats=KindStats(
                total=len(options),
                tenant_sourced=len(tenant_kinds),
                reference_sourced=len(reference_kinds - tenant_kinds),
            ),
        )

    async def upsert_override(
        self, channel_id: int, code: str, payload: CatalogOverrideUpsert
    ) -> CatalogOverride:
        """Create or replace the channel's entry for ``code``.

        Raises:
            ValidationError: ``INVALID_CODE`` for a blank or overlong code.
        """
        code = code.strip()
        if not code or len(code) > CODE_MAX_LENGTH:
            raise ValidationError(
                f"Catalog code must have 1 to {CODE_MAX_LENGTH} characters",
                error_code=ErrorCode.INVALID_CODE,
                context={"code": code},
            )

        override = await self.overrides.upsert(channel_id, code, payload)
        logger.info(
            "Catalog override {} saved",
            override.code,
            channel_id=channel_id,
            in_reference=override.code in self.reference,
        )
        return override

    async def list_overrides(self, channel_id: int) -> list[CatalogOverride]:
        return await self._channel_overrides(channel_id)

    async def search(
        self,
        channel_id: int,
        mode: SearchMode = "merged",
        text: str = "",
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[CatalogEntry]:
        """Entries visible to the channel, optionally filtered by ``text``.

        ``tenant`` lists only overrides; ``merged`` lists overrides first,
        then reference entries whose code is not overridden.
        """
        overrides = await self._channel_overrides(channel_id)
        needle = text.strip().casefold()

        results = [
            entry
            for entry in map(tenant_entry, overrides)
            if not needle or matches(entry, needle)
        ][:limit]
        if mode == "tenant" or len(results) >= limit:
            return results

        overridden = {override.code for override in overrides}
        for item in self.reference:
            if item.code in overridden:
                continue
            entry = reference_entry(item)
            if needle and not matches(entry, needle):
                continue
            results.append(entry)
            if len(results) >= limit:
                break
        return results
