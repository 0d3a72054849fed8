"""Shared reference catalog loaded from a versioned JSON dataset.

The dataset has the shape ``{"data": [{"codigo": ..., "descripOf": ...}, ...]}``.
It is read once per process and kept in memory; ``reload`` picks up a new
version without a restart.
"""

from collections.abc import Iterable, Iterator
from functools import lru_cache
from pathlib import Path

import orjson
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from src.core.config import get_settings
from src.domain.catalog.schemas import ReferenceEntry


class ReferenceCatalog:
    """Read-only, code-indexed reference entries.

    Entries keep their dataset order; for duplicate codes the first wins.
    """

    def __init__(self, entries: Iterable[ReferenceEntry]) -> None:
        self._by_code: dict[str, ReferenceEntry] = {}
        duplicates = 0
        for entry in entries:
            if entry.code in self._by_code:
                duplicates += 1
                continue
            self._by_code[entry.code] = entry

        if duplicates:
            logger.warning(
                "Reference catalog has {} duplicate codes; kept first occurrences",
                duplicates,
            )

    def get(self, code: str) -> ReferenceEntry | None:
        return self._by_code.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self) -> Iterator[ReferenceEntry]:
        return iter(self._by_code.values())

    def __len__(self) -> int:
        return len(self._by_code)


def parse_reference_dataset(raw: bytes) -> ReferenceCatalog:
    """Build a catalog from the dataset's JSON bytes.

    Entries without a code or with malformed values are skipped.

    Raises:
        ValueError: The document is not an object with a ``data`` list.
    """
    document = orjson.loads(raw)
    rows = document.get("data") if isinstance(document, dict) else None
    if not isinstance(rows, list):
        msg = "Reference dataset must be an object with a 'data' list"
        raise ValueError(msg)

    entries: list[ReferenceEntry] = []
    skipped = 0
    for row in rows:
        try:
            entries.append(ReferenceEntry.model_validate(row))
        except PydanticValidationError:
            skipped += 1

    if skipped:
        logger.warning("Skipped {} reference rows without a valid code", skipped)
    return ReferenceCatalog(entries)


def load_reference_catalog(path: Path) -> ReferenceCatalog:
    """Read and parse the dataset at ``path``."""
    catalog = parse_reference_dataset(path.read_bytes())
    logger.info("Loaded {} reference catalog entries from {}", len(catalog), path)
    return catalog


@lru_cache(maxsize=1)
def get_reference_catalog() -> ReferenceCatalog:
    """The process-wide reference catalog, loaded on first use."""
    return load_reference_catalog(get_settings().catalog_config.reference_path)


def reload() -> ReferenceCatalog:
    """Drop the cached catalog and load the dataset again."""
    get_reference_catalog.cache_clear()
    return get_reference_catalog()
