"""Fiscal document types and numbering-table helpers.

Every register keeps one counter per document type. The set of types is
fixed; adding one requires a schema migration that seeds the new counters.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Final

from loguru import logger

from src.core.exceptions import ErrorCode, ValidationError
from src.core.types import NumberingTable

NUMERIC_VALUE: Final[re.Pattern[str]] = re.compile(r"\d+", re.ASCII)
INITIAL_COUNTER: Final[str] = "0"


class DocumentType(Enum):
    """Electronic fiscal document kinds, keyed by their two-digit code."""

    INVOICE = "01"
    """Electronic invoice."""

    DEBIT_NOTE = "02"
    """Electronic debit note."""

    CREDIT_NOTE = "03"
    """Electronic credit note."""

    TICKET = "04"
    """Electronic ticket."""

    ACCEPTANCE = "05"
    """Acceptance confirmation of a received document."""

    PARTIAL_ACCEPTANCE = "06"
    """Partial acceptance confirmation of a received document."""

    REJECTION = "07"
    """Rejection confirmation of a received document."""

    PURCHASE_INVOICE = "08"
    """Electronic purchase invoice."""

    EXPORT_INVOICE = "09"
    """Electronic export invoice."""

    PAYMENT_RECEIPT = "10"
    """Electronic payment receipt."""


DOCUMENT_TYPE_CODES: Final[tuple[str, ...]] = tuple(t.value for t in DocumentType)


def parse_document_type(code: str) -> DocumentType:
    """Resolve a two-digit code to its ``DocumentType``.

    Raises:
        ValidationError: ``UNKNOWN_DOCUMENT_TYPE`` for anything else.
    """
    try:
        return DocumentType(code)
    except ValueError as e:
        raise ValidationError(
            f"Unknown document type '{code}'",
            error_code=ErrorCode.UNKNOWN_DOCUMENT_TYPE,
            context={"document_type": code, "allowed": list(DOCUMENT_TYPE_CODES)},
            cause=e,
        ) from e


def default_numbering_table() -> NumberingTable:
    """A numbering table with every counter at zero."""
    return dict.fromkeys(DOCUMENT_TYPE_CODES, INITIAL_COUNTER)


def accepted_counter_values(
    partial: Mapping[str, object] | None, max_value: int | None = None
) -> NumberingTable:
    """Keep the entries of ``partial`` that can be stored as counters.

    Only known document-type codes with a decimal digit string are kept;
    other entries are dropped and logged, not rejected.

    Args:
        partial: Caller-supplied counters, possibly with junk entries.
        max_value: Largest storable counter; larger values are dropped.

    Returns:
        NumberingTable: Normalized entries (leading zeros removed).
    """
    accepted: NumberingTable = {}
    dropped: list[str] = []

    for code, value in (partial or {}).items():
        if (
            code in DOCUMENT_TYPE_CODES
            and isinstance(value, str)
            and NUMERIC_VALUE.fullmatch(value)
            and (max_value is None or int(value) <= max_value)
        ):
            accepted[code] = str(int(value))
        else:
            dropped.append(str(code))

    if dropped:
        logger.warning(
            "Ignored {} numbering entries without a known type or valid value",
            len(dropped),
            dropped=sorted(dropped),
        )
    return accepted


def merge_numbering_table(
    partial: Mapping[str, object] | None, max_value: int | None = None
) -> NumberingTable:
    """Overlay the accepted entries of ``partial`` on the default table."""
    return default_numbering_table() | accepted_counter_values(partial, max_value)
