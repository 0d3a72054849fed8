"""Response models for counters and allocations."""

from pydantic import BaseModel, Field

from src.core.types import NumberingTable


class NumberingRead(BaseModel):
    register_id: int
    numbering: NumberingTable = Field(
        ..., examples=[{"01": "120", "02": "0", "04": "35"}]
    )


class CounterRead(BaseModel):
    """Last number issued for one document type."""

    register_id: int
    document_type: str = Field(..., examples=["01"])
    value: int


class AllocationRead(BaseModel):
    """A freshly allocated number.

    ``consecutive`` is the 20-digit fiscal consecutive; it is null when the
    branch code or register number cannot be laid out in it.
    """

    register_id: int
    document_type: str = Field(..., examples=["01"])
    value: int = Field(..., examples=[121])
    consecutive: str | None = Field(default=None, examples=["00100001010000000121"])
