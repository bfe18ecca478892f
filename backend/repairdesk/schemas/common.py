"""Shared schema helpers."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

MAX_PAGE_SIZE = 100


def money(value: Decimal | float | int | None) -> float | None:
    """Convert a stored decimal amount to a client-safe float."""
    if value is None:
        return None
    return float(value)


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value))


class PageParams(BaseModel):
    """One-based page and bounded page size."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PriceRange(BaseModel):
    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)


class CountByLabel(BaseModel):
    label: str
    count: int
