"""Fetch adapter result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brandfeed.models._base import RawRecord


class Pagination(BaseModel):
    """Paging information reported by list endpoints."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    has_next: bool = False
    limit: int | None = None
    offset: int = 0
    total_items: int | None = None


class FetchResult(BaseModel):
    """What a fetch adapter resolves to: records plus optional paging."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    data: list[RawRecord] = Field(default_factory=list)
    pagination: Pagination | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_records(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [RawRecord.coerce(item) for item in value]
        return value
