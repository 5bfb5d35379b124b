"""Brand metrics model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from brandfeed.ingestion.normalize import float_or_zero, int_or_zero
from brandfeed.models._base import FeedBaseModel, RawRecord

_UNKNOWN_BRAND = "Unknown Brand"

_FLOAT_FIELDS = ("market_cap", "volume_24h", "total_volume", "growth_rate", "total_revenue")
_INT_FIELDS = ("traders", "holders", "mint_tokens")


class BrandMetrics(FeedBaseModel):
    """One row of the ``/brand/metrics`` endpoint, coerced for rendering.

    Numeric fields default to ``0`` when missing or malformed, so charts can
    plot every row.
    """

    name: str = _UNKNOWN_BRAND
    """Display name (``brand_name``, then ``name``, then ``brand``)."""
    brand: str = ""
    market_cap: float = 0.0
    volume_24h: float = 0.0
    total_volume: float = 0.0
    growth_rate: float = 0.0
    traders: int = 0
    holders: int = 0
    mint_tokens: int = 0
    total_revenue: float = 0.0
    marketplace_volume: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _pick_name(cls, values: Any) -> Any:
        if isinstance(values, RawRecord):
            values = values.data
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for candidate in ("brand_name", "name", "brand"):
            value = values.get(candidate)
            if isinstance(value, str) and value.strip():
                values["name"] = value.strip()
                break
        return values

    @field_validator(*_FLOAT_FIELDS, mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float:
        return float_or_zero(value)

    @field_validator(*_INT_FIELDS, mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int:
        return int_or_zero(value)

    @field_validator("marketplace_volume", mode="before")
    @classmethod
    def _coerce_marketplace_volume(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}
