"""Combined entity and ordering models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brandfeed.models._base import RawRecord

#: Fields that sort by the entity's display name instead of a numeric value.
DEFAULT_TEXT_FIELDS: frozenset[str] = frozenset({"brand", "name", "display_name"})


class CombinedEntity(BaseModel):
    """Records from several sources joined under one entity key.

    ``sources`` holds at most one record per source name. An entity that
    only one source contributed to is still a valid entity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    """Normalized entity key."""
    display_name: str = ""
    """First-seen original identifying value."""
    sources: dict[str, RawRecord] = Field(default_factory=dict)

    def source(self, name: str) -> RawRecord | None:
        return self.sources.get(name)

    def value(self, field: str, source: str | None = None) -> Any:
        """Look up *field* in one source, or the first source that carries it."""
        if source is not None:
            record = self.sources.get(source)
            return None if record is None else record.get(field)
        for record in self.sources.values():
            if field in record.data:
                return record.data[field]
        return None


class SortSpec(BaseModel):
    """Ordering applied to aggregated entities."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = "total_volume"
    order: Literal["asc", "desc"] = "desc"
    source: str | None = None
    """Source record the field is read from; ``None`` searches every source."""
    text_fields: frozenset[str] = DEFAULT_TEXT_FIELDS

    @field_validator("order", mode="before")
    @classmethod
    def _normalize_order(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    @property
    def is_text(self) -> bool:
        return self.field in self.text_fields
