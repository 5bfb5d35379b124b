"""Snapshot payloads published by the store.

Subscribers only ever receive :class:`StoreSnapshot` objects. A snapshot is
never mutated after publication; every state change produces a new one.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

#: Snapshot fields that are not domain slices.
FLAG_FIELDS: frozenset[str] = frozenset({"is_loading", "error", "errors", "last_updated", "cycle"})


class StoreSnapshot(BaseModel):
    """Immutable view of the store at one point in time."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    slices: dict[str, Any] = Field(default_factory=dict)
    """One entry per registered domain; ``None`` until first successfully fetched."""
    is_loading: bool = False
    error: str | None = None
    """Most recent failure message of the current cycle."""
    errors: dict[str, str] = Field(default_factory=dict)
    """Every failure message of the current cycle, keyed by domain (or ``domain/source``)."""
    last_updated: datetime | None = None
    cycle: int = 0
    """Sequence number of the latest refresh cycle."""

    @field_validator("slices", "errors", mode="before")
    @classmethod
    def _copy_mapping(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return dict(value)
        return value

    def slice(self, domain: str) -> Any:
        """Data for *domain*; raises ``KeyError`` for unknown domains."""
        return self.slices[domain]

    def merged(self, partial: Mapping[str, Any]) -> StoreSnapshot:
        """Shallow-merge *partial* (flag names or domain names) into a new snapshot."""
        flags: dict[str, Any] = {}
        slice_updates: dict[str, Any] = {}
        for key, value in partial.items():
            if key in FLAG_FIELDS:
                flags[key] = value
            elif key in self.slices:
                slice_updates[key] = value
            else:
                raise ValueError(f"unknown state key {key!r}")
        update: dict[str, Any] = dict(flags)
        if slice_updates:
            update["slices"] = {**self.slices, **slice_updates}
        # model_validate so the field validators run on the merged values.
        return StoreSnapshot.model_validate({**self._fields(), **update})

    def _fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields}


class DomainView(BaseModel):
    """Per-domain projection: the domain's slice plus the global flags.

    Loading and error are global, not per-domain: a failure in one domain is
    visible through every domain's view.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    data: Any = None
    is_loading: bool = False
    error: str | None = None
