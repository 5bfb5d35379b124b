"""Base models for provider records.

Every parsed brand payload inherits from :class:`FeedBaseModel` which
provides:

* A ``model_validator(mode="before")`` that strips provider sentinel
  values (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

Unparsed records travel through the aggregator as :class:`RawRecord`,
which keeps the payload opaque and only exposes the identifying key.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from brandfeed.exceptions import MalformedRecordError
from brandfeed.ingestion.normalize import display_text, normalize_entity_key

# Sentinel strings providers use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null"})


class RawRecord(BaseModel):
    """An opaque record returned by one source.

    Only the identifying field matters to the core. :meth:`key` returns
    ``None`` for records lacking a usable one, so malformed records are a
    typed case rather than a runtime guess.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, value: Any) -> RawRecord:
        """Wrap a provider mapping; non-mappings become an empty (keyless) record."""
        if isinstance(value, RawRecord):
            return value
        if isinstance(value, Mapping):
            return cls(data=dict(value))
        return cls()

    def get(self, field: str, default: Any = None) -> Any:
        return self.data.get(field, default)

    def _identifying_value(self, fields: tuple[str, ...]) -> Any:
        for field in fields:
            value = self.data.get(field)
            if value is not None:
                return value
        return None

    def key(self, fields: tuple[str, ...]) -> str | None:
        """Normalized entity key from the first present identifying field."""
        return normalize_entity_key(self._identifying_value(fields))

    def display_name(self, fields: tuple[str, ...]) -> str:
        return display_text(self._identifying_value(fields))

    def require_key(self, fields: tuple[str, ...]) -> str:
        key = self.key(fields)
        if key is None:
            raise MalformedRecordError(
                f"record has no usable identifying field (tried {', '.join(fields)})",
                fields=fields,
            )
        return key


class FeedBaseModel(BaseModel):
    """Base for parsed provider payloads.

    Handles:
    * sentinel values (``""``, ``"--"``, NaN) dropped so the field
      default is used instead
    * stashes the original provider dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original provider dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_feed_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if isinstance(values, RawRecord):
            values = values.data
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = FeedBaseModel._clean_dict(original)
        # Keep an explicitly supplied raw= untouched.
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
