"""Shared helpers for brand API endpoint modules.

This module centralizes the most repeated patterns:
- merging caller params over endpoint defaults
- unwrapping the provider's response envelope into a :class:`FetchResult`

It is internal to brandfeed and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from brandfeed.exceptions import BrandFeedTransportError
from brandfeed.models import FetchResult, Pagination

# Dashboard callers historically passed camelCase query options.
_PARAM_ALIASES: dict[str, str] = {
    "timeRange": "time_range",
    "sortBy": "sort_by",
    "sortOrder": "sort_order",
}


def build_params(defaults: Mapping[str, Any], overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Merge *overrides* over *defaults*; ``None`` override values are dropped."""
    params = dict(defaults)
    if not overrides:
        return params
    for key, value in overrides.items():
        if value is None:
            continue
        params[_PARAM_ALIASES.get(key, key)] = value
    return params


def parse_fetch_result(endpoint: str, body: Any, *, limit: int | None = None) -> FetchResult:
    """Unwrap a provider response into records and paging.

    Accepted shapes: ``{"data": [...], "pagination": {...}}``, a bare list,
    or a single object (wrapped into a one-element list). Missing paging is
    synthesized from the record count.
    """
    pagination_raw: Any = None
    if isinstance(body, dict) and "data" in body:
        payload = body["data"]
        pagination_raw = body.get("pagination")
    else:
        payload = body

    if payload is None:
        records: list[Any] = []
    elif isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict):
        records = [payload]
    else:
        raise BrandFeedTransportError(
            f"Unexpected payload from {endpoint}: {type(payload).__name__}",
            endpoint=endpoint,
        )

    if isinstance(pagination_raw, dict):
        pagination = Pagination.model_validate(pagination_raw)
    else:
        pagination = Pagination(has_next=False, limit=limit, offset=0, total_items=len(records))

    return FetchResult(data=records, pagination=pagination)
