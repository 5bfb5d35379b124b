"""Helpers for safe debug logging.

Requests carry the provider API key in a header. The transport logs its
headers and query params at DEBUG level only after passing them through
:func:`redact_for_log`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_NAMES: frozenset[str] = frozenset({"x-api-key", "api_key", "apikey", "authorization", "cookie"})
_MASK = "<redacted>"


def redact_for_log(fields: Mapping[str, Any], *, max_length: int = 200) -> dict[str, Any]:
    """Copy of a header or query mapping with secrets masked and long text clipped.

    Names are matched case-insensitively, so ``X-API-Key`` is masked too.
    """
    safe: dict[str, Any] = {}
    for name, value in fields.items():
        if name.lower() in _SECRET_NAMES:
            safe[name] = _MASK
        elif isinstance(value, str) and len(value) > max_length:
            safe[name] = f"{value[:max_length]}…({len(value)} chars)"
        else:
            safe[name] = value
    return safe
