"""Normalization helpers.

Centralizes defensive parsing of loosely-typed provider values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "" or value == "--":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        return None
    return int(parsed)


def float_or_zero(value: Any) -> float:
    """Coerce to float, treating missing or non-numeric values as ``0``."""
    parsed = safe_float(value)
    return 0.0 if parsed is None else parsed


def int_or_zero(value: Any) -> int:
    parsed = safe_int(value)
    return 0 if parsed is None else parsed


def normalize_entity_key(value: Any) -> str | None:
    """Normalize an identifying value into an entity key.

    Whitespace is trimmed and collapsed, then the text is lower-cased, so
    ``"BrandX"`` and ``"brandx "`` join as ``"brandx"``. Returns ``None`` for
    values that cannot identify an entity (missing, blank, booleans,
    containers).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None
    key = " ".join(value.split()).lower()
    return key or None


def display_text(value: Any) -> str:
    """Trimmed text used for rendering an identifying value."""
    if value is None:
        return ""
    return " ".join(str(value).split())
