"""Ordering of combined entities."""

from __future__ import annotations

import locale
import unicodedata
from collections.abc import Callable, Iterable
from typing import Any

from brandfeed.ingestion.normalize import float_or_zero
from brandfeed.models.entity import CombinedEntity, SortSpec


def _fold(text: str) -> str:
    """Case- and accent-insensitive form: ``"Éclat"`` folds to ``"eclat"``."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def _text_key(entity: CombinedEntity) -> tuple[str, str]:
    # Accented names sort by their base letters; strxfrm breaks ties under LC_COLLATE.
    name = entity.display_name
    return _fold(name), locale.strxfrm(name)


def _numeric_key(spec: SortSpec) -> Callable[[CombinedEntity], float]:
    def key(entity: CombinedEntity) -> float:
        return float_or_zero(entity.value(spec.field, spec.source))

    return key


def sort_entities(entities: Iterable[CombinedEntity], spec: SortSpec) -> list[CombinedEntity]:
    """Return *entities* ordered by *spec*.

    Numeric fields missing or malformed in a record sort as ``0``. The sort
    is stable in both directions: ``sorted(..., reverse=True)`` keeps equal
    entities in input order.
    """
    key: Callable[[CombinedEntity], Any] = _text_key if spec.is_text else _numeric_key(spec)
    return sorted(entities, key=key, reverse=spec.descending)
