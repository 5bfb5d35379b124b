"""Time-to-live memo store for fetched domain payloads."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from brandfeed._constants import DEFAULT_CACHE_TTL

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached payload and the clock reading at which it was stored."""

    payload: T
    stored_at: float


class TtlCache(Generic[T]):
    """Keyed memo store with a fixed freshness window.

    Entries are superseded on ``set`` and evicted lazily: on a forced
    refresh, on a ``get`` that finds them stale, or by :meth:`clear_expired`.
    There is no background eviction.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._ttl = float(ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def _is_stale(self, entry: CacheEntry[T], now: float) -> bool:
        return (now - entry.stored_at) > self._ttl

    def set(self, key: str, payload: T) -> None:
        """Store *payload* under *key*, replacing any existing entry."""
        self._entries[key] = CacheEntry(payload=payload, stored_at=self._clock())

    def get(self, key: str, force_refresh: bool = False) -> T | None:
        """Return the fresh payload for *key*, or ``None`` on a miss.

        ``force_refresh`` evicts the entry and always misses; the caller is
        expected to fetch and :meth:`set` fresh data.
        """
        if force_refresh:
            self.clear(key)
            return None

        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_stale(entry, self._clock()):
            _logger.debug("Cache entry %s expired", key)
            del self._entries[key]
            return None

        return entry.payload

    def clear(self, key: str | None = None) -> None:
        """Remove one entry, or every entry when *key* is ``None``."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def clear_expired(self) -> int:
        """Evict every stale entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_stale(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            _logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)
