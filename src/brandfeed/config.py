"""Client configuration for brandfeed."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from brandfeed._constants import (
    BASE_URL,
    DEFAULT_BLOCKCHAIN,
    DEFAULT_CACHE_TTL,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_TIME_RANGE,
)
from brandfeed.exceptions import BrandFeedConfigError

_SORT_ORDERS = frozenset({"asc", "desc"})


@dataclasses.dataclass(frozen=True)
class BrandFeedConfig:
    """Client configuration.

    Parameters
    ----------
    api_key : str
        API key sent in the ``x-api-key`` header of every request.
    base_url : str
        API base URL. Defaults to the UnleashNFTs v2 NFT endpoint.
    blockchain : str
        Blockchain filter sent to endpoints that accept one.
    time_range : str
        Time window for metric endpoints (e.g. ``"24h"``).
    page_limit : int
        Page size requested from list endpoints.
    cache_ttl : float
        Seconds a fetched domain payload stays fresh in the cache.
    request_timeout : float
        Total timeout in seconds for one HTTP request.
    combined_sort_by : str
        Field the combined brand list is ordered by.
    combined_sort_order : str
        ``"asc"`` or ``"desc"``.
    """

    api_key: str
    base_url: str = BASE_URL
    blockchain: str = DEFAULT_BLOCKCHAIN
    time_range: str = DEFAULT_TIME_RANGE
    page_limit: int = DEFAULT_PAGE_LIMIT
    cache_ttl: float = DEFAULT_CACHE_TTL
    request_timeout: float = 30.0
    combined_sort_by: str = "total_volume"
    combined_sort_order: str = "desc"

    def validate(self) -> BrandFeedConfig:
        """Raise :class:`BrandFeedConfigError` if any field is unusable."""
        if not self.api_key or not self.api_key.strip():
            raise BrandFeedConfigError("api_key must be non-empty (set BRANDFEED_API_KEY)")
        if self.cache_ttl <= 0:
            raise BrandFeedConfigError(f"cache_ttl must be positive, got {self.cache_ttl}")
        if self.request_timeout <= 0:
            raise BrandFeedConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.page_limit <= 0:
            raise BrandFeedConfigError(f"page_limit must be positive, got {self.page_limit}")
        if self.combined_sort_order not in _SORT_ORDERS:
            raise BrandFeedConfigError(f"combined_sort_order must be 'asc' or 'desc', got {self.combined_sort_order!r}")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> BrandFeedConfig:
        """Create configuration from environment variables.

        Reads ``BRANDFEED_API_KEY`` and optional ``BRANDFEED_*`` variables.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "BRANDFEED_API_KEY": "api_key",
            "BRANDFEED_BASE_URL": "base_url",
            "BRANDFEED_BLOCKCHAIN": "blockchain",
            "BRANDFEED_TIME_RANGE": "time_range",
            "BRANDFEED_SORT_BY": "combined_sort_by",
            "BRANDFEED_SORT_ORDER": "combined_sort_order",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric fields, handled separately
        ttl_env = env.get("BRANDFEED_CACHE_TTL")
        if ttl_env is not None and "cache_ttl" not in overrides:
            config_kwargs["cache_ttl"] = float(ttl_env)

        timeout_env = env.get("BRANDFEED_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        limit_env = env.get("BRANDFEED_PAGE_LIMIT")
        if limit_env is not None and "page_limit" not in overrides:
            config_kwargs["page_limit"] = int(limit_env)

        config_kwargs.update(overrides)
        config_kwargs.setdefault("api_key", "")

        return cls(**config_kwargs)
