"""High-level async client for the NFT brand dashboard data."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from functools import partial
from typing import Any

import aiohttp

from brandfeed._api.brands import ENDPOINTS, BrandEndpointAdapter, build_adapters
from brandfeed._cache import TtlCache
from brandfeed._constants import (
    BRAND_KEY_FIELDS,
    DOMAIN_BRAND_CATEGORY,
    DOMAIN_BRAND_CONTRACT_PROFILE,
    DOMAIN_BRAND_METADATA,
    DOMAIN_BRAND_METRICS,
    DOMAIN_BRAND_PROFILE,
    DOMAIN_COMBINED_BRANDS,
    DOMAIN_CONTRACT_METRICS,
    SOURCE_METADATA,
    SOURCE_METRICS,
    SOURCE_PROFILE,
)
from brandfeed._transport import HttpTransport, Transport
from brandfeed.config import BrandFeedConfig
from brandfeed.exceptions import BrandFeedError
from brandfeed.ingestion.aggregate import Aggregator
from brandfeed.ingestion.domains import Domain, DomainResult, combined_domain, records_domain
from brandfeed.models import BrandMetrics, CombinedEntity, RawRecord, SortSpec
from brandfeed.state.bus import Subscriber, Unsubscribe
from brandfeed.state.cycle import CancellationToken
from brandfeed.state.events import DomainView, StoreSnapshot
from brandfeed.state.store import DashboardStore

_logger = logging.getLogger(__name__)


def _format_brand_metrics(records: list[RawRecord]) -> list[BrandMetrics]:
    return [BrandMetrics.model_validate(record.data) for record in records]


class BrandFeedClient:
    """Async client owning the dashboard store and its HTTP transport.

    Usage::

        async with BrandFeedClient(BrandFeedConfig.from_env()) as client:
            unsubscribe = client.subscribe(render)
            await client.refresh_data()
            view = client.get_combined_brands()

    The store exists as soon as the client is constructed, so observers may
    subscribe before the HTTP session is opened. Fetches require the async
    context (or an injected ``transport``).
    """

    def __init__(
        self,
        config: BrandFeedConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        cache: TtlCache[DomainResult] | None = None,
        aggregator: Aggregator | None = None,
    ) -> None:
        self._config = config.validate()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._owns_transport = transport is None
        self._cache: TtlCache[DomainResult] = cache if cache is not None else TtlCache(config.cache_ttl)
        self._aggregator = aggregator if aggregator is not None else Aggregator(key_fields=BRAND_KEY_FIELDS)
        self._adapters = build_adapters(self, config)
        self._combined_sources = self._build_combined_sources()
        self._store = DashboardStore(self._build_domains(), cache=self._cache)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BrandFeedClient:
        if not self._owns_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._store.aclose()
        if not self._owns_transport:
            return
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Transport (adapters are bound to the client, not to a session)
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise BrandFeedError("Client not initialized. Use 'async with BrandFeedClient(...) as client:'")
        return self._transport

    async def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        *,
        token: CancellationToken | None = None,
    ) -> Any:
        return await self._require_transport().get_json(endpoint, params, token=token)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _combined_sort_spec(self) -> SortSpec:
        return SortSpec(
            field=self._config.combined_sort_by,
            order=self._config.combined_sort_order,
            source=SOURCE_METRICS,
        )

    def _build_combined_sources(self) -> dict[str, BrandEndpointAdapter]:
        # The combined view queries every source with the same window and ordering.
        shared = {
            "time_range": self._config.time_range,
            "sort_by": self._config.combined_sort_by,
            "sort_order": self._config.combined_sort_order,
        }
        return {
            SOURCE_METADATA: BrandEndpointAdapter(self, self._config, ENDPOINTS[DOMAIN_BRAND_METADATA], defaults=shared),
            SOURCE_METRICS: BrandEndpointAdapter(self, self._config, ENDPOINTS[DOMAIN_BRAND_METRICS], defaults=shared),
            SOURCE_PROFILE: BrandEndpointAdapter(self, self._config, ENDPOINTS[DOMAIN_BRAND_PROFILE], defaults=shared),
        }

    def _build_domains(self) -> list[Domain]:
        adapters = self._adapters
        return [
            records_domain(DOMAIN_BRAND_METRICS, adapters[DOMAIN_BRAND_METRICS], transform=_format_brand_metrics),
            records_domain(DOMAIN_BRAND_PROFILE, adapters[DOMAIN_BRAND_PROFILE]),
            records_domain(DOMAIN_BRAND_CONTRACT_PROFILE, adapters[DOMAIN_BRAND_CONTRACT_PROFILE]),
            records_domain(DOMAIN_CONTRACT_METRICS, adapters[DOMAIN_CONTRACT_METRICS]),
            records_domain(DOMAIN_BRAND_METADATA, adapters[DOMAIN_BRAND_METADATA]),
            records_domain(DOMAIN_BRAND_CATEGORY, adapters[DOMAIN_BRAND_CATEGORY]),
            combined_domain(
                DOMAIN_COMBINED_BRANDS,
                self._combined_sources,
                aggregator=self._aggregator,
                sort_spec=self._combined_sort_spec(),
            ),
        ]

    # ------------------------------------------------------------------
    # Store surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> BrandFeedConfig:
        return self._config

    @property
    def store(self) -> DashboardStore:
        return self._store

    @property
    def cache(self) -> TtlCache[DomainResult]:
        return self._cache

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        return self._store.subscribe(callback)

    def get_state(self) -> StoreSnapshot:
        return self._store.get_state()

    async def refresh_data(self, *, force_refresh: bool = False) -> None:
        await self._store.refresh_data(force_refresh=force_refresh)

    def cancel_refresh(self) -> bool:
        return self._store.cancel_refresh()

    def get_brand_metrics(self) -> DomainView:
        return self._store.get_domain(DOMAIN_BRAND_METRICS)

    def get_brand_profile(self) -> DomainView:
        return self._store.get_domain(DOMAIN_BRAND_PROFILE)

    def get_brand_contract_profile(self) -> DomainView:
        return self._store.get_domain(DOMAIN_BRAND_CONTRACT_PROFILE)

    def get_contract_metrics(self) -> DomainView:
        return self._store.get_domain(DOMAIN_CONTRACT_METRICS)

    def get_brand_metadata(self) -> DomainView:
        return self._store.get_domain(DOMAIN_BRAND_METADATA)

    def get_brand_category(self) -> DomainView:
        return self._store.get_domain(DOMAIN_BRAND_CATEGORY)

    def get_combined_brands(self) -> DomainView:
        return self._store.get_domain(DOMAIN_COMBINED_BRANDS)

    # ------------------------------------------------------------------
    # On-demand combined query
    # ------------------------------------------------------------------

    async def get_combined_brand_data(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        sort_spec: SortSpec | None = None,
        force_refresh: bool = False,
    ) -> list[CombinedEntity]:
        """Join metadata, metrics and profile records for a custom query.

        Results are cached per (params, sort) combination. Failed sources
        contribute nothing and prevent the result from being cached.
        """
        spec = sort_spec if sort_spec is not None else self._combined_sort_spec()
        key = "combined:" + json.dumps(
            {
                "params": dict(params or {}),
                "sort": [spec.field, spec.order, spec.source, sorted(spec.text_fields)],
            },
            sort_keys=True,
            default=str,
        )
        cached = self._cache.get(key, force_refresh)
        if cached is not None:
            return list(cached.data)

        token = CancellationToken()
        fetchers = {source: partial(adapter, params, token=token) for source, adapter in self._combined_sources.items()}
        result = await self._aggregator.combine_settled(fetchers, spec)
        if result.failures:
            _logger.warning("Combined brand query had failed sources: %s", result.failures)
        else:
            self._cache.set(key, DomainResult(data=result.entities))
        return list(result.entities)
