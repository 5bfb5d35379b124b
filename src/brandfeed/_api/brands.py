"""Brand endpoints of the NFT analytics API.

One :class:`BrandEndpointAdapter` per endpoint satisfies the
:class:`brandfeed.ingestion.domains.FetchAdapter` contract.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from brandfeed._api._common import build_params, parse_fetch_result
from brandfeed._constants import (
    DOMAIN_BRAND_CATEGORY,
    DOMAIN_BRAND_CONTRACT_PROFILE,
    DOMAIN_BRAND_METADATA,
    DOMAIN_BRAND_METRICS,
    DOMAIN_BRAND_PROFILE,
    DOMAIN_CONTRACT_METRICS,
)
from brandfeed._transport import Transport
from brandfeed.config import BrandFeedConfig
from brandfeed.models import FetchResult
from brandfeed.state.cycle import CancellationToken


@dataclass(frozen=True, slots=True)
class EndpointSpec:
    """Path and default query options of one list endpoint."""

    path: str
    blockchain: bool = True
    time_range: bool = False
    paged: bool = True
    sort_by: str | None = None
    sort_order: str | None = None

    def default_params(self, config: BrandFeedConfig) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.blockchain:
            params["blockchain"] = config.blockchain
        if self.time_range:
            params["time_range"] = config.time_range
        if self.paged:
            params["offset"] = 0
            params["limit"] = config.page_limit
        if self.sort_by is not None:
            params["sort_by"] = self.sort_by
        if self.sort_order is not None:
            params["sort_order"] = self.sort_order
        return params


ENDPOINTS: dict[str, EndpointSpec] = {
    DOMAIN_BRAND_METRICS: EndpointSpec(
        "/brand/metrics",
        blockchain=False,
        paged=False,
        sort_by="mint_tokens",
    ),
    DOMAIN_BRAND_PROFILE: EndpointSpec(
        "/brand/profile",
        time_range=True,
        sort_by="diamond_hands",
        sort_order="desc",
    ),
    DOMAIN_BRAND_CONTRACT_PROFILE: EndpointSpec(
        "/brand/contract_profile",
        sort_by="diamond_hands",
    ),
    DOMAIN_CONTRACT_METRICS: EndpointSpec(
        "/brand/contract_metrics",
        time_range=True,
        sort_by="mint_tokens",
        sort_order="desc",
    ),
    DOMAIN_BRAND_METADATA: EndpointSpec("/brand/metadata"),
    DOMAIN_BRAND_CATEGORY: EndpointSpec("/brand/category"),
}


class BrandEndpointAdapter:
    """Fetch adapter bound to one endpoint.

    Caller params are merged over the endpoint defaults, so
    ``adapter({"limit": 30})`` only changes the page size.
    """

    def __init__(
        self,
        transport: Transport,
        config: BrandFeedConfig,
        spec: EndpointSpec,
        *,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._spec = spec
        self._defaults = build_params(spec.default_params(config), defaults)

    def __repr__(self) -> str:
        return f"BrandEndpointAdapter({self._spec.path!r})"

    @property
    def path(self) -> str:
        return self._spec.path

    async def __call__(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> FetchResult:
        query = build_params(self._defaults, params)
        body = await self._transport.get_json(self._spec.path, query, token=token)
        limit = query.get("limit")
        return parse_fetch_result(
            self._spec.path,
            body,
            limit=int(limit) if limit is not None else None,
        )


def build_adapters(transport: Transport, config: BrandFeedConfig) -> dict[str, BrandEndpointAdapter]:
    """One adapter per brand endpoint, keyed by domain name."""
    return {name: BrandEndpointAdapter(transport, config, spec) for name, spec in ENDPOINTS.items()}
