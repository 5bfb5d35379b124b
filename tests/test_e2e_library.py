from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from brandfeed.client import BrandFeedClient
from brandfeed.config import BrandFeedConfig
from brandfeed.exceptions import BrandFeedConfigError, BrandFeedTransportError
from brandfeed.models import BrandMetrics, SortSpec
from brandfeed.state.cycle import CancellationToken
from brandfeed.state.events import StoreSnapshot


def _default_responses() -> dict[str, Any]:
    return {
        "/brand/metrics": {
            "data": [
                {"brand": "Nike", "brand_name": "Nike", "total_volume": "100", "holders": "12"},
                {"brand": "Adidas", "total_volume": 300},
                {"brand": "puma", "total_volume": None},
            ]
        },
        "/brand/profile": [
            {"brand": "nike", "diamond_hands": 10},
            {"brand": "ADIDAS", "diamond_hands": 5},
        ],
        "/brand/metadata": {
            "data": [{"brand": "Nike", "category": "apparel"}, {"brand": "Adidas"}, {"brand": "Vans"}],
            "pagination": {"has_next": False, "limit": 100, "offset": 0, "total_items": 3},
        },
        "/brand/contract_profile": {"data": [{"brand": "Nike", "contract_address": "0xabc"}]},
        "/brand/contract_metrics": {"data": []},
        "/brand/category": {"data": {"brand": "Nike", "category": "apparel"}},
    }


@dataclass
class FakeBrandBackend:
    responses: dict[str, Any] = field(default_factory=_default_responses)
    failing_endpoints: set[str] = field(default_factory=set)
    hanging_endpoints: set[str] = field(default_factory=set)
    torn_down: list[str] = field(default_factory=list)
    calls: dict[str, int] = field(default_factory=dict)
    requests: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def _record_call(self, endpoint: str, params: Mapping[str, Any]) -> None:
        self.calls[endpoint] = self.calls.get(endpoint, 0) + 1
        self.requests.append((endpoint, dict(params)))

    def params_for(self, endpoint: str) -> list[dict[str, Any]]:
        return [params for name, params in self.requests if name == endpoint]

    async def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        *,
        token: CancellationToken | None = None,
    ) -> Any:
        self._record_call(endpoint, params)
        if token is not None:
            token.raise_if_cancelled()
        if endpoint in self.hanging_endpoints:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.torn_down.append(endpoint)
                raise
        if endpoint in self.failing_endpoints:
            raise BrandFeedTransportError(f"HTTP 502 from {endpoint}: bad gateway", status_code=502, endpoint=endpoint)
        return self.responses[endpoint]


def _client(backend: FakeBrandBackend, **config: Any) -> BrandFeedClient:
    return BrandFeedClient(BrandFeedConfig(api_key="test-key", **config), transport=backend)


@pytest.mark.asyncio
async def test_refresh_populates_every_domain() -> None:
    backend = FakeBrandBackend()

    async with _client(backend) as client:
        await client.refresh_data()

        state = client.get_state()
        assert state.error is None
        assert state.is_loading is False
        assert state.last_updated is not None

        metrics = client.get_brand_metrics().data
        assert all(isinstance(row, BrandMetrics) for row in metrics)
        assert [row.name for row in metrics] == ["Nike", "Adidas", "puma"]
        assert metrics[0].total_volume == 100.0
        assert metrics[0].holders == 12
        assert metrics[2].total_volume == 0.0

        assert len(client.get_brand_profile().data) == 2
        assert client.get_brand_contract_profile().data[0].get("contract_address") == "0xabc"
        assert client.get_contract_metrics().data == []
        assert len(client.get_brand_metadata().data) == 3
        assert len(client.get_brand_category().data) == 1


@pytest.mark.asyncio
async def test_combined_brands_are_joined_and_ordered_by_metrics_volume() -> None:
    backend = FakeBrandBackend()

    async with _client(backend) as client:
        await client.refresh_data()
        combined = client.get_combined_brands().data

    assert [entity.key for entity in combined] == ["adidas", "nike", "vans", "puma"]
    nike = combined[1]
    assert set(nike.sources) == {"metadata", "metrics", "profile"}
    assert nike.value("category", "metadata") == "apparel"
    assert nike.value("diamond_hands", "profile") == 10
    assert set(combined[2].sources) == {"metadata"}


@pytest.mark.asyncio
async def test_endpoint_defaults_are_sent() -> None:
    backend = FakeBrandBackend()

    async with _client(backend, blockchain="polygon", time_range="7d") as client:
        await client.refresh_data()

    assert backend.params_for("/brand/category") == [{"blockchain": "polygon", "offset": 0, "limit": 100}]
    metrics_params = backend.params_for("/brand/metrics")
    assert {"sort_by": "mint_tokens"} in metrics_params
    # The combined view queries metrics with the shared window and ordering.
    assert {"sort_by": "total_volume", "time_range": "7d", "sort_order": "desc"} in metrics_params


@pytest.mark.asyncio
async def test_failing_endpoint_is_reported_without_blocking_others() -> None:
    backend = FakeBrandBackend(failing_endpoints={"/brand/profile"})
    snapshots: list[StoreSnapshot] = []

    async with _client(backend) as client:
        client.subscribe(snapshots.append)
        await client.refresh_data()
        state = client.get_state()

    assert state.is_loading is False
    assert state.slice("brand_profile") is None
    assert state.slice("brand_metadata") is not None
    assert set(state.errors) == {"brand_profile", "combined_brands/profile"}
    assert state.errors["brand_profile"] == "brand_profile: HTTP 502 from /brand/profile: bad gateway"
    assert state.error in state.errors.values()
    # Profile data is simply absent from the joined entities.
    assert all("profile" not in entity.sources for entity in state.slice("combined_brands"))
    assert snapshots[-1] is state


@pytest.mark.asyncio
async def test_second_refresh_is_served_from_cache_until_forced() -> None:
    backend = FakeBrandBackend()

    async with _client(backend) as client:
        await client.refresh_data()
        assert backend.calls["/brand/category"] == 1
        assert backend.calls["/brand/metrics"] == 2

        await client.refresh_data()
        assert backend.calls["/brand/category"] == 1
        assert backend.calls["/brand/metrics"] == 2

        await client.refresh_data(force_refresh=True)
        assert backend.calls["/brand/category"] == 2
        assert backend.calls["/brand/metrics"] == 4


@pytest.mark.asyncio
async def test_domains_with_failed_sources_are_refetched_next_cycle() -> None:
    backend = FakeBrandBackend(failing_endpoints={"/brand/profile"})

    async with _client(backend) as client:
        await client.refresh_data()
        backend.failing_endpoints.clear()
        await client.refresh_data()
        state = client.get_state()

    # brand_profile and the combined profile source retried once each.
    assert backend.calls["/brand/profile"] == 4
    assert backend.calls["/brand/category"] == 1
    assert state.errors == {}
    assert len(state.slice("brand_profile")) == 2


@pytest.mark.asyncio
async def test_get_combined_brand_data_caches_per_query() -> None:
    backend = FakeBrandBackend()

    async with _client(backend) as client:
        first = await client.get_combined_brand_data({"limit": 10})
        again = await client.get_combined_brand_data({"limit": 10})
        assert backend.calls["/brand/metadata"] == 1
        assert [entity.key for entity in again] == [entity.key for entity in first]

        by_name = await client.get_combined_brand_data({"limit": 10}, sort_spec=SortSpec(field="brand", order="asc"))
        assert backend.calls["/brand/metadata"] == 2
        assert [entity.display_name for entity in by_name] == ["Adidas", "Nike", "puma", "Vans"]

        await client.get_combined_brand_data({"limit": 10}, force_refresh=True)
        assert backend.calls["/brand/metadata"] == 3

    assert all(params["limit"] == 10 for params in backend.params_for("/brand/profile"))


@pytest.mark.asyncio
async def test_get_combined_brand_data_does_not_cache_partial_results() -> None:
    backend = FakeBrandBackend(failing_endpoints={"/brand/metadata"})

    async with _client(backend) as client:
        partial = await client.get_combined_brand_data()
        await client.get_combined_brand_data()

    assert {entity.key for entity in partial} == {"nike", "adidas", "puma"}
    assert backend.calls["/brand/metadata"] == 2


@pytest.mark.asyncio
async def test_exit_waits_for_the_abandoned_refresh() -> None:
    backend = FakeBrandBackend(hanging_endpoints={"/brand/category"})

    async with _client(backend) as client:
        refresh = asyncio.create_task(client.refresh_data())
        while "/brand/category" not in backend.calls:
            await asyncio.sleep(0)

    assert backend.torn_down == ["/brand/category"]
    assert client.store.is_refreshing is False
    assert client.get_state().is_loading is False
    await refresh
    assert client.get_state().slice("brand_category") is None

@pytest.mark.asyncio
async def test_store_is_usable_before_the_session_opens() -> None:
    client = BrandFeedClient(BrandFeedConfig(api_key="test-key"))
    snapshots: list[StoreSnapshot] = []

    client.subscribe(snapshots.append)
    await client.refresh_data()

    state = client.get_state()
    assert snapshots[0].slices["combined_brands"] is None
    assert state.error is not None
    assert "Client not initialized" in state.error
    assert state.is_loading is False


@pytest.mark.asyncio
async def test_owned_session_is_closed_on_exit() -> None:
    client = BrandFeedClient(BrandFeedConfig(api_key="test-key"))

    async with client:
        session = client._http_session
        assert session is not None

    assert session.closed
    assert client._http_session is None


def test_invalid_config_is_rejected_at_construction() -> None:
    with pytest.raises(BrandFeedConfigError):
        BrandFeedClient(BrandFeedConfig(api_key=""))
