"""Data domains: named loaders the store refreshes.

A domain owns one slice of store state. Its loader receives the cycle's
:class:`CancellationToken` and resolves to a :class:`DomainResult`.
:func:`records_domain` wraps a single fetch adapter; :func:`combined_domain`
joins several adapters through the :class:`Aggregator`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from brandfeed.ingestion.aggregate import Aggregator
from brandfeed.models import CombinedEntity, FetchResult, RawRecord, SortSpec
from brandfeed.state.cycle import CancellationToken


class FetchAdapter(Protocol):
    """Structural interface for per-source fetch functions.

    Production adapters live in :mod:`brandfeed._api.brands`; tests pass
    plain coroutine functions.
    """

    def __call__(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> Awaitable[FetchResult]: ...


@dataclass(frozen=True, slots=True)
class DomainResult:
    """Loader output: the slice value and any partial source failures."""

    data: Any
    failures: dict[str, str] = field(default_factory=dict)


DomainLoader = Callable[[CancellationToken], Awaitable[DomainResult]]


@dataclass(frozen=True, slots=True)
class Domain:
    """A named slice of store state and the loader that fills it."""

    name: str
    loader: DomainLoader
    cache_key: str | None = None
    """Cache key for memoizing results; ``None`` disables caching for this domain."""


def records_domain(
    name: str,
    adapter: FetchAdapter,
    *,
    params: Mapping[str, Any] | None = None,
    transform: Callable[[list[RawRecord]], Any] | None = None,
    cache_key: str | None = None,
) -> Domain:
    """Domain whose slice is one adapter's record list (optionally transformed)."""

    async def load(token: CancellationToken) -> DomainResult:
        result = await adapter(params, token=token)
        token.raise_if_cancelled()
        records = list(result.data)
        return DomainResult(data=transform(records) if transform is not None else records)

    return Domain(name=name, loader=load, cache_key=cache_key or name)


def combined_domain(
    name: str,
    sources: Mapping[str, FetchAdapter],
    *,
    aggregator: Aggregator,
    sort_spec: SortSpec | None = None,
    params: Mapping[str, Any] | None = None,
    cache_key: str | None = None,
) -> Domain:
    """Domain whose slice is the joined, ordered entity list of several adapters.

    Failed sources do not fail the domain; they are reported in
    :attr:`DomainResult.failures` keyed by source name.
    """
    source_map = dict(sources)

    async def load(token: CancellationToken) -> DomainResult:
        fetchers = {source: _bind(adapter, params, token) for source, adapter in source_map.items()}
        result = await aggregator.combine_settled(fetchers, sort_spec)
        token.raise_if_cancelled()
        entities: list[CombinedEntity] = result.entities
        return DomainResult(data=entities, failures=dict(result.failures))

    return Domain(name=name, loader=load, cache_key=cache_key or name)


def _bind(
    adapter: FetchAdapter,
    params: Mapping[str, Any] | None,
    token: CancellationToken,
) -> Callable[[], Awaitable[FetchResult]]:
    def fetch() -> Awaitable[FetchResult]:
        return adapter(params, token=token)

    return fetch
