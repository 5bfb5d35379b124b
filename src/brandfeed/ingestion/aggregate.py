"""Concurrent multi-source fetch and join.

The aggregator invokes every source fetcher at once, waits for all of them
to settle, and joins the surviving records into :class:`CombinedEntity`
objects keyed by the normalized identifying field.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from brandfeed._constants import BRAND_KEY_FIELDS
from brandfeed.exceptions import describe_error
from brandfeed.ingestion.sorting import sort_entities
from brandfeed.models import CombinedEntity, FetchResult, RawRecord, SortSpec

_logger = logging.getLogger(__name__)

RecordFetcher = Callable[[], Awaitable[Any]]
"""Zero-argument coroutine function resolving to records (or a :class:`FetchResult`)."""


@dataclass(frozen=True, slots=True)
class AggregationResult:
    """Joined entities plus the sources that failed to deliver."""

    entities: list[CombinedEntity]
    failures: dict[str, str] = field(default_factory=dict)
    skipped: int = 0
    """Records dropped for lacking a usable identifying field."""


@dataclass(slots=True)
class _EntityBuilder:
    display_name: str
    sources: dict[str, RawRecord] = field(default_factory=dict)


async def _invoke(fetcher: RecordFetcher) -> list[Any]:
    result = await fetcher()
    if isinstance(result, FetchResult):
        return list(result.data)
    return list(result)


class Aggregator:
    """Fetch from independently-owned sources and join their records.

    Usage::

        aggregator = Aggregator()
        entities = await aggregator.combine(
            {"metrics": fetch_metrics, "profile": fetch_profile},
            SortSpec(field="total_volume", order="desc"),
        )
    """

    def __init__(self, *, key_fields: tuple[str, ...] = BRAND_KEY_FIELDS) -> None:
        if not key_fields:
            raise ValueError("key_fields must name at least one field")
        self._key_fields = key_fields

    @property
    def key_fields(self) -> tuple[str, ...]:
        return self._key_fields

    async def combine(
        self,
        fetchers: Mapping[str, RecordFetcher],
        sort_spec: SortSpec | None = None,
    ) -> list[CombinedEntity]:
        """Return the ordered combined entities, ignoring which sources failed."""
        result = await self.combine_settled(fetchers, sort_spec)
        return result.entities

    async def combine_settled(
        self,
        fetchers: Mapping[str, RecordFetcher],
        sort_spec: SortSpec | None = None,
    ) -> AggregationResult:
        """Run every fetcher concurrently and join whatever settled successfully.

        A failing fetcher contributes no records; its reason is reported in
        :attr:`AggregationResult.failures` and never mixed into entity data.
        """
        names = list(fetchers)
        outcomes = await asyncio.gather(
            *(_invoke(fetchers[name]) for name in names),
            return_exceptions=True,
        )

        settled: dict[str, list[Any]] = {}
        failures: dict[str, str] = {}
        for name, outcome in zip(names, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                _logger.warning("Source %s failed: %s", name, describe_error(outcome))
                failures[name] = describe_error(outcome)
                continue
            settled[name] = outcome

        entities, skipped = self.join(settled)
        if sort_spec is not None:
            entities = sort_entities(entities, sort_spec)
        return AggregationResult(entities=entities, failures=failures, skipped=skipped)

    def join(self, records_by_source: Mapping[str, Iterable[Any]]) -> tuple[list[CombinedEntity], int]:
        """Join already-fetched records. Returns ``(entities, skipped_count)``.

        Entities are emitted in first-contribution order, walking sources in
        mapping order, so the result does not depend on fetch completion order.
        """
        builders: dict[str, _EntityBuilder] = {}
        skipped = 0
        for source_name, records in records_by_source.items():
            for item in records:
                record = RawRecord.coerce(item)
                key = record.key(self._key_fields)
                if key is None:
                    skipped += 1
                    _logger.debug("Skipping %s record without identifying field: %r", source_name, item)
                    continue
                builder = builders.get(key)
                if builder is None:
                    builder = _EntityBuilder(display_name=record.display_name(self._key_fields))
                    builders[key] = builder
                # Last record wins for a duplicate (entity, source) pair.
                builder.sources[source_name] = record

        entities = [
            CombinedEntity(key=key, display_name=builder.display_name, sources=builder.sources)
            for key, builder in builders.items()
        ]
        return entities, skipped
