"""Long-lived dashboard state container.

This is the only component allowed to replace the published snapshot.
Domain loaders run concurrently; their outcomes are applied one at a time,
each producing a new :class:`StoreSnapshot` that is delivered synchronously
to every subscriber.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from brandfeed._cache import TtlCache
from brandfeed.exceptions import RefreshCancelledError, describe_error
from brandfeed.ingestion.domains import Domain, DomainResult
from brandfeed.state.bus import SnapshotBus, Subscriber, Unsubscribe
from brandfeed.state.cycle import CancellationToken
from brandfeed.state.events import FLAG_FIELDS, DomainView, StoreSnapshot

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DashboardStore:
    """State container coordinating observers with domain loaders.

    Usage::

        store = DashboardStore([records_domain("brand_profile", fetch_profile)], cache=TtlCache())
        unsubscribe = store.subscribe(render)
        await store.refresh_data()

    Per cycle the store moves ``Idle -> Loading -> (Success | PartialFailure)
    -> Idle``. Domain failures never propagate out of :meth:`refresh_data`;
    they become the snapshot's ``error``/``errors`` and the domain keeps its
    previous slice.
    """

    def __init__(
        self,
        domains: Iterable[Domain],
        *,
        cache: TtlCache[DomainResult] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._domains: dict[str, Domain] = {}
        for domain in domains:
            self._register(domain)
        self._cache = cache
        self._clock = clock
        self._bus = SnapshotBus()
        self._snapshot = StoreSnapshot(slices={name: None for name in self._domains})
        self._cycle_seq = 0
        self._token: CancellationToken | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._detached: set[asyncio.Task[None]] = set()

    def _register(self, domain: Domain) -> None:
        name = domain.name
        if not name.isidentifier():
            raise ValueError(f"domain name must be an identifier, got {name!r}")
        if name in FLAG_FIELDS:
            raise ValueError(f"domain name {name!r} collides with a snapshot flag")
        if name in self._domains:
            raise ValueError(f"domain {name!r} registered twice")
        self._domains[name] = domain

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def domains(self) -> tuple[str, ...]:
        return tuple(self._domains)

    @property
    def cache(self) -> TtlCache[DomainResult] | None:
        return self._cache

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def get_state(self) -> StoreSnapshot:
        """Return the current snapshot."""
        return self._snapshot

    def get_domain(self, name: str) -> DomainView:
        """Project one domain's slice together with the global loading/error flags."""
        if name not in self._domains:
            raise KeyError(name)
        snapshot = self._snapshot
        return DomainView(
            data=snapshot.slices.get(name),
            is_loading=snapshot.is_loading,
            error=snapshot.error,
        )

    # ------------------------------------------------------------------
    # Publish/subscribe
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register *callback* and immediately call it with the current snapshot."""
        return self._bus.subscribe(callback, replay=self._snapshot)

    def set_state(self, partial: Mapping[str, Any]) -> StoreSnapshot:
        """Shallow-merge *partial* into a new snapshot and notify subscribers.

        Keys are snapshot flags (``is_loading``, ``error``, ``errors``,
        ``last_updated``, ``cycle``) or registered domain names.
        """
        snapshot = self._snapshot.merged(partial)
        self._snapshot = snapshot
        self._bus.publish(snapshot)
        return snapshot

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    async def refresh_data(self, *, force_refresh: bool = False) -> None:
        """Refresh every domain and return once all of them have settled.

        Overlapping calls join the cycle already in flight (single-flight);
        the joining call's ``force_refresh`` is ignored in that case.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._run_cycle(force_refresh=force_refresh))
            task.add_done_callback(self._on_cycle_done)
            self._inflight = task
        else:
            _logger.debug("Joining in-flight refresh cycle %d", self._cycle_seq)
        # A cancelled caller must not abort the cycle other callers wait on.
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or not current.cancelling()):
                # The cycle was torn down by aclose(); this caller was not cancelled.
                _logger.debug("Refresh cycle torn down while awaited")
                return
            raise

    def cancel_refresh(self) -> bool:
        """Abandon the in-flight cycle. Returns ``False`` if none was running.

        The abandoned cycle's pending results are discarded; the next
        :meth:`refresh_data` call starts a fresh cycle.
        """
        task = self._inflight
        token = self._token
        if task is None or task.done() or token is None:
            return False
        token.cancel()
        self._inflight = None
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)
        _logger.debug("Cancelled refresh cycle %d", token.cycle)
        self.set_state({"is_loading": False})
        return True

    async def aclose(self) -> None:
        """Cancel the in-flight cycle and wait until every abandoned cycle task has finished."""
        self.cancel_refresh()
        pending = [task for task in self._detached if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _on_cycle_done(self, task: asyncio.Task[None]) -> None:
        if self._inflight is task:
            self._inflight = None

    def _is_stale(self, token: CancellationToken) -> bool:
        return token.cancelled or token.cycle != self._cycle_seq

    async def _run_cycle(self, *, force_refresh: bool) -> None:
        self._cycle_seq += 1
        token = CancellationToken(self._cycle_seq)
        self._token = token

        self.set_state({"is_loading": True, "error": None, "errors": {}, "cycle": token.cycle})
        if self._cache is not None:
            self._cache.clear_expired()

        failures: dict[str, str] = {}
        try:
            await asyncio.gather(
                *(
                    self._settle_domain(domain, token, failures, force_refresh=force_refresh)
                    for domain in self._domains.values()
                )
            )
        finally:
            # Also runs when the cycle task is torn down; a stale cycle leaves the flags to its successor.
            if not self._is_stale(token):
                # error already holds the last failure observed during the cycle.
                self.set_state({"is_loading": False, "last_updated": self._clock()})

    def _record_failure(
        self,
        domain: Domain,
        token: CancellationToken,
        failures: dict[str, str],
        exc: BaseException,
    ) -> None:
        if self._is_stale(token):
            return
        reason = describe_error(exc)
        _logger.warning("Refreshing %s failed: %s", domain.name, reason)
        message = f"{domain.name}: {reason}"
        failures[domain.name] = message
        self.set_state({"error": message, "errors": failures})

    async def _settle_domain(
        self,
        domain: Domain,
        token: CancellationToken,
        failures: dict[str, str],
        *,
        force_refresh: bool,
    ) -> None:
        try:
            result = await self._load(domain, token, force_refresh=force_refresh)
        except RefreshCancelledError:
            _logger.debug("Discarding %s result from cancelled cycle %d", domain.name, token.cycle)
            return
        except asyncio.CancelledError as exc:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Raised by the loader itself (e.g. aborted I/O), not by cancelling this cycle.
            self._record_failure(domain, token, failures, exc)
            return
        except Exception as exc:
            self._record_failure(domain, token, failures, exc)
            return

        if self._is_stale(token):
            _logger.debug("Discarding %s result from superseded cycle %d", domain.name, token.cycle)
            return

        partial: dict[str, Any] = {domain.name: result.data}
        for source, reason in result.failures.items():
            _logger.warning("Source %s of %s failed: %s", source, domain.name, reason)
            message = f"{domain.name}/{source}: {reason}"
            failures[f"{domain.name}/{source}"] = message
            partial["error"] = message
        if result.failures:
            partial["errors"] = failures
        self.set_state(partial)

    async def _load(self, domain: Domain, token: CancellationToken, *, force_refresh: bool) -> DomainResult:
        cache = self._cache
        key = domain.cache_key
        if cache is None or key is None:
            return await domain.loader(token)

        cached = cache.get(key, force_refresh)
        if cached is not None:
            _logger.debug("Serving %s from cache", domain.name)
            return cached

        result = await domain.loader(token)
        # Partial results are not memoized: the next cycle retries the failed sources.
        if not result.failures and not token.cancelled:
            cache.set(key, result)
        return result
