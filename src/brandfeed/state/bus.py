"""Synchronous, ordered snapshot delivery to subscribers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from brandfeed.state.events import StoreSnapshot

_logger = logging.getLogger(__name__)

Subscriber = Callable[[StoreSnapshot], None]
Unsubscribe = Callable[[], None]


@dataclass(slots=True, eq=False)
class _Subscription:
    callback: Subscriber
    active: bool = True


class SnapshotBus:
    """Observer registry for :class:`StoreSnapshot` updates.

    Delivery is synchronous and in registration order. A subscriber that
    raises is logged and skipped; the remaining subscribers still receive
    the snapshot. A subscription removed during a publish is not invoked
    for the rest of that publish.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Subscriber, *, replay: StoreSnapshot | None = None) -> Unsubscribe:
        """Register *callback*; if *replay* is given, deliver it immediately.

        Returns a callable removing this subscription. Calling it more than
        once is a no-op.
        """
        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)
        if replay is not None:
            self._deliver(subscription, replay)

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions = [s for s in self._subscriptions if s is not subscription]

        return unsubscribe

    def publish(self, snapshot: StoreSnapshot) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active:
                self._deliver(subscription, snapshot)

    def _deliver(self, subscription: _Subscription, snapshot: StoreSnapshot) -> None:
        try:
            subscription.callback(snapshot)
        except Exception:
            _logger.exception("Store subscriber %r raised", subscription.callback)
