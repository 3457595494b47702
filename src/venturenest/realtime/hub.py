"""In-process realtime hub for INSERT change feeds.

Gateways publish every committed insert to the hub; clients subscribe with a
collection, an equality filter and a callback, and receive a Subscription
handle.

Delivery rules:
- Each insert is sent once to every open subscription whose filter matches.
- A callback that raises is logged and does not affect other subscribers or
  the insert that triggered it.
- Subscription.close() is synchronous: once it returns, the callback is never
  invoked again.
- Deliveries run under one reentrant hub-wide lock. A callback may insert
  rows that fan out to other subscriptions (including its own) from the same
  thread; publishers on other threads wait rather than interleave, so no lock
  ordering exists between subscriptions. A callback must not block on
  another thread that publishes.
- Nothing is replayed. A client that was not subscribed when a row was
  inserted must re-fetch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from venturenest.filters import RecordFilter, matches_filter

logger = logging.getLogger(__name__)

InsertCallback = Callable[[dict[str, Any]], None]


class Subscription:
    """Handle for one realtime subscription.

    Attributes:
        collection: Collection the subscription listens on.
        record_filter: Equality filter applied to inserted rows.
    """

    def __init__(
        self,
        hub: RealtimeHub,
        collection: str,
        record_filter: RecordFilter | None,
        callback: InsertCallback,
    ) -> None:
        self._hub = hub
        self.collection = collection
        self.record_filter = dict(record_filter or {})
        self._callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return True once close() has been called."""
        return self._closed

    def matches(self, record: dict[str, Any]) -> bool:
        """Return True if the record passes this subscription's filter."""
        return matches_filter(record, self.record_filter)

    def send(self, record: dict[str, Any]) -> bool:
        """Deliver a record to the callback.

        Holding the hub delivery lock while the callback runs is what makes
        close() synchronous with respect to in-flight deliveries.

        Returns:
            True if the callback was invoked, False if the handle is closed.
        """
        with self._hub._delivery_lock:
            if self._closed:
                return False
            self._callback(dict(record))
            return True

    def close(self) -> None:
        """Stop delivery and detach from the hub. Safe to call repeatedly."""
        with self._hub._delivery_lock:
            if self._closed:
                return
            self._closed = True
        self._hub._detach(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class RealtimeHub:
    """Thread-safe fan-out of inserted rows to subscriptions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Reentrant so callbacks may publish or close subscriptions.
        self._delivery_lock = threading.RLock()
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(
        self,
        collection: str,
        record_filter: RecordFilter | None,
        callback: InsertCallback,
    ) -> Subscription:
        """Register a callback for inserts into a collection.

        Args:
            collection: Collection name to listen on.
            record_filter: Equality filter rows must satisfy.
            callback: Invoked with a copy of every matching inserted row.

        Returns:
            Subscription handle; call close() to unsubscribe.
        """
        subscription = Subscription(self, collection, record_filter, callback)
        with self._lock:
            self._subscriptions.setdefault(collection, []).append(subscription)
            total = len(self._subscriptions[collection])
        logger.debug("Realtime subscription opened on %s (total: %d)", collection, total)
        return subscription

    def publish_insert(self, collection: str, record: dict[str, Any]) -> int:
        """Send an inserted row to every matching subscription.

        Returns:
            Number of subscriptions the row was delivered to.
        """
        with self._lock:
            targets = list(self._subscriptions.get(collection, ()))

        delivered = 0
        for subscription in targets:
            if not subscription.matches(record):
                continue
            try:
                if subscription.send(record):
                    delivered += 1
            except Exception as e:
                logger.warning(
                    "Realtime subscriber on %s failed for record %s: %s",
                    collection,
                    record.get("id"),
                    e,
                )
        return delivered

    def subscription_count(self, collection: str | None = None) -> int:
        """Return the number of open subscriptions, optionally per collection."""
        with self._lock:
            if collection is not None:
                return len(self._subscriptions.get(collection, ()))
            return sum(len(subs) for subs in self._subscriptions.values())

    def _detach(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(subscription.collection)
            if subs is None:
                return
            try:
                subs.remove(subscription)
            except ValueError:
                return
            if not subs:
                del self._subscriptions[subscription.collection]
        logger.debug("Realtime subscription closed on %s", subscription.collection)
