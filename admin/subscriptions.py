"""Push current node snapshots to dashboards and other observers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List

from admin.models import NodeRecord

logger = logging.getLogger(__name__)

Subscriber = Callable[[List[NodeRecord]], None]


class SubscriptionBus:
    """
    Synchronous fan-out of node list snapshots.

    Every publish() builds one snapshot and passes that same list to each
    subscriber. Late subscribers never receive earlier publishes.
    """

    def __init__(self, snapshot_provider: Callable[[], List[NodeRecord]]):
        self._snapshot_provider = snapshot_provider
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self) -> List[NodeRecord]:
        with self._lock:
            subscribers = list(self._subscribers)

        snapshot = self._snapshot_provider()
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Subscriber {callback!r} failed: {e}", exc_info=True)
        return snapshot

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
