"""
Notification channel.

commit() journals events (assigning seq); dispatch() hands them to
subscribers in order. Delivery is at-least-once and observational only:
a failing subscriber is logged and the remaining subscribers still run.
"""

import logging
import threading
from typing import Callable, List, Mapping, Optional, Sequence

from .core.errors import JournalConflict
from .core.events import Event
from .log.store import EventStore
from . import metrics

logger = logging.getLogger(__name__)

Subscriber = Callable[[Event], None]


class Notifier:
    def __init__(self, store: Optional[EventStore] = None) -> None:
        self.store = store
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def commit(
        self,
        events: Sequence[Event],
        unchanged_since: Optional[Mapping[str, int]] = None,
    ) -> List[Event]:
        """
        Journal events and return them with seq assigned.

        Without a store the events are returned unchanged.

        Raises:
            JournalConflict: If the journal holds a record newer than
                unchanged_since allows; nothing was written
            EventStoreError: If the journal rejects the batch
        """
        if self.store is None or not events:
            return list(events)
        results = self.store.append_many(events, unchanged_since=unchanged_since)
        if any(r.conflict for r in results):
            raise JournalConflict(
                f"journal moved on (head {results[0].observed_prev_hash}), nothing written"
            )
        return [r.event for r in results]

    def dispatch(self, events: Sequence[Event]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for ev in events:
            metrics.EVENTS_TOTAL.labels(event_type=ev.type).inc()
            for callback in subscribers:
                try:
                    callback(ev)
                except Exception:
                    logger.exception(
                        "Subscriber %r failed on %s", callback, ev.type,
                        extra={"trace_id": ev.aggregate_id},
                    )
