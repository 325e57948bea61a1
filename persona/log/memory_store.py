"""
In-memory event store.

Same hash chain records as FileEventStore, kept in a list. Useful for
embedding the engine without a journal file and for tests.
"""

import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from ..core.events import Event
from .integrity import ZERO_HASH, chain_record
from .store import AppendResult, EventStore, conflict_results, conflicting


class MemoryEventStore(EventStore):
    def __init__(self) -> None:
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def _last_hash(self) -> str:
        return self._records[-1]["event_hash"] if self._records else ZERO_HASH

    def _append_locked(self, event: Event) -> AppendResult:
        prev = self._last_hash()
        e2 = event.with_seq(len(self._records))
        rec = chain_record(prev, e2)
        self._records.append(rec)
        return AppendResult(
            event=e2,
            seq=e2.seq,
            event_hash=rec["event_hash"],
            prev_hash=prev,
            committed=True,
            conflict=False,
            observed_prev_hash=prev,
        )

    def append_many(
        self,
        events: Sequence[Event],
        unchanged_since: Optional[Mapping[str, int]] = None,
    ) -> List[AppendResult]:
        with self._lock:
            if any(conflicting(rec, unchanged_since) for rec in self._records):
                return conflict_results(events, self._last_hash())
            return [self._append_locked(ev) for ev in events]

    def records(self) -> Iterator[Dict[str, Any]]:
        with self._lock:
            snapshot = list(self._records)
        return iter(snapshot)

    def __len__(self) -> int:
        return len(self._records)
