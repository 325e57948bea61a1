"""
EventStore abstract interface.

The journal behind the notification channel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from ..core.errors import EventStoreError
from ..core.events import Event
from .integrity import event_from_dict


@dataclass(frozen=True)
class AppendResult:
    """
    Result of an append attempt.

    When committed is False and conflict is True, the event was not written.
    """

    event: Event
    seq: Optional[int]
    event_hash: Optional[str]
    prev_hash: Optional[str]
    committed: bool
    conflict: bool
    observed_prev_hash: Optional[str] = None


def conflicting(rec: Dict[str, Any], unchanged_since: Optional[Mapping[str, int]]) -> bool:
    """True when rec is newer than the position a writer last saw for its aggregate."""
    if not unchanged_since:
        return False
    ev = rec["event"]
    seen = unchanged_since.get(ev["aggregate_id"])
    return seen is not None and ev["seq"] > seen


def conflict_results(events: Sequence[Event], observed_prev_hash: str) -> List[AppendResult]:
    return [
        AppendResult(
            event=ev,
            seq=None,
            event_hash=None,
            prev_hash=None,
            committed=False,
            conflict=True,
            observed_prev_hash=observed_prev_hash,
        )
        for ev in events
    ]


class EventStore(ABC):
    """
    Abstract event storage interface.

    All implementations must guarantee:
    - Append-only (no updates, no deletes)
    - Sequential ordering (events indexed by seq, starting at 0)
    - Hash chain over all records
    """

    @abstractmethod
    def append_many(
        self,
        events: Sequence[Event],
        unchanged_since: Optional[Mapping[str, int]] = None,
    ) -> List[AppendResult]:
        """
        Append several events in order, as one write.

        unchanged_since maps aggregate_id -> last seq the writer has seen
        for it (-1 for none). If the log holds a newer record for any of
        those aggregates, nothing is written and every result has
        conflict=True.

        Raises:
            EventStoreError: If append fails
        """
        ...

    def append(self, event: Event) -> AppendResult:
        """
        Append event to log (seq will be assigned).

        Raises:
            EventStoreError: If append fails
        """
        results = self.append_many([event])
        if not results or not results[0].committed:
            raise EventStoreError("append failed without commit")
        return results[0]

    @abstractmethod
    def records(self) -> Iterator[Dict[str, Any]]:
        """Yield raw hash chain records in sequence order."""
        ...

    def read(self, aggregate_id: Optional[str] = None, from_seq: int = 0) -> Iterator[Event]:
        """
        Read events from log.

        Args:
            aggregate_id: Filter by aggregate ID (None = all)
            from_seq: Start from this sequence number (inclusive)
        """
        for rec in self.records():
            ev = rec["event"]
            if ev["seq"] < from_seq:
                continue
            if aggregate_id is not None and ev["aggregate_id"] != aggregate_id:
                continue
            yield event_from_dict(ev)
