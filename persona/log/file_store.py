"""
File-based event store using append-only JSONL format.

Each line is a hash chain record with prev_hash, event_hash, and event data.
"""

import json
import os
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..core.canonical import canonical_json_str
from ..core.errors import EventStoreError
from ..core.events import Event
from .integrity import ZERO_HASH, chain_record
from .store import AppendResult, EventStore, conflict_results, conflicting

try:
    import fcntl
except ImportError:  # Windows or unsupported platform
    fcntl = None


class FileEventStore(EventStore):
    """
    File-based append-only event store.

    Storage format: JSONL (newline-delimited JSON)
    Each line: {"event": {...}, "event_hash": "...", "prev_hash": "..."}

    Guarantees:
    - Append-only (no mutations)
    - Exclusive flock while appending, so several writers share one file
    - Fsync after each append
    """

    def __init__(self, path: str) -> None:
        self.path = path

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        if not os.path.exists(path):
            with open(path, "wb") as f:
                f.write(b"")

    def _scan(self, f, unchanged_since: Optional[Mapping[str, int]] = None) -> Tuple[int, str, bool]:
        """
        Read last sequence number and hash from log, and whether any record
        is newer than unchanged_since allows.

        Returns:
            (-1, ZERO_HASH, False) if log is empty
        """
        last_seq = -1
        last_hash = ZERO_HASH
        conflict = False

        f.seek(0)
        for line in f:
            if not line.strip():
                continue
            rec = json.loads(line)
            last_seq = rec["event"]["seq"]
            last_hash = rec["event_hash"]
            if conflicting(rec, unchanged_since):
                conflict = True

        return last_seq, last_hash, conflict

    def _write_locked(self, f, events: Sequence[Event], last_seq: int, last_hash: str) -> List[AppendResult]:
        results = []
        lines = []
        prev = last_hash
        for i, event in enumerate(events):
            e2 = event.with_seq(last_seq + 1 + i)
            rec = chain_record(prev, e2)
            lines.append(canonical_json_str(rec) + "\n")
            results.append(
                AppendResult(
                    event=e2,
                    seq=e2.seq,
                    event_hash=rec["event_hash"],
                    prev_hash=prev,
                    committed=True,
                    conflict=False,
                    observed_prev_hash=last_hash,
                )
            )
            prev = rec["event_hash"]

        f.seek(0, os.SEEK_END)
        f.write("".join(lines).encode("utf-8"))
        f.flush()
        os.fsync(f.fileno())
        return results

    def append_many(
        self,
        events: Sequence[Event],
        unchanged_since: Optional[Mapping[str, int]] = None,
    ) -> List[AppendResult]:
        """
        Append a batch of events under one lock and one fsync.

        The unchanged_since check runs under the same lock as the write, so
        writers in other processes cannot slip a record in between.

        Raises:
            EventStoreError: If the file cannot be read or written
        """
        if not events:
            return []
        try:
            with open(self.path, "a+b") as f:
                if fcntl:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    last_seq, last_hash, conflict = self._scan(f, unchanged_since)
                    if conflict:
                        return conflict_results(events, last_hash)
                    return self._write_locked(f, events, last_seq, last_hash)
                finally:
                    if fcntl:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except (OSError, ValueError, KeyError) as ex:
            raise EventStoreError(str(ex)) from ex

    def records(self) -> Iterator[Dict[str, Any]]:
        with open(self.path, "rb") as f:
            for line in f:
                if not line.strip():
                    continue
                yield json.loads(line)
