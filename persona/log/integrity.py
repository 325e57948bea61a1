"""
Hash chain integrity.

Each journal record carries the hash of the previous record, so any edit,
reordering or deletion in the log is detectable.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..core.canonical import canonical_json_bytes
from ..core.events import Event

ZERO_HASH = "0" * 64


def event_to_dict(event: Event) -> Dict[str, Any]:
    return {
        "type": event.type,
        "aggregate_id": event.aggregate_id,
        "seq": event.seq,
        "ts": event.ts,
        "payload": event.payload,
        "meta": event.meta,
    }


def event_from_dict(data: Dict[str, Any]) -> Event:
    return Event(
        type=data["type"],
        aggregate_id=data["aggregate_id"],
        seq=data.get("seq"),
        ts=data["ts"],
        payload=data.get("payload") or {},
        meta=data.get("meta") or {},
    )


def hash_event(prev_hash: str, event: Event) -> str:
    """
    Compute hash of event chained to previous hash.

    Hash input: prev_hash + canonical_json(event_data)

    Returns:
        SHA-256 hash as hex string
    """
    b = prev_hash.encode("utf-8") + canonical_json_bytes(event_to_dict(event))
    return hashlib.sha256(b).hexdigest()


def chain_record(prev_hash: str, event: Event) -> Dict[str, Any]:
    """
    Create hash chain record for storage.

    Returns:
        {"prev_hash": ..., "event_hash": ..., "event": {...}}
    """
    return {
        "prev_hash": prev_hash,
        "event_hash": hash_event(prev_hash, event),
        "event": event_to_dict(event),
    }


@dataclass
class ChainReport:
    valid: bool
    checked: int
    errors: List[str] = field(default_factory=list)


def verify_chain(records: Iterable[Dict[str, Any]]) -> ChainReport:
    """
    Walk journal records and check links, hashes and sequence numbers.

    Never raises on a broken chain; the report lists every problem found.
    """
    prev = ZERO_HASH
    expected_seq = 0
    checked = 0
    errors: List[str] = []

    for rec in records:
        ev_data = rec.get("event", {})
        seq = ev_data.get("seq")
        if seq != expected_seq:
            errors.append(f"seq {seq}: expected seq {expected_seq}")
        if rec.get("prev_hash") != prev:
            errors.append(f"seq {seq}: prev_hash does not link to previous record")
        try:
            computed = hash_event(rec.get("prev_hash", ""), event_from_dict(ev_data))
        except KeyError as ex:
            errors.append(f"seq {seq}: malformed event, missing {ex}")
            computed = None
        if computed is not None and computed != rec.get("event_hash"):
            errors.append(f"seq {seq}: event_hash mismatch")

        prev = rec.get("event_hash", "")
        expected_seq = (seq if isinstance(seq, int) else expected_seq) + 1
        checked += 1

    return ChainReport(valid=not errors, checked=checked, errors=errors)
