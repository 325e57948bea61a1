"""
Event model for personality state transitions.

Events are immutable records of what an accepted interaction did. They are
journaled, replayed and handed to observers; they never carry behavior.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

INTERACTION_REGISTERED = "InteractionRegistered"
TRAIT_INCREASED = "TraitIncreased"
PERSONALITY_UPDATED = "PersonalityUpdated"

EVENT_TYPES = (INTERACTION_REGISTERED, TRAIT_INCREASED, PERSONALITY_UPDATED)


@dataclass(frozen=True)
class Event:
    """
    Immutable event record.

    Fields:
        type: Event type (one of EVENT_TYPES)
        aggregate_id: Entity id as a string
        ts: Timestamp of the interaction that produced the event
        payload: Event-specific data
        meta: Metadata (caller, batch index, etc.)
        seq: Sequence number (assigned by EventStore)
    """
    type: str
    aggregate_id: str
    ts: int
    payload: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    seq: Optional[int] = None

    def require_seq(self) -> int:
        """
        Get sequence number or raise error if not assigned.

        Raises:
            ValueError: If seq is None
        """
        if self.seq is None:
            raise ValueError("Event.seq is required but None")
        return self.seq

    def with_seq(self, seq: int) -> "Event":
        return Event(
            type=self.type,
            aggregate_id=self.aggregate_id,
            ts=self.ts,
            payload=self.payload,
            meta=self.meta,
            seq=seq,
        )


def interaction_registered(entity_id: int, kind: str, ts: int, caller: Optional[str] = None) -> Event:
    meta = {"caller": caller} if caller is not None else {}
    return Event(
        type=INTERACTION_REGISTERED,
        aggregate_id=str(entity_id),
        ts=ts,
        payload={"entity_id": entity_id, "kind": kind},
        meta=meta,
    )


def trait_increased(entity_id: int, trait: str, value: int, ts: int) -> Event:
    return Event(
        type=TRAIT_INCREASED,
        aggregate_id=str(entity_id),
        ts=ts,
        payload={"entity_id": entity_id, "trait": trait, "value": value},
    )


def personality_updated(entity_id: int, snapshot: Dict[str, Any], ts: int) -> Event:
    return Event(
        type=PERSONALITY_UPDATED,
        aggregate_id=str(entity_id),
        ts=ts,
        payload={"entity_id": entity_id, "personality": snapshot},
    )
