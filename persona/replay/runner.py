"""
Replay runner: reconstruct personalities from the journal.

Replay is pure: applies the reducer to each event in sequence order.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.canonical import canonical_json_bytes
from ..core.events import (
    INTERACTION_REGISTERED,
    PERSONALITY_UPDATED,
    TRAIT_INCREASED,
    Event,
)
from ..core.reducer import Reducer
from ..core.state import Personality, State
from ..log.store import EventStore
from ..store.trait_store import TraitStore


@dataclass(frozen=True)
class ReplayResult:
    """
    Fields:
        state: Final state after applying events
        applied: Number of events applied
    """
    state: State
    applied: int


def on_interaction_registered(cur: Any, ev: Event) -> Any:
    return cur


def on_trait_increased(cur: Optional[Dict[str, Any]], ev: Event) -> Optional[Dict[str, Any]]:
    # PersonalityUpdated follows in the same interaction and carries the
    # full snapshot; this keeps partially replayed logs consistent.
    if cur is None:
        return cur
    nxt = dict(cur)
    nxt[ev.payload["trait"]] = ev.payload["value"]
    return nxt


def on_personality_updated(cur: Any, ev: Event) -> Dict[str, Any]:
    return dict(ev.payload["personality"])


def build_reducer() -> Reducer:
    reducer = Reducer()
    reducer.register(INTERACTION_REGISTERED, on_interaction_registered)
    reducer.register(TRAIT_INCREASED, on_trait_increased)
    reducer.register(PERSONALITY_UPDATED, on_personality_updated)
    return reducer


def replay(
    store: EventStore,
    reducer: Optional[Reducer] = None,
    aggregate_id: Optional[str] = None,
    to_seq: Optional[int] = None,
) -> ReplayResult:
    """
    Replay events to reconstruct state.

    Args:
        store: Event store to read from
        reducer: Reducer with registered handlers (default: build_reducer())
        aggregate_id: Filter by aggregate ID (None = all)
        to_seq: Stop at this sequence (inclusive, None = all)
    """
    reducer = reducer or build_reducer()
    st = State()
    count = 0

    for ev in store.read(aggregate_id=aggregate_id, from_seq=0):
        if to_seq is not None and ev.require_seq() > to_seq:
            break
        st = reducer.apply(st, ev)
        count += 1

    return ReplayResult(state=st, applied=count)


def compute_state_hash(state: State) -> str:
    """SHA-256 over the canonical form of (version, aggregates)."""
    data = {"version": state.version, "aggregates": state.aggregates}
    return hashlib.sha256(canonical_json_bytes(data)).hexdigest()


def restore_store(
    store: EventStore,
    baseline_trait: int = 10,
    trait_cap: Optional[int] = None,
) -> TraitStore:
    """
    Rebuild a TraitStore from every personality in the journal.

    With trait_cap set, traits journaled under a higher cap are clamped to it.
    """
    result = replay(store)
    traits = TraitStore(baseline_trait=baseline_trait)
    traits.load(
        Personality.from_dict(agg) if trait_cap is None else Personality.from_dict(agg).clamped(trait_cap)
        for agg in result.state.aggregates.values()
        if agg is not None
    )
    return traits
