"""
State model for personalities.

Personality is the per-entity trait vector. State is the immutable
aggregate container that replay folds journaled events into.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping


class Trait(str, Enum):
    """Bounded numeric attributes of a personality."""

    BONDING_LEVEL = "bonding_level"
    EMOTIONAL_IQ = "emotional_iq"
    PLAYFULNESS = "playfulness"
    ATTENTIVENESS = "attentiveness"

    @classmethod
    def parse(cls, value: Any) -> "Trait":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f"unknown trait: {value!r}") from None


@dataclass(frozen=True)
class Personality:
    """
    Trait vector for one entity.

    Trait values are kept within [0, trait_cap] by the processor. Values
    read back from a journal written under a higher cap go through clamped().
    """
    entity_id: int
    bonding_level: int
    emotional_iq: int
    playfulness: int
    attentiveness: int
    interaction_count: int = 0
    last_interaction_at: int = 0

    @staticmethod
    def baseline(entity_id: int, now: int, baseline_trait: int = 10) -> "Personality":
        return Personality(
            entity_id=entity_id,
            bonding_level=baseline_trait,
            emotional_iq=baseline_trait,
            playfulness=baseline_trait,
            attentiveness=baseline_trait,
            interaction_count=0,
            last_interaction_at=now,
        )

    def trait(self, trait: Trait) -> int:
        return getattr(self, trait.value)

    def traits(self) -> Dict[str, int]:
        return {t.value: self.trait(t) for t in Trait}

    def with_traits(self, values: Mapping[Trait, int]) -> "Personality":
        return replace(self, **{t.value: v for t, v in values.items()})

    def clamped(self, cap: int) -> "Personality":
        """Copy with every trait limited to [0, cap]; self if already inside."""
        out_of_range: Dict[Trait, int] = {}
        for t in Trait:
            value = self.trait(t)
            if not 0 <= value <= cap:
                out_of_range[t] = min(max(value, 0), cap)
        return self.with_traits(out_of_range) if out_of_range else self

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"entity_id": self.entity_id}
        data.update(self.traits())
        data["interaction_count"] = self.interaction_count
        data["last_interaction_at"] = self.last_interaction_at
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Personality":
        return Personality(
            entity_id=int(data["entity_id"]),
            bonding_level=int(data["bonding_level"]),
            emotional_iq=int(data["emotional_iq"]),
            playfulness=int(data["playfulness"]),
            attentiveness=int(data["attentiveness"]),
            interaction_count=int(data.get("interaction_count", 0)),
            last_interaction_at=int(data.get("last_interaction_at", 0)),
        )


@dataclass(frozen=True)
class State:
    """
    Immutable state container.

    Fields:
        version: Monotonic version number (increments with each event)
        aggregates: Dict of aggregate_id -> aggregate_state

    Use with_agg() to create new state with an updated aggregate.
    """
    version: int = 0
    aggregates: Dict[str, Any] = field(default_factory=dict)

    def get_agg(self, aggregate_id: str) -> Any:
        """Aggregate state by ID, or None if not found."""
        return self.aggregates.get(aggregate_id)

    def with_agg(self, aggregate_id: str, agg_state: Any) -> "State":
        """
        Create new state with updated aggregate and incremented version.
        """
        new_aggs = dict(self.aggregates)
        new_aggs[aggregate_id] = agg_state
        return State(version=self.version + 1, aggregates=new_aggs)
