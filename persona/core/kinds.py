"""
Interaction kinds and the kind -> trait delta table.

Kinds form a closed enumeration. What each kind does to the traits is
configuration: the processor only ever asks the table to resolve a kind.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from .errors import InvalidInteraction
from .state import Trait

Deltas = Tuple[Tuple[Trait, int], ...]


class InteractionKind(str, Enum):
    GENTLE = "gentle"
    PLAYFUL = "playful"
    LONG_PRESS = "long_press"

    @classmethod
    def parse(cls, value: Any) -> "InteractionKind":
        """
        Resolve a kind from a member, value ("long_press"), member name
        ("LONG_PRESS") or CamelCase name ("LongPress").

        Raises:
            InvalidInteraction: If value names no known kind
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidInteraction(f"unrecognized interaction kind: {value!r}")
        raw = value.strip().replace("-", "_")
        key = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", raw).lower()
        try:
            return cls(key)
        except ValueError:
            raise InvalidInteraction(f"unrecognized interaction kind: {value!r}") from None


def _normalize(deltas: Mapping[Any, int]) -> Deltas:
    if not deltas:
        raise ValueError("trait delta mapping must not be empty")
    out = []
    for name, delta in deltas.items():
        trait = Trait.parse(name)
        if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
            raise ValueError(f"delta for {trait.value} must be a positive integer, got {delta!r}")
        out.append((trait, delta))
    return tuple(out)


DEFAULT_DELTAS: Dict[InteractionKind, Dict[Trait, int]] = {
    InteractionKind.GENTLE: {Trait.BONDING_LEVEL: 1, Trait.EMOTIONAL_IQ: 1},
    InteractionKind.PLAYFUL: {Trait.PLAYFULNESS: 1, Trait.ATTENTIVENESS: 1},
    # LONG_PRESS is reserved; map it through configuration.
}


@dataclass(frozen=True)
class KindTable:
    """
    Immutable mapping of interaction kind -> ordered (trait, delta) pairs.

    Usage:
        table = KindTable.default().with_mapping("long_press", {"bonding_level": 2})
        deltas = table.resolve(InteractionKind.GENTLE)
    """
    entries: Dict[InteractionKind, Deltas] = field(default_factory=dict)

    @staticmethod
    def from_mapping(mapping: Mapping[Any, Mapping[Any, int]]) -> "KindTable":
        entries = {InteractionKind.parse(k): _normalize(v) for k, v in mapping.items()}
        return KindTable(entries=entries)

    @staticmethod
    def default() -> "KindTable":
        return KindTable.from_mapping(DEFAULT_DELTAS)

    def with_mapping(self, kind: Any, deltas: Mapping[Any, int]) -> "KindTable":
        entries = dict(self.entries)
        entries[InteractionKind.parse(kind)] = _normalize(deltas)
        return KindTable(entries=entries)

    def merged(self, mapping: Mapping[Any, Mapping[Any, int]]) -> "KindTable":
        table = self
        for kind, deltas in mapping.items():
            table = table.with_mapping(kind, deltas)
        return table

    def resolve(self, kind: Any) -> Deltas:
        """
        Raises:
            InvalidInteraction: If kind is unknown or has no mapping
        """
        k = InteractionKind.parse(kind)
        deltas = self.entries.get(k)
        if not deltas:
            raise InvalidInteraction(f"no trait mapping configured for {k.value}")
        return deltas

    def kinds(self) -> Tuple[InteractionKind, ...]:
        return tuple(k for k in InteractionKind if k in self.entries)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {k.value: {t.value: d for t, d in v} for k, v in self.entries.items()}
