"""
Core personality primitives.

- Personality / Trait: the per-entity trait vector
- InteractionKind / KindTable: closed kind enumeration and its delta table
- Event: immutable notification records
- State / Reducer: replay primitives
- Canonical: deterministic serialization
- Clock: time sources
"""

from .events import (
    Event,
    EVENT_TYPES,
    INTERACTION_REGISTERED,
    TRAIT_INCREASED,
    PERSONALITY_UPDATED,
)
from .state import Personality, Trait, State
from .kinds import InteractionKind, KindTable
from .reducer import Reducer
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .clock import DeterministicClock, SystemClock
from .errors import (
    PersonaError,
    NotFound,
    AlreadyExists,
    Unauthorized,
    RateLimited,
    InvalidInteraction,
    LengthMismatch,
    InvalidTransitionError,
    IntegrityError,
    EventStoreError,
    JournalConflict,
)

__all__ = [
    "Event",
    "EVENT_TYPES",
    "INTERACTION_REGISTERED",
    "TRAIT_INCREASED",
    "PERSONALITY_UPDATED",
    "Personality",
    "Trait",
    "State",
    "InteractionKind",
    "KindTable",
    "Reducer",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "DeterministicClock",
    "SystemClock",
    "PersonaError",
    "NotFound",
    "AlreadyExists",
    "Unauthorized",
    "RateLimited",
    "InvalidInteraction",
    "LengthMismatch",
    "InvalidTransitionError",
    "IntegrityError",
    "EventStoreError",
    "JournalConflict",
]
