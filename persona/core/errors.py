"""
Exception types for the personality engine.

Domain errors derive from PersonaError and are terminal for the attempt
that raised them. JournalConflict is the one error the engine handles
itself, by re-reading the entity and deciding again.
"""

from typing import Any, Optional


class PersonaError(Exception):
    """Base class for caller-visible engine errors."""
    pass


class NotFound(PersonaError):
    """Raised when an entity or its personality does not exist."""

    def __init__(self, entity_id: Any) -> None:
        super().__init__(f"entity {entity_id} not found")
        self.entity_id = entity_id


class AlreadyExists(PersonaError):
    """Raised when initializing a personality that is already present."""

    def __init__(self, entity_id: Any) -> None:
        super().__init__(f"personality for entity {entity_id} already exists")
        self.entity_id = entity_id


class Unauthorized(PersonaError):
    """Raised when the caller is not the registered owner of the entity."""

    def __init__(self, entity_id: Any, caller: Optional[str]) -> None:
        super().__init__(f"caller {caller!r} is not the owner of entity {entity_id}")
        self.entity_id = entity_id
        self.caller = caller


class RateLimited(PersonaError):
    """Raised when the cooldown window has not elapsed since the last interaction."""

    def __init__(self, entity_id: Any, next_valid_at: int) -> None:
        super().__init__(f"entity {entity_id} is cooling down until {next_valid_at}")
        self.entity_id = entity_id
        self.next_valid_at = next_valid_at


class InvalidInteraction(PersonaError):
    """Raised for unrecognized interaction kinds or malformed requests."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class LengthMismatch(PersonaError):
    """Raised when batch id and kind sequences differ in length."""

    def __init__(self, ids: int, kinds: int) -> None:
        super().__init__(f"batch length mismatch: {ids} ids, {kinds} kinds")
        self.ids = ids
        self.kinds = kinds


class InvalidTransitionError(Exception):
    """Raised when event handler is not registered or transition is invalid."""
    pass


class IntegrityError(Exception):
    """Raised when hash chain verification fails."""
    pass


class EventStoreError(Exception):
    """Raised when event store operations fail."""
    pass


class JournalConflict(EventStoreError):
    """Raised when another writer journaled a newer record for an entity being committed."""
    pass
