"""
Access & rate guard.

Guards are read-only checks run, in order, before any mutation:
ownership first, then cooldown. An unauthorized caller therefore never
learns anything about rate-limit state.
"""

import json
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Optional

from .core.errors import NotFound, RateLimited, Unauthorized
from .core.state import Personality

Guard = Callable[[], None]


class OwnershipRegistry(ABC):
    """
    External identity/ownership collaborator.

    The engine only reads from it.
    """

    @abstractmethod
    def exists(self, entity_id: int) -> bool:
        ...

    @abstractmethod
    def owner_of(self, entity_id: int) -> str:
        ...


class InMemoryRegistry(OwnershipRegistry):
    """Registry backed by a dict; used by tests and embedding applications."""

    def __init__(self, owners: Optional[Dict[int, str]] = None) -> None:
        self._owners: Dict[int, str] = dict(owners or {})
        self._lock = threading.Lock()

    def register(self, entity_id: int, owner: str) -> None:
        with self._lock:
            self._owners[entity_id] = owner

    def transfer(self, entity_id: int, new_owner: str) -> None:
        with self._lock:
            if entity_id not in self._owners:
                raise NotFound(entity_id)
            self._owners[entity_id] = new_owner

    def exists(self, entity_id: int) -> bool:
        return entity_id in self._owners

    def owner_of(self, entity_id: int) -> str:
        try:
            return self._owners[entity_id]
        except KeyError:
            raise NotFound(entity_id) from None


class FileRegistry(InMemoryRegistry):
    """
    Read-only registry loaded from a JSON file.

    Format: {"<entity id>": "<owner address>", ...}
    """

    def __init__(self, path: str) -> None:
        self.path = path
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"registry file must contain a JSON object: {path}")
        super().__init__({int(k): str(v) for k, v in data.items()})


def check_ownership(registry: OwnershipRegistry, entity_id: int, caller: Optional[str]) -> None:
    """
    Raises:
        NotFound: If the registry does not know entity_id
        Unauthorized: If caller is not the registered owner
    """
    if not registry.exists(entity_id):
        raise NotFound(entity_id)
    if caller is None or registry.owner_of(entity_id) != caller:
        raise Unauthorized(entity_id, caller)


def check_cooldown(personality: Optional[Personality], now: int, cooldown_window: int) -> None:
    """
    Raises:
        RateLimited: If less than cooldown_window seconds passed since the
            last accepted interaction. Entities with no accepted interaction
            always pass.
    """
    if personality is None or personality.interaction_count == 0:
        return
    next_valid_at = personality.last_interaction_at + cooldown_window
    if now < next_valid_at:
        raise RateLimited(personality.entity_id, next_valid_at)


def run_guards(guards: Iterable[Guard]) -> None:
    """Run guards in order; the first failure propagates."""
    for guard in guards:
        guard()
