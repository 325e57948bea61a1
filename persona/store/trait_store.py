"""
In-process trait store: Entity ID -> Personality.

The store holds data only. Mutations are serialized per key through
lock(); there is no lock spanning all entities.
"""

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, Iterator, Optional

from ..core.errors import AlreadyExists, NotFound
from ..core.state import Personality


class TraitStore:
    """
    Mapping of entity id to its current Personality.

    Usage:
        store = TraitStore(baseline_trait=10)
        with store.lock(7):
            p = store.find(7) or store.initialize(7, now)
            store.put(updated)
    """

    def __init__(self, baseline_trait: int = 10) -> None:
        self.baseline_trait = baseline_trait
        self._data: Dict[int, Personality] = {}
        self._locks: Dict[int, threading.RLock] = {}
        self._locks_guard = threading.RLock()

    def get(self, entity_id: int) -> Personality:
        """
        Raises:
            NotFound: If no personality exists for entity_id
        """
        p = self._data.get(entity_id)
        if p is None:
            raise NotFound(entity_id)
        return p

    def find(self, entity_id: int) -> Optional[Personality]:
        return self._data.get(entity_id)

    def initialize(self, entity_id: int, now: int) -> Personality:
        """
        Create the baseline personality for entity_id.

        Raises:
            AlreadyExists: If a personality is already stored
        """
        with self._locks_guard:
            if entity_id in self._data:
                raise AlreadyExists(entity_id)
            p = Personality.baseline(entity_id, now, self.baseline_trait)
            self._data[entity_id] = p
            return p

    def put(self, personality: Personality) -> None:
        # Total replace. Invariants are the caller's responsibility.
        self._data[personality.entity_id] = personality

    def load(self, personalities: Iterable[Personality]) -> None:
        for p in personalities:
            self.put(p)

    def snapshot(self) -> Dict[int, Personality]:
        return dict(self._data)

    def _key_lock(self, entity_id: int) -> threading.RLock:
        with self._locks_guard:
            lk = self._locks.get(entity_id)
            if lk is None:
                lk = threading.RLock()
                self._locks[entity_id] = lk
            return lk

    @contextmanager
    def lock(self, entity_id: int) -> Iterator[None]:
        """Serialize read-check-modify-write for one entity."""
        lk = self._key_lock(entity_id)
        with lk:
            yield

    @contextmanager
    def lock_many(self, entity_ids: Iterable[int]) -> Iterator[None]:
        """Hold the locks of several entities, acquired in sorted order."""
        with ExitStack() as stack:
            for entity_id in sorted(set(entity_ids)):
                stack.enter_context(self.lock(entity_id))
            yield

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._data

    def __len__(self) -> int:
        return len(self._data)
