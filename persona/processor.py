"""
Interaction processor.

PersonalityEngine owns the trait store and is the only writer to it.
Every interaction runs as one read-check-modify-write unit under the
entity's lock:

    guards (ownership, cooldown) -> resolve kind -> saturating update
    -> journal -> store.put -> dispatch notifications

Validation finishes before anything is written, so a rejected call leaves
no trace in the store, the journal or the subscribers.

Engines in other processes may share the journal. Each engine remembers
the last journal seq it has applied per entity and journals on the
condition that no newer record for that entity exists. When one does, the
entity is re-read from the journal and the interaction is decided again.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from . import metrics
from .config import EngineConfig
from .core.clock import SystemClock
from .core.errors import (
    EventStoreError,
    InvalidInteraction,
    JournalConflict,
    LengthMismatch,
    PersonaError,
)
from .core.events import (
    PERSONALITY_UPDATED,
    Event,
    interaction_registered,
    personality_updated,
    trait_increased,
)
from .core.kinds import InteractionKind, KindTable
from .core.state import Personality, Trait
from .guard import OwnershipRegistry, check_cooldown, check_ownership, run_guards
from .log.store import EventStore
from .logging_config import get_logger
from .notify import Notifier
from .store.trait_store import TraitStore

# Journal attempts per call before a JournalConflict is given up on.
COMMIT_ATTEMPTS = 5


@dataclass(frozen=True)
class InteractionResult:
    personality: Personality
    events: Tuple[Event, ...]


@dataclass(frozen=True)
class BatchItem:
    entity_id: Any
    kind: Any
    personality: Optional[Personality] = None
    error: Optional[PersonaError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchResult:
    items: Tuple[BatchItem, ...]
    atomic: bool

    @property
    def succeeded(self) -> Tuple[BatchItem, ...]:
        return tuple(i for i in self.items if i.ok)

    @property
    def failed(self) -> Tuple[BatchItem, ...]:
        return tuple(i for i in self.items if not i.ok)


def _check_entity_id(entity_id: Any) -> int:
    if isinstance(entity_id, bool) or not isinstance(entity_id, int) or entity_id < 0:
        raise InvalidInteraction(f"malformed entity id: {entity_id!r}")
    return entity_id


def _kind_label(kind: Any) -> str:
    try:
        return InteractionKind.parse(kind).value
    except InvalidInteraction:
        return "unknown"


class PersonalityEngine:
    """
    Usage:
        registry = InMemoryRegistry({7: "0xA"})
        engine = PersonalityEngine(registry)
        engine.interact(7, InteractionKind.GENTLE, caller="0xA", now=1_700_000_000)
        engine.get_personality(7).bonding_level  # 11
    """

    def __init__(
        self,
        registry: OwnershipRegistry,
        config: Optional[EngineConfig] = None,
        store: Optional[TraitStore] = None,
        notifier: Optional[Notifier] = None,
        clock: Any = None,
    ) -> None:
        self.registry = registry
        self.config = config or EngineConfig()
        self.kind_table: KindTable = self.config.kind_table()
        self.store = store or TraitStore(baseline_trait=self.config.baseline_trait)
        self.notifier = notifier or Notifier()
        self.clock = clock or SystemClock()
        # entity_id -> last journal seq reflected in the store
        self._positions: Dict[int, int] = {}

    @classmethod
    def from_journal(
        cls,
        registry: OwnershipRegistry,
        journal: EventStore,
        config: Optional[EngineConfig] = None,
        clock: Any = None,
    ) -> "PersonalityEngine":
        """Build an engine whose personalities are restored from journal."""
        engine = cls(registry, config=config, notifier=Notifier(journal), clock=clock)
        engine.refresh()
        return engine

    @property
    def journal(self) -> Optional[EventStore]:
        return self.notifier.store

    def refresh(self, entity_id: Optional[int] = None) -> int:
        """
        Apply journal records this engine has not seen yet to the store.

        Covers one entity, or every entity when entity_id is None. Traits
        above the configured cap are clamped. Returns the number of
        personalities written.
        """
        journal = self.journal
        if journal is None:
            return 0

        if entity_id is None:
            events = journal.read()
        else:
            events = journal.read(
                aggregate_id=str(entity_id),
                from_seq=self._positions.get(entity_id, -1) + 1,
            )

        written = 0
        for ev in events:
            eid = int(ev.aggregate_id)
            seq = ev.require_seq()
            with self.store.lock(eid):
                if seq <= self._positions.get(eid, -1):
                    continue
                self._positions[eid] = seq
                if ev.type == PERSONALITY_UPDATED:
                    snapshot = Personality.from_dict(ev.payload["personality"])
                    self.store.put(snapshot.clamped(self.config.trait_cap))
                    written += 1
        return written

    def get_personality(self, entity_id: int) -> Personality:
        """
        Raises:
            NotFound: If the entity has no personality yet
        """
        return self.store.get(entity_id)

    def _now(self, now: Optional[int]) -> int:
        if now is None:
            return self.clock.now()
        if isinstance(now, bool) or not isinstance(now, int):
            raise InvalidInteraction(f"malformed timestamp: {now!r}")
        return now

    def _saturate(self, value: int, delta: int) -> int:
        # value is already within [0, cap]; never wraps.
        return min(value + delta, self.config.trait_cap)

    def _plan(
        self,
        entity_id: int,
        kind: Any,
        caller: Optional[str],
        now: int,
        current: Optional[Personality],
    ) -> Tuple[Personality, List[Event]]:
        """Validate one interaction and compute its outcome without writing anything."""
        run_guards([
            lambda: check_ownership(self.registry, entity_id, caller),
            lambda: check_cooldown(current, now, self.config.cooldown_window),
        ])
        resolved = InteractionKind.parse(kind)
        deltas = self.kind_table.resolve(resolved)

        original = current
        if original is None:
            original = Personality.baseline(entity_id, now, self.config.baseline_trait)
        base = original.clamped(self.config.trait_cap)

        increased: Dict[Trait, int] = {}
        for trait, delta in deltas:
            value = self._saturate(base.trait(trait), delta)
            if value > original.trait(trait):
                increased[trait] = value

        updated = replace(
            base.with_traits(increased),
            interaction_count=base.interaction_count + 1,
            last_interaction_at=now,
        )

        events = [interaction_registered(entity_id, resolved.value, now, caller=caller)]
        for trait, value in increased.items():
            events.append(trait_increased(entity_id, trait.value, value, now))
        events.append(personality_updated(entity_id, updated.to_dict(), now))
        return updated, events

    def _commit(
        self,
        entity_ids: Iterable[int],
        plan: Callable[[], Tuple[Any, List[Event]]],
    ) -> Tuple[Any, List[Event]]:
        """
        Run plan() and journal its events.

        Caller holds the locks of entity_ids. If another writer journaled
        one of them in the meantime, they are refreshed and plan() runs
        again, so guards always see the latest journaled personality.

        Raises:
            PersonaError: From plan()
            JournalConflict: If the journal kept moving for COMMIT_ATTEMPTS tries
            EventStoreError: If the journal cannot be written
        """
        entity_ids = sorted(set(entity_ids))
        for attempt in range(1, COMMIT_ATTEMPTS + 1):
            outcome, events = plan()
            unchanged_since = None
            if self.journal is not None:
                unchanged_since = {str(e): self._positions.get(e, -1) for e in entity_ids}
            try:
                committed = self.notifier.commit(events, unchanged_since=unchanged_since)
            except JournalConflict:
                if attempt == COMMIT_ATTEMPTS:
                    raise
                get_logger(__name__).info(
                    "Journal has newer records for %s, re-reading (attempt %d)", entity_ids, attempt
                )
                for entity_id in entity_ids:
                    self.refresh(entity_id)
                continue
            for ev in committed:
                if ev.seq is not None:
                    self._positions[int(ev.aggregate_id)] = ev.seq
            return outcome, committed
        raise JournalConflict(f"journal kept moving for {entity_ids}")

    def interact(
        self,
        entity_id: int,
        kind: Any,
        caller: Optional[str],
        now: Optional[int] = None,
    ) -> InteractionResult:
        """
        Apply one interaction.

        Raises:
            NotFound, Unauthorized, RateLimited, InvalidInteraction: request rejected
            EventStoreError: the journal could not be written; store unchanged
        """
        log = get_logger(__name__, trace_id=str(entity_id))
        label = _kind_label(kind)

        with metrics.INTERACTION_DURATION.time():
            try:
                entity_id = _check_entity_id(entity_id)
                now = self._now(now)
                with self.store.lock(entity_id):
                    updated, committed = self._commit(
                        [entity_id],
                        lambda: self._plan(entity_id, kind, caller, now, self.store.find(entity_id)),
                    )
                    self.store.put(updated)
                    self.notifier.dispatch(committed)
            except PersonaError as ex:
                metrics.INTERACTIONS_TOTAL.labels(kind=label, outcome=type(ex).__name__).inc()
                log.info("Interaction rejected (%s): %s", type(ex).__name__, ex)
                raise
            except EventStoreError as ex:
                metrics.INTERACTIONS_TOTAL.labels(kind=label, outcome="EventStoreError").inc()
                log.error("Journal append failed, interaction not applied: %s", ex)
                raise

        metrics.INTERACTIONS_TOTAL.labels(kind=label, outcome="accepted").inc()
        log.info("Interaction accepted: kind=%s count=%d", label, updated.interaction_count)
        return InteractionResult(personality=updated, events=tuple(committed))

    def batch_interact(
        self,
        entity_ids: Sequence[int],
        kinds: Sequence[Any],
        caller: Optional[str],
        now: Optional[int] = None,
        atomic: Optional[bool] = None,
    ) -> BatchResult:
        """
        Apply interactions pairwise, in input order.

        atomic=False: each pair is independent; failures are reported per
        item and earlier successes stay applied.
        atomic=True: the first failure raises and nothing is applied.
        None uses config.batch_atomic.

        Raises:
            LengthMismatch: If the sequences differ in length (nothing touched)
        """
        entity_ids = list(entity_ids)
        kinds = list(kinds)
        if len(entity_ids) != len(kinds):
            raise LengthMismatch(len(entity_ids), len(kinds))

        if atomic is None:
            atomic = self.config.batch_atomic
        if atomic:
            return self._batch_atomic(entity_ids, kinds, caller, self._now(now))

        items: List[BatchItem] = []
        for entity_id, kind in zip(entity_ids, kinds):
            try:
                result = self.interact(entity_id, kind, caller, now)
            except PersonaError as ex:
                items.append(BatchItem(entity_id=entity_id, kind=kind, error=ex))
            else:
                items.append(BatchItem(entity_id=entity_id, kind=kind, personality=result.personality))
        return BatchResult(items=tuple(items), atomic=False)

    def _stage(
        self,
        entity_ids: List[int],
        kinds: List[Any],
        caller: Optional[str],
        now: int,
    ) -> Tuple[Tuple[Dict[int, Personality], List[Tuple[int, Any, Personality]]], List[Event]]:
        staged: Dict[int, Personality] = {}
        planned: List[Tuple[int, Any, Personality]] = []
        events: List[Event] = []

        for entity_id, kind in zip(entity_ids, kinds):
            current = staged.get(entity_id) or self.store.find(entity_id)
            try:
                updated, evs = self._plan(entity_id, kind, caller, now, current)
            except PersonaError as ex:
                metrics.INTERACTIONS_TOTAL.labels(
                    kind=_kind_label(kind), outcome=type(ex).__name__
                ).inc()
                get_logger(__name__, trace_id=str(entity_id)).info(
                    "Atomic batch rejected (%s): %s", type(ex).__name__, ex
                )
                raise
            staged[entity_id] = updated
            planned.append((entity_id, kind, updated))
            events.extend(evs)
        return (staged, planned), events

    def _batch_atomic(
        self,
        entity_ids: List[int],
        kinds: List[Any],
        caller: Optional[str],
        now: int,
    ) -> BatchResult:
        for entity_id in entity_ids:
            _check_entity_id(entity_id)

        with self.store.lock_many(entity_ids):
            try:
                (staged, planned), committed = self._commit(
                    entity_ids, lambda: self._stage(entity_ids, kinds, caller, now)
                )
            except EventStoreError as ex:
                for kind in kinds:
                    metrics.INTERACTIONS_TOTAL.labels(
                        kind=_kind_label(kind), outcome="EventStoreError"
                    ).inc()
                get_logger(__name__).error(
                    "Journal append failed, atomic batch of %d not applied: %s", len(kinds), ex
                )
                raise
            for personality in staged.values():
                self.store.put(personality)
            self.notifier.dispatch(committed)

        for _, kind, _ in planned:
            metrics.INTERACTIONS_TOTAL.labels(kind=_kind_label(kind), outcome="accepted").inc()
        return BatchResult(
            items=tuple(BatchItem(entity_id=e, kind=k, personality=p) for e, k, p in planned),
            atomic=True,
        )
