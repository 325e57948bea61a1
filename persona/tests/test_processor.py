"""
Tests for the interaction processor.

Covers the documented scenarios plus the clamping, counting and
no-partial-mutation properties.
"""

import pytest

from persona.config import EngineConfig
from persona.core.errors import (
    EventStoreError,
    InvalidInteraction,
    NotFound,
    RateLimited,
    Unauthorized,
)
from persona.core.events import INTERACTION_REGISTERED, PERSONALITY_UPDATED, TRAIT_INCREASED
from persona.core.kinds import InteractionKind
from persona.core.state import Personality
from persona.guard import InMemoryRegistry
from persona.log import MemoryEventStore
from persona.notify import Notifier
from persona.processor import PersonalityEngine
from persona.replay import restore_store

T = 1_700_000_000
HOUR = 3600
OWNER = "0xA"


def _engine(config=None, journal=None, owners=None):
    registry = InMemoryRegistry(owners or {7: OWNER})
    engine = PersonalityEngine(registry, config=config, notifier=Notifier(journal))
    seen = []
    engine.notifier.subscribe(seen.append)
    return engine, seen


def test_entity_seven_scenario():
    engine, _ = _engine()

    first = engine.interact(7, InteractionKind.GENTLE, OWNER, now=T).personality
    assert first.bonding_level == 11
    assert first.emotional_iq == 11
    assert first.interaction_count == 1

    with pytest.raises(RateLimited) as exc:
        engine.interact(7, "Gentle", OWNER, now=T + 30 * 60)
    assert exc.value.next_valid_at == T + HOUR
    assert engine.get_personality(7) == first

    third = engine.interact(7, "Playful", OWNER, now=T + HOUR).personality
    assert third.playfulness == 11
    assert third.attentiveness == 11
    assert third.interaction_count == 2
    assert third.bonding_level == 11
    assert third.emotional_iq == 11
    assert third.last_interaction_at == T + HOUR


def test_auto_initializes_from_baseline():
    engine, _ = _engine(config=EngineConfig(baseline_trait=25))

    with pytest.raises(NotFound):
        engine.get_personality(7)

    p = engine.interact(7, "playful", OWNER, now=T).personality

    assert p.bonding_level == 25
    assert p.playfulness == 26


def test_notifications_in_order():
    engine, seen = _engine()

    result = engine.interact(7, "gentle", OWNER, now=T)

    assert [e.type for e in seen] == [
        INTERACTION_REGISTERED,
        TRAIT_INCREASED,
        TRAIT_INCREASED,
        PERSONALITY_UPDATED,
    ]
    assert seen[0].payload == {"entity_id": 7, "kind": "gentle"}
    assert seen[1].payload == {"entity_id": 7, "trait": "bonding_level", "value": 11}
    assert seen[2].payload == {"entity_id": 7, "trait": "emotional_iq", "value": 11}
    assert seen[3].payload["personality"] == result.personality.to_dict()
    assert list(result.events) == seen


def test_saturation_emits_no_trait_increased_for_capped_trait():
    engine, seen = _engine()
    engine.store.put(Personality(7, 100, 50, 10, 10, interaction_count=4, last_interaction_at=T - HOUR))

    p = engine.interact(7, "gentle", OWNER, now=T).personality

    assert p.bonding_level == 100
    assert p.emotional_iq == 51
    increased = [e.payload["trait"] for e in seen if e.type == TRAIT_INCREASED]
    assert increased == ["emotional_iq"]


def test_value_above_lowered_cap_is_clamped_on_next_interaction():
    engine, seen = _engine(config=EngineConfig(trait_cap=100))
    engine.store.put(Personality(7, 150, 50, 10, 10, interaction_count=1, last_interaction_at=T - HOUR))

    p = engine.interact(7, "gentle", OWNER, now=T).personality

    assert p.bonding_level == 100
    assert p.emotional_iq == 51
    assert p.interaction_count == 2
    assert engine.get_personality(7) == p
    increased = [e.payload["trait"] for e in seen if e.type == TRAIT_INCREASED]
    assert increased == ["emotional_iq"]
    assert seen[-1].payload["personality"]["bonding_level"] == 100


def test_restoring_under_lower_cap_clamps_traits():
    journal = MemoryEventStore()
    engine, _ = _engine(config=EngineConfig(cooldown_window=0, trait_cap=200), journal=journal)
    for i in range(150):
        engine.interact(7, "gentle", OWNER, now=T + i)
    assert engine.get_personality(7).bonding_level == 160

    lowered = PersonalityEngine.from_journal(
        InMemoryRegistry({7: OWNER}), journal, config=EngineConfig(trait_cap=100)
    )

    restored = lowered.get_personality(7)
    assert restored.bonding_level == 100
    assert restored.emotional_iq == 100
    assert restored.interaction_count == 150
    assert restore_store(journal, trait_cap=100).get(7) == restored


def test_traits_never_exceed_cap():
    config = EngineConfig(cooldown_window=0, trait_cap=15)
    engine, _ = _engine(config=config)

    for i in range(20):
        p = engine.interact(7, "gentle" if i % 2 else "playful", OWNER, now=T + i).personality
        assert all(0 <= v <= 15 for v in p.traits().values())

    final = engine.get_personality(7)
    assert final.traits() == {
        "bonding_level": 15,
        "emotional_iq": 15,
        "playfulness": 15,
        "attentiveness": 15,
    }
    assert final.interaction_count == 20


def test_rejections_do_not_count():
    engine, _ = _engine()
    engine.interact(7, "gentle", OWNER, now=T)

    for attempt in (
        lambda: engine.interact(7, "gentle", OWNER, now=T + 1),
        lambda: engine.interact(7, "gentle", "0xB", now=T + HOUR),
        lambda: engine.interact(7, "tickle", OWNER, now=T + HOUR),
    ):
        with pytest.raises((RateLimited, Unauthorized, InvalidInteraction)):
            attempt()

    assert engine.get_personality(7).interaction_count == 1


def test_non_owner_rejected_without_side_effects():
    journal = MemoryEventStore()
    engine, seen = _engine(journal=journal)

    with pytest.raises(Unauthorized):
        engine.interact(7, "gentle", "0xB", now=T)

    assert 7 not in engine.store
    assert seen == []
    assert len(journal) == 0


def test_non_owner_sees_unauthorized_even_while_cooling_down():
    engine, seen = _engine()
    engine.interact(7, "gentle", OWNER, now=T)
    before = engine.get_personality(7)
    seen.clear()

    with pytest.raises(Unauthorized):
        engine.interact(7, "gentle", "0xB", now=T + 1)

    assert engine.get_personality(7) == before
    assert seen == []


def test_unregistered_entity_is_not_found():
    engine, _ = _engine()

    with pytest.raises(NotFound):
        engine.interact(8, "gentle", OWNER, now=T)
    assert 8 not in engine.store


def test_unknown_and_unmapped_kinds_rejected():
    engine, seen = _engine()

    with pytest.raises(InvalidInteraction):
        engine.interact(7, "tickle", OWNER, now=T)
    with pytest.raises(InvalidInteraction):
        engine.interact(7, InteractionKind.LONG_PRESS, OWNER, now=T)

    assert 7 not in engine.store
    assert seen == []


def test_configured_long_press():
    config = EngineConfig(kind_overrides={"long_press": {"bonding_level": 3}})
    engine, _ = _engine(config=config)

    p = engine.interact(7, "LongPress", OWNER, now=T).personality

    assert p.bonding_level == 13
    assert p.emotional_iq == 10


@pytest.mark.parametrize("bad_id", [-1, "7", 7.0, True, None])
def test_malformed_entity_id(bad_id):
    engine, _ = _engine()

    with pytest.raises(InvalidInteraction):
        engine.interact(bad_id, "gentle", OWNER, now=T)


def test_malformed_timestamp():
    engine, _ = _engine()

    with pytest.raises(InvalidInteraction):
        engine.interact(7, "gentle", OWNER, now="soon")


def test_clock_used_when_now_omitted():
    from persona.core.clock import DeterministicClock

    registry = InMemoryRegistry({7: OWNER})
    engine = PersonalityEngine(registry, clock=DeterministicClock(T))

    p = engine.interact(7, "gentle", OWNER).personality

    assert p.last_interaction_at == T


def test_get_personality_is_idempotent():
    engine, _ = _engine()
    engine.interact(7, "gentle", OWNER, now=T)

    assert engine.get_personality(7) == engine.get_personality(7)


def test_journal_failure_leaves_store_untouched():
    class BrokenStore(MemoryEventStore):
        def append_many(self, events, unchanged_since=None):
            raise EventStoreError("disk full")

    engine, seen = _engine(journal=BrokenStore())

    with pytest.raises(EventStoreError):
        engine.interact(7, "gentle", OWNER, now=T)

    assert 7 not in engine.store
    assert seen == []


def test_journaled_events_get_sequence_numbers():
    journal = MemoryEventStore()
    engine, seen = _engine(journal=journal)

    engine.interact(7, "gentle", OWNER, now=T)
    engine.interact(7, "playful", OWNER, now=T + HOUR)

    assert [e.seq for e in seen] == list(range(8))
    assert len(journal) == 8


def test_failing_subscriber_does_not_block_others():
    engine, seen = _engine()

    def broken(event):
        raise RuntimeError("observer down")

    engine.notifier.unsubscribe(seen.append)
    engine.notifier.subscribe(broken)
    engine.notifier.subscribe(seen.append)

    engine.interact(7, "gentle", OWNER, now=T)

    assert len(seen) == 4
    assert engine.get_personality(7).interaction_count == 1
