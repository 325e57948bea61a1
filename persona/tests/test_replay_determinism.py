"""
Tests for replay determinism.

Critical: Replay must rebuild exactly the personalities the engine holds.
"""

import os
import tempfile

import pytest

from persona.config import EngineConfig
from persona.core.errors import InvalidTransitionError
from persona.core.events import Event
from persona.guard import InMemoryRegistry
from persona.log import FileEventStore, MemoryEventStore
from persona.notify import Notifier
from persona.processor import PersonalityEngine
from persona.replay import build_reducer, compute_state_hash, replay, restore_store

T = 1_700_000_000
HOUR = 3600
OWNER = "0xA"


def _populate(journal):
    registry = InMemoryRegistry({1: OWNER, 2: OWNER})
    engine = PersonalityEngine(registry, notifier=Notifier(journal))
    for n in range(5):
        engine.interact(1, "gentle", OWNER, now=T + n * HOUR)
        engine.interact(2, "playful" if n % 2 else "gentle", OWNER, now=T + n * HOUR)
    return engine


def test_replay_matches_live_engine():
    journal = MemoryEventStore()
    engine = _populate(journal)

    restored = restore_store(journal)

    assert restored.snapshot() == engine.store.snapshot()


def test_replay_determinism_100_runs():
    journal = MemoryEventStore()
    _populate(journal)

    hashes = {compute_state_hash(replay(journal).state) for _ in range(100)}

    assert len(hashes) == 1


def test_replay_partial():
    journal = MemoryEventStore()
    _populate(journal)

    # First interaction on entity 1 is seq 0..3
    result = replay(journal, to_seq=3)

    assert result.applied == 4
    assert result.state.get_agg("1")["interaction_count"] == 1
    assert result.state.get_agg("2") is None


def test_replay_aggregate_filter():
    journal = MemoryEventStore()
    _populate(journal)

    result = replay(journal, aggregate_id="2")

    assert result.state.get_agg("1") is None
    assert result.state.get_agg("2")["interaction_count"] == 5


def test_replay_empty_log():
    result = replay(MemoryEventStore())

    assert result.applied == 0
    assert result.state.version == 0
    assert result.state.aggregates == {}


def test_unknown_event_type_rejected():
    journal = MemoryEventStore()
    journal.append(Event(type="PersonalityDeleted", aggregate_id="1", ts=T))

    with pytest.raises(InvalidTransitionError):
        replay(journal, build_reducer())


def test_engine_resumes_from_file_journal():
    with tempfile.TemporaryDirectory() as tmpdir:
        log_path = os.path.join(tmpdir, "journal.log")
        registry = InMemoryRegistry({7: OWNER})

        first = PersonalityEngine.from_journal(registry, FileEventStore(log_path))
        first.interact(7, "gentle", OWNER, now=T)

        second = PersonalityEngine.from_journal(
            registry, FileEventStore(log_path), config=EngineConfig()
        )
        assert second.get_personality(7) == first.get_personality(7)

        p = second.interact(7, "playful", OWNER, now=T + HOUR).personality
        assert p.interaction_count == 2
        assert p.bonding_level == 11
        assert p.playfulness == 11
        assert [e.seq for e in FileEventStore(log_path).read()] == list(range(8))
