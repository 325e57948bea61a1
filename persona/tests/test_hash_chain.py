"""
Tests for journal hash chain integrity.

Critical: Hash chain must detect any tampering.
"""

import json
import os
import tempfile

from persona.core.events import Event
from persona.log import FileEventStore, MemoryEventStore, verify_chain
from persona.log.integrity import ZERO_HASH, hash_event


def _ev(ts, aggregate_id="7", **payload):
    return Event(type="TraitIncreased", aggregate_id=aggregate_id, ts=ts, payload=payload)


def test_genesis_event_has_zero_hash():
    with tempfile.TemporaryDirectory() as tmpdir:
        log_path = os.path.join(tmpdir, "journal.log")
        store = FileEventStore(log_path)

        store.append(_ev(1))

        with open(log_path, "r") as f:
            rec = json.loads(f.readline())

        assert rec["prev_hash"] == ZERO_HASH
        assert rec["event"]["seq"] == 0


def test_append_many_links_and_numbers_records():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = FileEventStore(os.path.join(tmpdir, "journal.log"))
        store.append(_ev(0))

        results = store.append_many([_ev(i, value=i) for i in range(1, 5)])

        assert [r.seq for r in results] == [1, 2, 3, 4]
        records = list(store.records())
        for prev, cur in zip(records, records[1:]):
            assert cur["prev_hash"] == prev["event_hash"]
        assert records[-1]["event_hash"] == results[-1].event_hash
        assert verify_chain(records).valid


def test_newer_record_for_watched_entity_conflicts_without_writing():
    with tempfile.TemporaryDirectory() as tmpdir:
        log_path = os.path.join(tmpdir, "journal.log")
        a = FileEventStore(log_path)
        b = FileEventStore(log_path)
        a.append(_ev(1, aggregate_id="7"))

        results = b.append_many([_ev(2, aggregate_id="7")], unchanged_since={"7": -1})

        assert all(r.conflict and not r.committed for r in results)
        assert results[0].observed_prev_hash == next(a.records())["event_hash"]
        assert len(list(a.records())) == 1

        results = b.append_many([_ev(2, aggregate_id="7")], unchanged_since={"7": 0})

        assert results[0].committed
        assert results[0].seq == 1


def test_records_for_other_entities_do_not_conflict():
    store = MemoryEventStore()
    store.append(_ev(1, aggregate_id="8"))
    store.append(_ev(2, aggregate_id="7"))
    store.append(_ev(3, aggregate_id="8"))

    results = store.append_many([_ev(4, aggregate_id="7")], unchanged_since={"7": 1})
    assert results[0].committed
    assert results[0].seq == 3

    stale = store.append_many([_ev(5, aggregate_id="8")], unchanged_since={"7": 3, "8": 0})
    assert stale[0].conflict
    assert len(store) == 4


def test_two_writers_share_one_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        log_path = os.path.join(tmpdir, "journal.log")
        a = FileEventStore(log_path)
        b = FileEventStore(log_path)

        for i in range(10):
            a.append(_ev(i, aggregate_id="1"))
            b.append_many([_ev(i, aggregate_id="2"), _ev(i, aggregate_id="2")])

        records = list(a.records())
        assert [r["event"]["seq"] for r in records] == list(range(30))
        assert verify_chain(records).valid


def test_read_filters_by_entity_and_seq():
    store = MemoryEventStore()
    for i in range(6):
        store.append(_ev(i, aggregate_id=str(i % 2)))

    assert [e.seq for e in store.read(aggregate_id="1")] == [1, 3, 5]
    assert [e.seq for e in store.read(from_seq=4)] == [4, 5]


def test_hash_determinism_and_key_order():
    e1 = Event(type="T", aggregate_id="7", seq=0, ts=1, payload={"a": 1, "b": 2})
    e2 = Event(type="T", aggregate_id="7", seq=0, ts=1, payload={"b": 2, "a": 1})

    assert hash_event(ZERO_HASH, e1) == hash_event(ZERO_HASH, e2)
    assert len(hash_event(ZERO_HASH, e1)) == 64


def test_verify_detects_tampered_payload():
    store = MemoryEventStore()
    for i in range(3):
        store.append(_ev(i, value=10 + i))

    records = [json.loads(json.dumps(r)) for r in store.records()]
    records[1]["event"]["payload"]["value"] = 100

    report = verify_chain(records)

    assert not report.valid
    assert report.checked == 3
    assert any("seq 1" in err for err in report.errors)


def test_verify_detects_removed_record():
    store = MemoryEventStore()
    for i in range(4):
        store.append(_ev(i))

    records = list(store.records())
    del records[2]

    report = verify_chain(records)

    assert not report.valid
    assert any("expected seq 2" in err for err in report.errors)


def test_verify_empty_journal_is_valid():
    report = verify_chain([])

    assert report.valid
    assert report.checked == 0
