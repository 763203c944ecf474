"""Tests for the database-backed schedule snapshot."""

from datetime import timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import PersistenceError
from app.services.scheduler_service import SchedulerService
from app.services.snapshot_store import SnapshotStore
from app.services.timeline import Timeline
from database.models import Base


def test_append_then_load_round_trip(store, timeline, t0):
    first = timeline.insert_resolving_conflicts("A", "https://cdn.example.com/a.mp4", t0, 3600)
    second = timeline.insert_resolving_conflicts("B", "https://cdn.example.com/b.mp4", t0, 600)
    store.append(second)
    store.append(first)

    loaded = store.load()

    assert [item.id for item in loaded] == [first.id, second.id]
    assert loaded[0].start == t0
    assert loaded[0].start.tzinfo is not None
    assert loaded[1].start == t0 + timedelta(hours=1)
    assert loaded[1].duration == 600
    assert loaded[1].media_ref == "https://cdn.example.com/b.mp4"


def test_empty_store_loads_nothing(store):
    assert store.load() == []


def test_save_replaces_previous_snapshot(store, timeline, t0):
    stale = timeline.insert_resolving_conflicts("Stale", "s.mp4", t0, 60)
    store.append(stale)

    fresh_timeline = Timeline()
    fresh = fresh_timeline.insert_resolving_conflicts("Fresh", "f.mp4", t0 + timedelta(days=1), 60)
    store.save(fresh_timeline.export())

    assert [item.id for item in store.load()] == [fresh.id]


def test_duplicate_id_raises_persistence_error(store, timeline, t0):
    item = timeline.insert_resolving_conflicts("A", "a.mp4", t0, 60)
    store.append(item)

    with pytest.raises(PersistenceError):
        store.append(item)


def test_unreadable_store_starts_empty(store, db_engine):
    Base.metadata.drop_all(bind=db_engine)

    assert store.load() == []


def test_unreachable_database_does_not_block_construction(tmp_path, t0):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'schedule.db'}")
    store = SnapshotStore(session_factory=sessionmaker(bind=engine), bind=engine)

    assert store.load() == []
    with pytest.raises(PersistenceError):
        store.append(Timeline().insert_resolving_conflicts("A", "a.mp4", t0, 60))
    engine.dispose()


def test_scheduler_restores_from_store(store, t0):
    writer = SchedulerService(timeline=Timeline(), store=store)
    writer.propose("A", "a.mp4", t0, 3600)
    writer.propose("B", "b.mp4", t0 + timedelta(minutes=10), 600)

    reader = SchedulerService(timeline=Timeline(), store=store)
    assert reader.restore() == 2

    schedule = reader.schedule()
    assert [item.title for item in schedule] == ["A", "B"]
    assert schedule[1].start == t0 + timedelta(hours=1)
    assert schedule[1].start.tzinfo == timezone.utc

    # Restored items still push new proposals forward.
    placed = reader.propose("C", "c.mp4", t0, 60)
    assert placed.start == t0 + timedelta(hours=1, minutes=10)
