"""Pytest configuration and fixtures."""

import os
import tempfile

# Point settings at a throwaway data dir before the app is imported.
TEST_DATA_DIR = tempfile.mkdtemp(prefix="channelcast_test_")
os.environ["DATA_DIR"] = TEST_DATA_DIR
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["SUPABASE_DB_URL"] = ""
os.environ["ADMIN_USER"] = "admin"
os.environ["ADMIN_PASS"] = "secret"
os.environ["PERSIST_SCHEDULE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.api.endpoints import get_scheduler, get_storage
from app.main import app
from app.services.scheduler_service import SchedulerService
from app.services.snapshot_store import SnapshotStore
from app.services.timeline import Timeline

ADMIN_AUTH = ("admin", "secret")


@pytest.fixture
def t0():
    """10:00 UTC on an arbitrary broadcast day."""
    return datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def timeline():
    return Timeline()


@pytest.fixture
def scheduler(timeline):
    return SchedulerService(timeline=timeline)


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'schedule.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return SnapshotStore(session_factory=sessionmaker(bind=db_engine), bind=db_engine)


@pytest.fixture
def client(scheduler):
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def override_storage():
    """Installs a replacement StorageService for the duration of a test."""
    def install(storage):
        app.dependency_overrides[get_storage] = lambda: storage
    yield install
    app.dependency_overrides.pop(get_storage, None)
