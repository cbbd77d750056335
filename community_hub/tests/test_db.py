from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from community_hub.db import (
    DatabaseConfig,
    SessionError,
    TransientStoreError,
    with_retry,
)
from community_hub.errors import NotFound, StoreError
from community_hub.models import Event, Task

def test_explicit_url_wins():
    config = DatabaseConfig(url="sqlite://")
    assert config.is_sqlite
    assert config.get_engine_args()["connect_args"] == {"check_same_thread": False}

def test_postgres_gets_pool_settings():
    config = DatabaseConfig(url="postgresql://hub@localhost/hub", pool_size=5)
    args = config.get_engine_args()
    assert not config.is_sqlite
    assert args["pool_size"] == 5
    assert args["pool_pre_ping"] is True

def test_session_commits_on_success(database):
    with database.session() as session:
        session.add(Event(title="Picnic", category="Social", start_datetime=datetime(2025, 5, 1, 12, 0)))
    with database.session() as session:
        assert session.query(Event).count() == 1

def test_engine_errors_roll_back_unchanged(database):
    with pytest.raises(NotFound):
        with database.session() as session:
            session.add(Event(title="Picnic", category="Social", start_datetime=datetime(2025, 5, 1, 12, 0)))
            session.flush()
            raise NotFound('Event', 1)
    with database.session() as session:
        assert session.query(Event).count() == 0

def test_foreign_keys_are_enforced(database):
    with pytest.raises(SessionError) as excinfo:
        with database.session() as session:
            session.add(Task(event_id=999, title="Orphan", required_volunteers=1, status="Open"))
    assert isinstance(excinfo.value, StoreError)

def test_operational_errors_are_transient(database):
    with pytest.raises(TransientStoreError):
        with database.session():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

def test_with_retry_retries_transient_errors_only():
    calls = []

    @with_retry(max_attempts=3, delay=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise TransientStoreError("try again")
        return "done"

    assert flaky() == "done"
    assert len(calls) == 3

    @with_retry(max_attempts=3, delay=0)
    def broken():
        calls.append(1)
        raise NotFound('Task', 1)

    calls.clear()
    with pytest.raises(NotFound):
        broken()
    assert len(calls) == 1
