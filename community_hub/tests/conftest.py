"""Shared fixtures: an in-memory store seeded with one user per role."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from community_hub.api.app import create_application
from community_hub.api.dependencies import get_database, get_engine_settings
from community_hub.config.engine import CapacityPolicy, EngineSettings, OwnershipPolicy
from community_hub.db import Database, DatabaseConfig
from community_hub.models import Actor, Role, User
from community_hub.services import (
    AttendanceRegistry,
    CapacityAggregator,
    EventRegistry,
    RecurrenceGenerator,
    Reports,
    TaskRegistry,
)

ADMIN_ID = 1
ORGANIZER_ID = 2
OTHER_ORGANIZER_ID = 3
MEMBER_ID = 4

@pytest.fixture
def database():
    database = Database(DatabaseConfig(url="sqlite://"))
    database.init_db()
    with database.session() as session:
        session.add_all([
            User(user_id=ADMIN_ID, first_name="Amina", last_name="Admin", email="admin@example.org",
                 role=Role.ADMIN.value, whatsapp="+447700900001"),
            User(user_id=ORGANIZER_ID, first_name="Omar", last_name="Organizer", email="omar@example.org",
                 role=Role.ORGANIZER.value, whatsapp="+447700900002"),
            User(user_id=OTHER_ORGANIZER_ID, first_name="Olga", email="olga@example.org",
                 role=Role.ORGANIZER.value),
            User(user_id=MEMBER_ID, first_name="Maya", last_name="Member", email="maya@example.org",
                 role=Role.USER.value, whatsapp="+447700900004", uk_phone="07700900004"),
        ])
    yield database
    database.dispose()

@pytest.fixture
def settings():
    return EngineSettings()

@pytest.fixture
def admin():
    return Actor(actor_id=ADMIN_ID, role=Role.ADMIN)

@pytest.fixture
def organizer():
    return Actor(actor_id=ORGANIZER_ID, role=Role.ORGANIZER)

@pytest.fixture
def other_organizer():
    return Actor(actor_id=OTHER_ORGANIZER_ID, role=Role.ORGANIZER)

@pytest.fixture
def member():
    return Actor(actor_id=MEMBER_ID, role=Role.USER)

@pytest.fixture
def events(database, settings):
    return EventRegistry(database, settings)

@pytest.fixture
def tasks(database, settings):
    return TaskRegistry(database, settings)

@pytest.fixture
def enforced_tasks(database):
    return TaskRegistry(database, EngineSettings(capacity_policy=CapacityPolicy.ENFORCED))

@pytest.fixture
def capacity(database):
    return CapacityAggregator(database)

@pytest.fixture
def attendance(database, settings):
    return AttendanceRegistry(database, settings)

@pytest.fixture
def generator(database, settings):
    return RecurrenceGenerator(database, settings)

@pytest.fixture
def reports(database, settings):
    return Reports(database, settings)

@pytest.fixture
def any_organizer_settings():
    return EngineSettings(ownership_policy=OwnershipPolicy.ANY_ORGANIZER)

@pytest.fixture
def event(events, organizer):
    """A published weekly meetup owned by the organizer."""
    return events.create(
        organizer,
        title="Monday Meetup",
        category="Social",
        start_datetime=datetime(2025, 1, 6, 18, 0),
        end_datetime=datetime(2025, 1, 6, 20, 0),
        location_name="Community Hall",
        description="Tea and conversation",
    )

@pytest.fixture
def app(database, settings):
    app = create_application()
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_engine_settings] = lambda: settings
    return app

@pytest.fixture
def client(app):
    return TestClient(app)

def actor_headers(actor):
    return {"X-Actor-Id": str(actor.actor_id), "X-Actor-Role": actor.role.value}
