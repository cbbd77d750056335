"""FastAPI dependencies: the acting user and the engine services.

Authentication happens upstream. The gateway forwards the authenticated
user as X-Actor-Id and X-Actor-Role headers; nothing here checks tokens.
Tests swap the database and settings through app.dependency_overrides.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..config.engine import EngineSettings, get_settings
from ..db import Database, db
from ..models import Actor
from ..models.user import parse_role
from ..services import (
    AttendanceRegistry,
    CapacityAggregator,
    EventRegistry,
    RecurrenceGenerator,
    Reports,
    TaskRegistry,
)

logger = logging.getLogger(__name__)

def get_database() -> Database:
    return db

def get_engine_settings() -> EngineSettings:
    return get_settings()

def get_optional_actor(
    x_actor_id: Optional[int] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Optional[Actor]:
    """The authenticated caller, or None for anonymous (public) requests."""
    if x_actor_id is None and x_actor_role is None:
        return None
    if x_actor_id is None or x_actor_role is None:
        raise HTTPException(status_code=401, detail="Both X-Actor-Id and X-Actor-Role are required")
    try:
        role = parse_role(x_actor_role)
    except ValueError:
        logger.warning(f"Rejected unknown role '{x_actor_role}' for actor {x_actor_id}")
        raise HTTPException(status_code=401, detail="Unknown role")
    return Actor(actor_id=x_actor_id, role=role)

def get_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    """The authenticated caller; anonymous requests are rejected."""
    if actor is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return actor

def get_event_registry(
    database: Database = Depends(get_database),
    settings: EngineSettings = Depends(get_engine_settings),
) -> EventRegistry:
    return EventRegistry(database, settings)

def get_task_registry(
    database: Database = Depends(get_database),
    settings: EngineSettings = Depends(get_engine_settings),
) -> TaskRegistry:
    return TaskRegistry(database, settings)

def get_capacity_aggregator(database: Database = Depends(get_database)) -> CapacityAggregator:
    return CapacityAggregator(database)

def get_attendance_registry(
    database: Database = Depends(get_database),
    settings: EngineSettings = Depends(get_engine_settings),
) -> AttendanceRegistry:
    return AttendanceRegistry(database, settings)

def get_recurrence_generator(
    database: Database = Depends(get_database),
    settings: EngineSettings = Depends(get_engine_settings),
) -> RecurrenceGenerator:
    return RecurrenceGenerator(database, settings)

def get_reports(
    database: Database = Depends(get_database),
    settings: EngineSettings = Depends(get_engine_settings),
) -> Reports:
    return Reports(database, settings)
