"""Scheduling engine services.

Each registry takes an optional Database and EngineSettings; without them it
uses the global database and the settings read from the environment.
"""

from .attendance import AttendanceRegistry
from .capacity import CapacityAggregator, TaskCapacity
from .events import EventRegistry
from .identity import (
    ON_SITE_CONTACT,
    ON_SITE_GUEST_NAME,
    Guest,
    Identity,
    Registered,
    identity_from_fields,
    reconcile,
)
from .recurrence import (
    IntervalUnit,
    IterationOutcome,
    OutcomeStatus,
    RecurrenceGenerator,
    RecurrenceResult,
)
from .reports import Reports
from .tasks import TaskRegistry, TaskView

__all__ = [
    'AttendanceRegistry',
    'CapacityAggregator',
    'TaskCapacity',
    'EventRegistry',
    'ON_SITE_CONTACT',
    'ON_SITE_GUEST_NAME',
    'Guest',
    'Identity',
    'Registered',
    'identity_from_fields',
    'reconcile',
    'IntervalUnit',
    'IterationOutcome',
    'OutcomeStatus',
    'RecurrenceGenerator',
    'RecurrenceResult',
    'Reports',
    'TaskRegistry',
    'TaskView',
]
