"""Models package initialization."""

from .base import Base
from .user import Actor, Role, User
from .event import Event, EventCategory
from .task import Task, TaskStatus, VolunteerSignup
from .registration import EventRegistration
from .recurrence import RecurrenceOccurrence, RecurrenceRun

__all__ = [
    'Base',
    'Actor',
    'Role',
    'User',
    'Event',
    'EventCategory',
    'Task',
    'TaskStatus',
    'VolunteerSignup',
    'EventRegistration',
    'RecurrenceRun',
    'RecurrenceOccurrence',
]
