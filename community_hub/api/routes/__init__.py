"""Routes package."""

from . import attendance, events, health, tasks

__all__ = ['attendance', 'events', 'health', 'tasks']
