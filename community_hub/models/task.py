"""Task and volunteer sign-up models."""

from enum import Enum
from typing import Any, Dict

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from .base import Base, utc_now

class TaskStatus(str, Enum):
    """Label shown next to a task. Nothing flips it automatically."""
    OPEN = 'Open'
    CLOSED = 'Closed'

class Task(Base):
    """
    A unit of volunteer work attached to an event.

    Fields:
        task_id: Unique identifier (auto-generated)
        event_id: Owning event
        title: Task title
        description: Free text description (optional)
        required_volunteers: Target headcount, always positive
        deadline_time: Deadline for signing up (optional)
        status: Open or Closed, set on creation
        created_at: When the row was inserted
    """
    __tablename__ = 'tasks'

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.event_id'), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    required_volunteers = Column(Integer, nullable=False)
    deadline_time = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.OPEN.value)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (stored fields only, no derived counts)."""
        return {
            'task_id': self.task_id,
            'event_id': self.event_id,
            'title': self.title,
            'description': self.description,
            'required_volunteers': self.required_volunteers,
            'deadline_time': self.deadline_time.isoformat() if self.deadline_time else None,
            'status': self.status,
        }

    def __str__(self) -> str:
        return f"Task(task_id={self.task_id}, event_id={self.event_id}, title={self.title})"

class VolunteerSignup(Base):
    """
    A volunteer's claim on one task.

    Exactly one identity form is stored: user_id for registered users, or
    the guest_* columns for guests. Rows are never updated.
    """
    __tablename__ = 'volunteer_signups'

    signup_id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey('tasks.task_id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.user_id'), nullable=True)
    guest_name = Column(String, nullable=True)
    guest_whatsapp = Column(String, nullable=True)
    guest_uk_phone = Column(String, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signup_id': self.signup_id,
            'task_id': self.task_id,
            'user_id': self.user_id,
            'guest_name': self.guest_name,
            'guest_whatsapp': self.guest_whatsapp,
            'guest_uk_phone': self.guest_uk_phone,
            'comment': self.comment,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
