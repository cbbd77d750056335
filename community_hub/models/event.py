"""Event model definition."""

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from .base import Base, utc_now

class EventCategory(str, Enum):
    """Categories an event can be filed under."""
    EDUCATION = 'Education'
    CHARITY = 'Charity'
    EXCURSION = 'Excursion'
    SOCIAL = 'Social'

DEFAULT_CATEGORY = EventCategory.SOCIAL

class Event(Base):
    """
    A scheduled community occurrence.

    Fields:
        event_id: Unique identifier (auto-generated, immutable)
        title: Event title
        category: One of EventCategory's values
        start_datetime: When the event starts (local wall-clock time)
        end_datetime: When the event ends (optional, never before start)
        location_name: Where the event takes place
        description: Free text description
        organizer_id: User who created the event
        is_published: Only published events are shown on the public calendar
        created_at: When the row was inserted
    """
    __tablename__ = 'events'

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, default=DEFAULT_CATEGORY.value)
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=True)
    location_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    organizer_id = Column(Integer, ForeignKey('users.user_id'), nullable=True, index=True)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def to_dict(self, organizer_name: Optional[str] = None) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            'event_id': self.event_id,
            'title': self.title,
            'category': self.category,
            'start_datetime': self.start_datetime.isoformat() if self.start_datetime else None,
            'end_datetime': self.end_datetime.isoformat() if self.end_datetime else None,
            'location_name': self.location_name,
            'description': self.description,
            'organizer_id': self.organizer_id,
            'is_published': self.is_published,
        }
        if organizer_name is not None:
            data['organizer_name'] = organizer_name
        return data

    def __str__(self) -> str:
        return f"Event(event_id={self.event_id}, title={self.title}, start={self.start_datetime})"
