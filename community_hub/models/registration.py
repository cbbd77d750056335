"""Attendance registration model."""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from .base import Base, utc_now

class EventRegistration(Base):
    """
    A non-volunteer attendee's headcount claim on an event.

    Fields:
        registration_id: Unique identifier (auto-generated)
        event_id: Event being attended
        user_id: Registered user, or None for guests
        guest_name / guest_contact / guest_secondary_contact: Guest identity
        adults_count / children_count: Headcount, never both zero
        comment: Free text (optional)
        is_on_site: Registered at the door (QR code), placeholders may be used
        created_at: When the row was inserted
    """
    __tablename__ = 'event_registrations'

    registration_id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.event_id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.user_id'), nullable=True)
    guest_name = Column(String, nullable=True)
    guest_contact = Column(String, nullable=True)
    guest_secondary_contact = Column(String, nullable=True)
    adults_count = Column(Integer, nullable=False, default=1)
    children_count = Column(Integer, nullable=False, default=0)
    comment = Column(Text, nullable=True)
    is_on_site = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    @property
    def headcount(self) -> int:
        return (self.adults_count or 0) + (self.children_count or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'registration_id': self.registration_id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'guest_name': self.guest_name,
            'guest_contact': self.guest_contact,
            'guest_secondary_contact': self.guest_secondary_contact,
            'adults_count': self.adults_count,
            'children_count': self.children_count,
            'comment': self.comment,
            'is_on_site': self.is_on_site,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
