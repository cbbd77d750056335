"""Attendance registry: headcount registrations for events.

Attendance has no ceiling. Unlike tasks, events carry no maximum number of
attendees, and registrations are never updated or cancelled; they go away
only when their event is deleted.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from ..config.engine import EngineSettings, get_settings
from ..db import Database, db, with_retry
from ..errors import Forbidden, NotFound, ValidationError
from ..models import Actor, Event, EventRegistration
from .access import may_see_contacts, require_organizer
from .identity import Identity, reconcile

logger = logging.getLogger(__name__)

def _validate_counts(adults: Any, children: Any) -> None:
    for label, value in (('adults', adults), ('children', children)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"{label} must be a non-negative integer")
    if adults + children == 0:
        raise ValidationError("At least one adult or child must be registered")

class AttendanceRegistry:
    """Records who is coming to an event, independent of volunteering."""

    def __init__(self, database: Optional[Database] = None, settings: Optional[EngineSettings] = None):
        self.db = database or db
        self.settings = settings or get_settings()

    def register(
        self,
        event_id: int,
        identity: Identity,
        adults: int = 1,
        children: int = 0,
        comment: Optional[str] = None,
        on_site: bool = False,
    ) -> EventRegistration:
        """
        Register attendance for an event.

        Args:
            event_id: Event being attended
            identity: Guest or Registered participant
            adults: Number of adults, >= 0
            children: Number of children, >= 0
            comment: Free text (optional)
            on_site: Came through the on-site QR flow; a missing guest name or
                     contact is replaced by a placeholder instead of rejected

        Raises:
            ValidationError: If the counts are invalid, the identity cannot be
                             resolved, or the event does not exist
        """
        _validate_counts(adults, children)

        with self.db.session() as session:
            if session.get(Event, event_id) is None:
                raise ValidationError(f"Event {event_id} does not exist")

            resolved = reconcile(session, identity, on_site=on_site)
            registration = EventRegistration(
                event_id=event_id,
                adults_count=adults,
                children_count=children,
                comment=(comment or '').strip() or None,
                is_on_site=bool(on_site),
                **resolved.registration_columns()
            )
            session.add(registration)
            session.flush()
            logger.info(
                f"Registration {registration.registration_id} for event {event_id}: "
                f"{adults} adults, {children} children{' (on-site)' if on_site else ''}"
            )
            return registration

    @with_retry()
    def list_for_event(self, actor: Actor, event_id: int) -> List[EventRegistration]:
        """
        All registrations of an event, most recent first.

        Raises:
            Forbidden: If the actor is not an organizer, or guest contacts are
                       restricted and the actor does not own the event
            NotFound: If the event does not exist
        """
        require_organizer(actor, 'list registrations')
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)
            if not may_see_contacts(actor, event, self.settings.expose_guest_contacts):
                logger.warning(f"Denied registration list of event {event_id} for actor {actor.actor_id}")
                raise Forbidden(f"Registrations of event {event_id} are visible to its organizer only")
            return (
                session.query(EventRegistration)
                .filter(EventRegistration.event_id == event_id)
                .order_by(
                    EventRegistration.created_at.desc(),
                    EventRegistration.registration_id.desc(),
                )
                .all()
            )

    @with_retry()
    def headcount(self, event_id: int) -> Dict[str, int]:
        """
        Aggregate attendance of an event. Safe to expose publicly: no names.

        Raises:
            NotFound: If the event does not exist
        """
        with self.db.session() as session:
            if session.get(Event, event_id) is None:
                raise NotFound('Event', event_id)
            registrations, adults, children = (
                session.query(
                    func.count(EventRegistration.registration_id),
                    func.coalesce(func.sum(EventRegistration.adults_count), 0),
                    func.coalesce(func.sum(EventRegistration.children_count), 0),
                )
                .filter(EventRegistration.event_id == event_id)
                .one()
            )
            return {
                'event_id': event_id,
                'registrations': int(registrations),
                'adults': int(adults),
                'children': int(children),
                'total': int(adults) + int(children),
            }
