"""Organizer reports: global statistics and the per-event roster."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import distinct, func

from ..config.engine import EngineSettings, get_settings
from ..db import Database, db, with_retry
from ..errors import NotFound
from ..models import Actor, Event, EventRegistration, Task, User, VolunteerSignup
from ..models.base import local_now
from .access import may_see_contacts, require_organizer

logger = logging.getLogger(__name__)

class Reports:
    """Read-only summaries for the admin console."""

    def __init__(self, database: Optional[Database] = None, settings: Optional[EngineSettings] = None):
        self.db = database or db
        self.settings = settings or get_settings()

    @with_retry()
    def global_stats(self, actor: Actor, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Totals across every event.

        unique_volunteers counts distinct guest WhatsApp numbers plus
        distinct registered users who signed up for any task.
        """
        require_organizer(actor, 'view statistics')
        now = now or local_now()
        with self.db.session() as session:
            total_events = session.query(func.count(Event.event_id)).scalar()
            guest_volunteers = (
                session.query(func.count(distinct(VolunteerSignup.guest_whatsapp)))
                .filter(VolunteerSignup.user_id.is_(None))
                .scalar()
            )
            user_volunteers = session.query(func.count(distinct(VolunteerSignup.user_id))).scalar()
            total_attendees = session.query(
                func.coalesce(
                    func.sum(EventRegistration.adults_count + EventRegistration.children_count), 0
                )
            ).scalar()
            future_events = (
                session.query(func.count(Event.event_id))
                .filter(Event.start_datetime > now)
                .scalar()
            )
            return {
                'total_events': int(total_events or 0),
                'unique_volunteers': int(guest_volunteers or 0) + int(user_volunteers or 0),
                'total_attendees': int(total_attendees or 0),
                'future_events': int(future_events or 0),
            }

    @with_retry()
    def event_roster(self, actor: Actor, event_id: int) -> Dict[str, Any]:
        """
        Attendees and volunteers of one event.

        Organizers who may not see contact details (EXPOSE_GUEST_CONTACTS off
        and not the owner) get the counts only.

        Raises:
            Forbidden: If the actor is not an organizer
            NotFound: If the event does not exist
        """
        require_organizer(actor, 'view event rosters')
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)

            attendee_rows = (
                session.query(EventRegistration, User)
                .outerjoin(User, EventRegistration.user_id == User.user_id)
                .filter(EventRegistration.event_id == event_id)
                .order_by(EventRegistration.created_at.desc(), EventRegistration.registration_id.desc())
                .all()
            )
            volunteer_rows = (
                session.query(VolunteerSignup, Task.title, User)
                .join(Task, VolunteerSignup.task_id == Task.task_id)
                .outerjoin(User, VolunteerSignup.user_id == User.user_id)
                .filter(Task.event_id == event_id)
                .order_by(Task.task_id.asc(), VolunteerSignup.signup_id.asc())
                .all()
            )

            summary = {
                'event_id': event_id,
                'attendee_registrations': len(attendee_rows),
                'attendee_headcount': sum(reg.headcount for reg, _ in attendee_rows),
                'volunteer_signups': len(volunteer_rows),
            }
            if not may_see_contacts(actor, event, self.settings.expose_guest_contacts):
                logger.info(f"Roster of event {event_id} reduced to counts for actor {actor.actor_id}")
                return summary

            attendees = []
            for registration, user in attendee_rows:
                entry = registration.to_dict()
                entry['name'] = user.display_name if user else registration.guest_name
                attendees.append(entry)

            volunteers = []
            for signup, task_title, user in volunteer_rows:
                entry = signup.to_dict()
                entry['task_title'] = task_title
                entry['name'] = user.display_name if user else signup.guest_name
                volunteers.append(entry)

            summary.update({'attendees': attendees, 'volunteers': volunteers})
            return summary
