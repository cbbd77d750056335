"""Event registry: lifecycle, publishing and ownership of events."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import select

from ..config.engine import EngineSettings, OwnershipPolicy, get_settings
from ..db import Database, db, with_retry
from ..errors import NotFound, ValidationError
from ..models import Actor, Event, EventCategory, EventRegistration, Task, User, VolunteerSignup
from ..models.event import DEFAULT_CATEGORY
from .access import require_event_manager, require_organizer

logger = logging.getLogger(__name__)

def parse_category(category: Union[EventCategory, str, None]) -> EventCategory:
    """
    Resolve a category name. None falls back to Social.

    Raises:
        ValidationError: If the category is not one of the known values
    """
    if category is None:
        return DEFAULT_CATEGORY
    if isinstance(category, EventCategory):
        return category
    for known in EventCategory:
        if str(category).strip().lower() == known.value.lower():
            return known
    raise ValidationError(
        f"Unknown category '{category}'. Expected one of: "
        f"{', '.join(c.value for c in EventCategory)}"
    )

def _wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Events are stored as naive local times."""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value

def validate_event_fields(
    title: Optional[str],
    category: Union[EventCategory, str, None],
    start_datetime: Optional[datetime],
    end_datetime: Optional[datetime],
) -> Dict[str, object]:
    """Check and normalise the editable event fields."""
    title = (title or '').strip()
    if not title:
        raise ValidationError("Event title is required")
    if not isinstance(start_datetime, datetime):
        raise ValidationError("Event start_datetime is required")
    if end_datetime is not None and not isinstance(end_datetime, datetime):
        raise ValidationError("Event end_datetime must be a datetime")

    start = _wall_clock(start_datetime)
    end = _wall_clock(end_datetime)
    if end is not None and end < start:
        raise ValidationError("Event end_datetime must not be before start_datetime")

    return {
        'title': title,
        'category': parse_category(category).value,
        'start_datetime': start,
        'end_datetime': end,
    }

class EventRegistry:
    """
    Create, change, publish and delete events.

    Mutations are gated by the configured OwnershipPolicy: either only the
    owning organizer (and admins) may touch an event, or any organizer may.
    """

    def __init__(self, database: Optional[Database] = None, settings: Optional[EngineSettings] = None):
        self.db = database or db
        self.settings = settings or get_settings()

    @property
    def ownership_policy(self) -> OwnershipPolicy:
        return self.settings.ownership_policy

    def create(
        self,
        actor: Actor,
        title: str,
        category: Union[EventCategory, str, None],
        start_datetime: datetime,
        location_name: Optional[str] = None,
        description: Optional[str] = None,
        end_datetime: Optional[datetime] = None,
        is_published: bool = True,
    ) -> Event:
        """
        Create an event owned by the acting organizer.

        Raises:
            Forbidden: If the actor is not an organizer
            ValidationError: If title, category or times are invalid
        """
        require_organizer(actor, 'create events')
        fields = validate_event_fields(title, category, start_datetime, end_datetime)

        with self.db.session() as session:
            event = Event(
                location_name=location_name,
                description=description,
                organizer_id=actor.actor_id,
                is_published=bool(is_published),
                **fields
            )
            session.add(event)
            session.flush()
            logger.info(f"Created event {event.event_id} '{event.title}' for organizer {actor.actor_id}")
            return event

    @with_retry()
    def get(self, event_id: int) -> Event:
        """
        Fetch one event.

        Raises:
            NotFound: If the event does not exist
        """
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)
            return event

    def update(
        self,
        actor: Actor,
        event_id: int,
        title: str,
        category: Union[EventCategory, str, None],
        start_datetime: datetime,
        end_datetime: Optional[datetime] = None,
        location_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Event:
        """Replace the editable fields of an event. The publish flag is left alone."""
        fields = validate_event_fields(title, category, start_datetime, end_datetime)

        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)
            require_event_manager(actor, event, self.ownership_policy, 'edit')

            for key, value in fields.items():
                setattr(event, key, value)
            event.location_name = location_name
            event.description = description
            logger.info(f"Updated event {event_id} by actor {actor.actor_id}")
            return event

    def set_published(self, actor: Actor, event_id: int, is_published: bool) -> Event:
        """Show or hide an event on the public calendar."""
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)
            require_event_manager(actor, event, self.ownership_policy, 'publish')

            event.is_published = bool(is_published)
            logger.info(f"Event {event_id} is_published={event.is_published}")
            return event

    def delete(self, actor: Actor, event_id: int) -> Dict[str, int]:
        """
        Delete an event together with everything that hangs off it.

        The store is not assumed to cascade, so rows are removed child first:
        signups of the event's tasks, the tasks, the attendance
        registrations, and finally the event.

        Returns:
            Number of rows removed per table
        """
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFound('Event', event_id)
            require_event_manager(actor, event, self.ownership_policy, 'delete')

            task_ids = select(Task.task_id).where(Task.event_id == event_id)
            removed = {
                'signups': session.query(VolunteerSignup)
                .filter(VolunteerSignup.task_id.in_(task_ids))
                .delete(synchronize_session=False),
                'tasks': session.query(Task)
                .filter(Task.event_id == event_id)
                .delete(synchronize_session=False),
                'registrations': session.query(EventRegistration)
                .filter(EventRegistration.event_id == event_id)
                .delete(synchronize_session=False),
            }
            session.delete(event)
            removed['events'] = 1

            logger.info(f"Deleted event {event_id} by actor {actor.actor_id}: {removed}")
            return removed

    @with_retry()
    def list_public(self) -> List[Event]:
        """Published events, soonest first."""
        with self.db.session() as session:
            return (
                session.query(Event)
                .filter(Event.is_published.is_(True))
                .order_by(Event.start_datetime.asc(), Event.event_id.asc())
                .all()
            )

    @with_retry()
    def list_for_organizer(self, actor: Actor) -> List[Event]:
        """
        Events for the admin console, latest first.

        Admins see every event, organizers only their own.
        """
        require_organizer(actor, 'list organizer events')
        with self.db.session() as session:
            query = session.query(Event)
            if not actor.is_admin:
                query = query.filter(Event.organizer_id == actor.actor_id)
            return query.order_by(Event.start_datetime.desc(), Event.event_id.desc()).all()

    @with_retry()
    def organizer_names(self, events: Iterable[Event]) -> Dict[int, str]:
        """Display names of the organizers of the given events, keyed by user id."""
        organizer_ids = {event.organizer_id for event in events if event.organizer_id is not None}
        if not organizer_ids:
            return {}
        with self.db.session() as session:
            users = session.query(User).filter(User.user_id.in_(organizer_ids)).all()
            return {user.user_id: user.display_name for user in users}
