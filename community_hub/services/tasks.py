"""Task registry: volunteer tasks of an event and the sign-ups against them."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..config.engine import CapacityPolicy, EngineSettings, get_settings
from ..db import Database, db, with_retry
from ..errors import NotFound, TaskFull, ValidationError
from ..models import Actor, Event, Task, TaskStatus, User, VolunteerSignup
from .access import may_see_contacts, require_event_manager
from .capacity import TaskCapacity, capacity_of, count_signups
from .identity import Identity, reconcile

logger = logging.getLogger(__name__)

@dataclass
class TaskView:
    """A task with its derived capacity and, for organizers, its volunteers."""
    task: Task
    capacity: TaskCapacity
    volunteers: Optional[List[Dict[str, Any]]] = None

    @property
    def task_id(self) -> int:
        return self.task.task_id

    def to_dict(self) -> Dict[str, Any]:
        data = self.task.to_dict()
        data.update({
            'signed_up_volunteers': self.capacity.signed_up_volunteers,
            'remaining': self.capacity.remaining,
            'is_full': self.capacity.is_full,
        })
        if self.volunteers is not None:
            data['volunteers'] = self.volunteers
        return data

def parse_status(status: Union[TaskStatus, str]) -> TaskStatus:
    """
    Resolve a task status label, case-insensitively.

    Raises:
        ValidationError: If the status is not Open or Closed
    """
    if isinstance(status, TaskStatus):
        return status
    for known in TaskStatus:
        if str(status).strip().lower() == known.value.lower():
            return known
    raise ValidationError(
        f"Unknown task status '{status}'. Expected one of: "
        f"{', '.join(s.value for s in TaskStatus)}"
    )

def validate_task_fields(title: Optional[str], required_volunteers: Any, deadline_time: Any) -> Dict[str, Any]:
    """Check and normalise the editable task fields."""
    title = (title or '').strip()
    if not title:
        raise ValidationError("Task title is required")
    if isinstance(required_volunteers, bool) or not isinstance(required_volunteers, int):
        raise ValidationError("required_volunteers must be a positive integer")
    if required_volunteers <= 0:
        raise ValidationError("required_volunteers must be a positive integer")
    if deadline_time is not None and not isinstance(deadline_time, datetime):
        raise ValidationError("deadline_time must be a datetime")
    if deadline_time is not None and deadline_time.tzinfo is not None:
        deadline_time = deadline_time.replace(tzinfo=None)
    return {
        'title': title,
        'required_volunteers': required_volunteers,
        'deadline_time': deadline_time,
    }

def volunteer_entries(session: Session, task_ids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
    """
    Signup rows per task, oldest first, with registered users' names filled in.

    Registered users are stored by id only; their name and phone numbers are
    read from the user record here.
    """
    entries: Dict[int, List[Dict[str, Any]]] = {task_id: [] for task_id in task_ids}
    if not task_ids:
        return entries
    rows = (
        session.query(VolunteerSignup, User)
        .outerjoin(User, VolunteerSignup.user_id == User.user_id)
        .filter(VolunteerSignup.task_id.in_(task_ids))
        .order_by(VolunteerSignup.created_at.asc(), VolunteerSignup.signup_id.asc())
        .all()
    )
    for signup, user in rows:
        entry = signup.to_dict()
        if user is not None:
            entry.update({
                'name': user.display_name,
                'whatsapp': user.whatsapp,
                'uk_phone': user.uk_phone,
            })
        else:
            entry.update({
                'name': signup.guest_name,
                'whatsapp': signup.guest_whatsapp,
                'uk_phone': signup.guest_uk_phone,
            })
        entries[signup.task_id].append(entry)
    return entries

class TaskRegistry:
    """
    Create, change and delete tasks, and take volunteer sign-ups.

    Task mutations follow the same ownership policy as the parent event.
    Sign-ups follow the configured CapacityPolicy: ADVISORY accepts them past
    required_volunteers, ENFORCED rejects them with TaskFull.
    """

    def __init__(self, database: Optional[Database] = None, settings: Optional[EngineSettings] = None):
        self.db = database or db
        self.settings = settings or get_settings()

    def _load_task(self, session: Session, task_id: int) -> Task:
        task = session.get(Task, task_id)
        if task is None:
            raise NotFound('Task', task_id)
        return task

    def _load_event(self, session: Session, event_id: int) -> Event:
        event = session.get(Event, event_id)
        if event is None:
            raise NotFound('Event', event_id)
        return event

    def create(
        self,
        actor: Actor,
        event_id: int,
        title: str,
        required_volunteers: int,
        description: Optional[str] = None,
        deadline_time: Optional[datetime] = None,
    ) -> TaskView:
        """
        Add a task to an event. New tasks are Open with nobody signed up.

        Raises:
            ValidationError: If the title is empty or required_volunteers is not positive
            NotFound: If the event does not exist
            Forbidden: If the actor may not manage the event
        """
        fields = validate_task_fields(title, required_volunteers, deadline_time)

        with self.db.session() as session:
            event = self._load_event(session, event_id)
            require_event_manager(actor, event, self.settings.ownership_policy, 'add tasks to')

            task = Task(
                event_id=event_id,
                description=description,
                status=TaskStatus.OPEN.value,
                **fields
            )
            session.add(task)
            session.flush()
            logger.info(f"Created task {task.task_id} '{task.title}' on event {event_id}")
            return TaskView(task=task, capacity=capacity_of(task, 0))

    @with_retry()
    def get(self, task_id: int) -> TaskView:
        """Fetch one task with its capacity."""
        with self.db.session() as session:
            task = self._load_task(session, task_id)
            signed_up = count_signups(session, [task_id])[task_id]
            return TaskView(task=task, capacity=capacity_of(task, signed_up))

    def update(
        self,
        actor: Actor,
        task_id: int,
        title: str,
        required_volunteers: int,
        description: Optional[str] = None,
        deadline_time: Optional[datetime] = None,
        status: Union[TaskStatus, str, None] = None,
    ) -> TaskView:
        """
        Replace the editable fields of a task.

        The status label only changes when one is given; it is never
        recomputed from the sign-ups.

        Raises:
            ValidationError: If a field or the status is invalid
        """
        fields = validate_task_fields(title, required_volunteers, deadline_time)
        if status is not None:
            fields['status'] = parse_status(status).value

        with self.db.session() as session:
            task = self._load_task(session, task_id)
            event = self._load_event(session, task.event_id)
            require_event_manager(actor, event, self.settings.ownership_policy, 'edit tasks of')

            for key, value in fields.items():
                setattr(task, key, value)
            task.description = description
            signed_up = count_signups(session, [task_id])[task_id]
            logger.info(f"Updated task {task_id} by actor {actor.actor_id}")
            return TaskView(task=task, capacity=capacity_of(task, signed_up))

    def delete(self, actor: Actor, task_id: int) -> int:
        """
        Delete a task and its sign-ups, sign-ups first.

        Returns:
            Number of sign-ups removed with the task
        """
        with self.db.session() as session:
            task = self._load_task(session, task_id)
            event = self._load_event(session, task.event_id)
            require_event_manager(actor, event, self.settings.ownership_policy, 'delete tasks of')

            removed = (
                session.query(VolunteerSignup)
                .filter(VolunteerSignup.task_id == task_id)
                .delete(synchronize_session=False)
            )
            session.delete(task)
            logger.info(f"Deleted task {task_id} and {removed} sign-ups by actor {actor.actor_id}")
            return removed

    @with_retry()
    def list_for_event(self, event_id: int, viewer: Optional[Actor] = None) -> List[TaskView]:
        """
        Tasks of an event with their capacity.

        Ordered by deadline, tasks without a deadline last, then by id.
        Without a viewer this is the public calendar variant. Organizers
        allowed to see contact details also get each task's volunteers.

        Raises:
            NotFound: If the event does not exist
        """
        with self.db.session() as session:
            event = self._load_event(session, event_id)
            tasks = (
                session.query(Task)
                .filter(Task.event_id == event_id)
                .order_by(
                    Task.deadline_time.is_(None),
                    Task.deadline_time.asc(),
                    Task.task_id.asc(),
                )
                .all()
            )
            task_ids = [task.task_id for task in tasks]
            counts = count_signups(session, task_ids)

            volunteers = None
            if viewer is not None and may_see_contacts(viewer, event, self.settings.expose_guest_contacts):
                volunteers = volunteer_entries(session, task_ids)

            return [
                TaskView(
                    task=task,
                    capacity=capacity_of(task, counts[task.task_id]),
                    volunteers=volunteers[task.task_id] if volunteers is not None else None,
                )
                for task in tasks
            ]

    def sign_up(self, task_id: int, identity: Identity, comment: Optional[str] = None) -> VolunteerSignup:
        """
        Record a volunteer for a task.

        The same person may sign up for the same task more than once; no
        deduplication is done.

        Raises:
            NotFound: If the task does not exist
            ValidationError: If the identity cannot be resolved
            TaskFull: If capacity is enforced and the task is already full
        """
        with self.db.session() as session:
            enforce = self.settings.capacity_policy == CapacityPolicy.ENFORCED
            query = session.query(Task).filter(Task.task_id == task_id)
            if enforce:
                # Serialise concurrent sign-ups on the task row
                query = query.with_for_update()
            task = query.one_or_none()
            if task is None:
                raise NotFound('Task', task_id)

            resolved = reconcile(session, identity)

            signed_up = count_signups(session, [task_id])[task_id]
            if signed_up >= task.required_volunteers:
                if enforce:
                    raise TaskFull(task_id, task.required_volunteers)
                logger.info(
                    f"Task {task_id} is over capacity ({signed_up + 1}/{task.required_volunteers}); "
                    "accepted under advisory capacity policy"
                )

            signup = VolunteerSignup(
                task_id=task_id,
                comment=(comment or '').strip() or None,
                **resolved.signup_columns()
            )
            session.add(signup)
            session.flush()
            logger.info(
                f"Signup {signup.signup_id} on task {task_id} "
                f"({'guest' if resolved.is_guest else f'user {resolved.user_id}'})"
            )
            return signup
