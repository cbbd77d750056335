"""Capacity aggregation for volunteer tasks.

signed_up_volunteers is never stored. It is counted from the signup rows on
every read, so it cannot drift from them.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db import Database, db, with_retry
from ..errors import NotFound
from ..models import Event, Task, VolunteerSignup

@dataclass(frozen=True)
class TaskCapacity:
    """Required versus signed-up headcount for one task."""
    task_id: int
    required_volunteers: int
    signed_up_volunteers: int

    @property
    def is_full(self) -> bool:
        return self.signed_up_volunteers >= self.required_volunteers

    @property
    def remaining(self) -> int:
        return max(self.required_volunteers - self.signed_up_volunteers, 0)

    def to_dict(self) -> Dict[str, int]:
        return {
            'task_id': self.task_id,
            'required_volunteers': self.required_volunteers,
            'signed_up_volunteers': self.signed_up_volunteers,
            'remaining': self.remaining,
            'is_full': self.is_full,
        }

def count_signups(session: Session, task_ids: Iterable[int]) -> Dict[int, int]:
    """
    Count signup rows per task in one grouped query.

    Tasks without signups are present in the result with a count of 0.
    """
    ids = list(task_ids)
    if not ids:
        return {}
    rows = (
        session.query(VolunteerSignup.task_id, func.count(VolunteerSignup.signup_id))
        .filter(VolunteerSignup.task_id.in_(ids))
        .group_by(VolunteerSignup.task_id)
        .all()
    )
    counts = {task_id: 0 for task_id in ids}
    counts.update({task_id: count for task_id, count in rows})
    return counts

def capacity_of(task: Task, signed_up: int) -> TaskCapacity:
    return TaskCapacity(
        task_id=task.task_id,
        required_volunteers=task.required_volunteers,
        signed_up_volunteers=signed_up,
    )

class CapacityAggregator:
    """Read-side view of task capacity. Has no side effects."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or db

    @with_retry()
    def for_task(self, task_id: int) -> TaskCapacity:
        """
        Capacity of a single task.

        Raises:
            NotFound: If the task does not exist
        """
        with self.db.session() as session:
            task = session.get(Task, task_id)
            if task is None:
                raise NotFound('Task', task_id)
            return capacity_of(task, count_signups(session, [task_id])[task_id])

    @with_retry()
    def for_event(self, event_id: int) -> List[TaskCapacity]:
        """
        Capacity of every task of an event, ordered by task id.

        An event without tasks yields an empty list.

        Raises:
            NotFound: If the event does not exist
        """
        with self.db.session() as session:
            if session.get(Event, event_id) is None:
                raise NotFound('Event', event_id)
            tasks = (
                session.query(Task)
                .filter(Task.event_id == event_id)
                .order_by(Task.task_id.asc())
                .all()
            )
            counts = count_signups(session, [task.task_id for task in tasks])
            return [capacity_of(task, counts[task.task_id]) for task in tasks]
