"""Recurrence generator: expand one event into a series of future copies.

Given a source event, an interval ("every N days/weeks/months") and a repeat
count, the generator creates repeat_count new events, each with a copy of the
source's tasks. The source itself is never copied.

Scheduling rules:
- Copy i starts at source.start + i * interval_value units, always computed
  from the source rather than from the previous copy.
- Month steps follow the calendar via dateutil's relativedelta. A day that
  does not exist in the target month is clamped to the month's last day, so
  Jan 31 + 1 month is Feb 28 (Feb 29 in leap years) and Jan 31 + 2 months is
  Mar 31.
- Copies keep the source's duration; an open-ended source gives open-ended
  copies.
- Task deadlines are NOT carried over. Copied tasks have no deadline and the
  organizer has to set one per copy if needed.

The run is not a transaction. Each copy is created through the event and
task registries, so copies that succeeded stay in place when a later one
fails. The result reports every requested iteration individually. After a
failure the remaining iterations are reported as skipped (or attempted
anyway when RECURRENCE_STOP_ON_FAILURE is off).

An idempotency key makes a request safe to retry: iterations recorded as
complete under the key are reused instead of being created again, and a copy
whose event was created but whose tasks were not all created is finished
rather than created a second time. Reused copies are reported as such even
when the replay is cancelled or stopped by a failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dateutil.relativedelta import relativedelta

from ..config.engine import EngineSettings, get_settings
from ..db import Database, db, with_retry
from ..errors import NotFound, PartialFailure, ValidationError
from ..models import Actor, Event, RecurrenceOccurrence, RecurrenceRun, Task
from .access import require_event_manager, require_organizer
from .events import EventRegistry
from .tasks import TaskRegistry

logger = logging.getLogger(__name__)

class IntervalUnit(str, Enum):
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'

class OutcomeStatus(str, Enum):
    """What happened to one requested iteration."""
    CREATED = 'created'      # event and all tasks created (or finished) by this call
    REUSED = 'reused'        # already created under the same idempotency key
    FAILED = 'failed'        # attempted, the event or one of its tasks failed
    SKIPPED = 'skipped'      # not attempted because an earlier iteration failed
    CANCELLED = 'cancelled'  # not attempted because the run was cancelled

SUCCEEDED_STATUSES = frozenset({OutcomeStatus.CREATED, OutcomeStatus.REUSED})

def parse_interval_unit(unit: Union[IntervalUnit, str]) -> IntervalUnit:
    if isinstance(unit, IntervalUnit):
        return unit
    try:
        return IntervalUnit(str(unit).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown interval unit '{unit}'. Expected one of: "
            f"{', '.join(u.value for u in IntervalUnit)}"
        ) from None

def shift(start: datetime, unit: IntervalUnit, amount: int) -> datetime:
    """Move a datetime by amount units, keeping the wall-clock time."""
    if unit == IntervalUnit.DAY:
        return start + relativedelta(days=amount)
    if unit == IntervalUnit.WEEK:
        return start + relativedelta(weeks=amount)
    return start + relativedelta(months=amount)

def occurrence_start(source_start: datetime, unit: IntervalUnit, interval_value: int, iteration: int) -> datetime:
    """Start of copy number iteration (1-based)."""
    return shift(source_start, unit, iteration * interval_value)

@dataclass(frozen=True)
class RecordedCopy:
    """A copy recorded under an idempotency key by an earlier call."""
    event_id: int
    is_complete: bool

@dataclass(frozen=True)
class TaskTemplate:
    title: str
    description: Optional[str]
    required_volunteers: int

@dataclass(frozen=True)
class SourceSnapshot:
    """The source event and its tasks, read once before any copy is made."""
    event_id: int
    title: str
    category: str
    description: Optional[str]
    location_name: Optional[str]
    is_published: bool
    start_datetime: datetime
    duration: Optional[timedelta]
    tasks: List[TaskTemplate]

@dataclass
class IterationOutcome:
    index: int
    status: OutcomeStatus
    scheduled_start: datetime
    scheduled_end: Optional[datetime] = None
    event_id: Optional[int] = None
    task_ids: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCEEDED_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'status': self.status.value,
            'scheduled_start': self.scheduled_start.isoformat(),
            'scheduled_end': self.scheduled_end.isoformat() if self.scheduled_end else None,
            'event_id': self.event_id,
            'task_ids': list(self.task_ids),
            'error': self.error,
        }

@dataclass
class RecurrenceResult:
    """One outcome per requested iteration, in iteration order."""
    source_event_id: int
    outcomes: List[IterationOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[IterationOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def created_event_ids(self) -> List[int]:
        return [o.event_id for o in self.succeeded]

    @property
    def failures(self) -> List[IterationOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def incomplete_count(self) -> int:
        return len(self.outcomes) - len(self.succeeded)

    @property
    def ok(self) -> bool:
        return self.incomplete_count == 0

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and not self.ok

    def raise_for_failures(self) -> None:
        """Raise PartialFailure unless every iteration succeeded."""
        if not self.ok:
            raise PartialFailure(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_event_id': self.source_event_id,
            'requested': len(self.outcomes),
            'created_event_ids': self.created_event_ids,
            'failure_count': self.failure_count,
            'incomplete_count': self.incomplete_count,
            'is_partial': self.is_partial,
            'outcomes': [o.to_dict() for o in self.outcomes],
        }

def _require_int(value: Any, label: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        qualifier = 'positive' if minimum > 0 else 'non-negative'
        raise ValidationError(f"{label} must be a {qualifier} integer")
    return value

class RecurrenceGenerator:
    """
    Creates a spaced series of copies of an event and its tasks.

    The event and task registries are collaborators called once per copy
    and once per task, in order. Pass custom ones to change how copies are
    stored.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        settings: Optional[EngineSettings] = None,
        event_registry: Optional[EventRegistry] = None,
        task_registry: Optional[TaskRegistry] = None,
    ):
        self.db = database or db
        self.settings = settings or get_settings()
        self.events = event_registry or EventRegistry(self.db, self.settings)
        self.tasks = task_registry or TaskRegistry(self.db, self.settings)

    def generate(
        self,
        actor: Actor,
        source_event_id: int,
        interval_unit: Union[IntervalUnit, str],
        interval_value: int,
        repeat_count: int,
        idempotency_key: Optional[str] = None,
        cancel_token: Any = None,
    ) -> RecurrenceResult:
        """
        Generate repeat_count copies of an event.

        Args:
            actor: Acting organizer; becomes the organizer of every copy
            source_event_id: Event to copy
            interval_unit: 'day', 'week' or 'month'
            interval_value: Every N units, positive
            repeat_count: Number of copies to create; 0 is a no-op
            idempotency_key: Makes a retried request reuse completed copies
            cancel_token: Object with is_set(), checked before each iteration

        Returns:
            RecurrenceResult with one outcome per iteration

        Raises:
            ValidationError: If the interval or count is invalid, or the
                             idempotency key was used for another request
            NotFound: If the source event does not exist
            Forbidden: If the actor may not manage the source event
        """
        unit = parse_interval_unit(interval_unit)
        _require_int(interval_value, 'interval_value', 1)
        _require_int(repeat_count, 'repeat_count', 0)
        if repeat_count > self.settings.max_repeat_count:
            raise ValidationError(
                f"repeat_count {repeat_count} exceeds the maximum of {self.settings.max_repeat_count}"
            )
        if idempotency_key is not None:
            idempotency_key = idempotency_key.strip()
            if not idempotency_key:
                raise ValidationError("idempotency_key must not be blank")
        require_organizer(actor, 'repeat events')

        snapshot = self._snapshot(actor, source_event_id)
        result = RecurrenceResult(source_event_id=source_event_id)
        if repeat_count == 0:
            logger.info(f"Repeat of event {source_event_id} requested with repeat_count=0, nothing to do")
            return result

        recorded: Dict[int, RecordedCopy] = {}
        if idempotency_key:
            recorded = self._claim_run(
                actor, idempotency_key, source_event_id, unit, interval_value, repeat_count
            )

        logger.info(
            f"Repeating event {source_event_id} every {interval_value} {unit.value}(s), "
            f"{repeat_count} copies with {len(snapshot.tasks)} tasks each"
        )

        failed_at: Optional[int] = None
        for index in range(1, repeat_count + 1):
            start = occurrence_start(snapshot.start_datetime, unit, interval_value, index)
            end = start + snapshot.duration if snapshot.duration is not None else None
            previous = recorded.get(index)

            if previous is not None and previous.is_complete:
                outcome = IterationOutcome(
                    index, OutcomeStatus.REUSED, start, end,
                    event_id=previous.event_id, task_ids=self._task_ids(previous.event_id),
                )
            elif failed_at is not None:
                outcome = IterationOutcome(
                    index, OutcomeStatus.SKIPPED, start, end,
                    event_id=previous.event_id if previous else None,
                    error=f"Not attempted because iteration {failed_at} failed",
                )
            elif cancel_token is not None and cancel_token.is_set():
                outcome = IterationOutcome(
                    index, OutcomeStatus.CANCELLED, start, end,
                    event_id=previous.event_id if previous else None,
                    error="Run cancelled before this iteration started",
                )
            else:
                if previous is not None:
                    outcome = self._finish_copy(actor, snapshot, index, start, end, previous.event_id)
                else:
                    outcome = self._create_copy(actor, snapshot, index, start, end)
                if idempotency_key and outcome.event_id is not None:
                    self._record_occurrence(
                        idempotency_key, index, outcome.event_id,
                        is_complete=outcome.status == OutcomeStatus.CREATED,
                    )
                if outcome.status == OutcomeStatus.FAILED and self.settings.recurrence_stop_on_failure:
                    failed_at = index

            result.outcomes.append(outcome)
            logger.info(
                f"Copy #{index} of {repeat_count} of event {source_event_id}: {outcome.status.value}"
                + (f" (event {outcome.event_id})" if outcome.event_id else "")
            )

        if result.ok:
            logger.info(f"Repeat of event {source_event_id} complete: {len(result.succeeded)} copies")
        else:
            logger.warning(
                f"Repeat of event {source_event_id} incomplete: {len(result.succeeded)} succeeded, "
                f"{result.failure_count} failed, {result.incomplete_count} not completed"
            )
        return result

    def generate_or_raise(self, *args: Any, **kwargs: Any) -> RecurrenceResult:
        """Like generate, but raise PartialFailure unless every copy succeeded."""
        result = self.generate(*args, **kwargs)
        result.raise_for_failures()
        return result

    @with_retry()
    def _snapshot(self, actor: Actor, source_event_id: int) -> SourceSnapshot:
        with self.db.session() as session:
            source = session.get(Event, source_event_id)
            if source is None:
                raise NotFound('Event', source_event_id)
            require_event_manager(actor, source, self.settings.ownership_policy, 'repeat')

            tasks = (
                session.query(Task)
                .filter(Task.event_id == source_event_id)
                .order_by(Task.task_id.asc())
                .all()
            )
            duration = None
            if source.end_datetime is not None:
                duration = source.end_datetime - source.start_datetime
            return SourceSnapshot(
                event_id=source.event_id,
                title=source.title,
                category=source.category,
                description=source.description,
                location_name=source.location_name,
                is_published=source.is_published,
                start_datetime=source.start_datetime,
                duration=duration,
                tasks=[
                    TaskTemplate(
                        title=task.title,
                        description=task.description,
                        required_volunteers=task.required_volunteers,
                    )
                    for task in tasks
                ],
            )

    def _create_copy(
        self,
        actor: Actor,
        snapshot: SourceSnapshot,
        index: int,
        start: datetime,
        end: Optional[datetime],
    ) -> IterationOutcome:
        """Create one copy. Never raises: failures become a FAILED outcome."""
        try:
            event = self.events.create(
                actor,
                title=snapshot.title,
                category=snapshot.category,
                start_datetime=start,
                location_name=snapshot.location_name,
                description=snapshot.description,
                end_datetime=end,
                is_published=snapshot.is_published,
            )
        except Exception as e:
            logger.error(f"Copy #{index} of event {snapshot.event_id} failed creating the event: {e}")
            return IterationOutcome(index, OutcomeStatus.FAILED, start, end, error=str(e))

        return self._add_tasks(actor, snapshot, index, start, end, event.event_id, [])

    def _finish_copy(
        self,
        actor: Actor,
        snapshot: SourceSnapshot,
        index: int,
        start: datetime,
        end: Optional[datetime],
        event_id: int,
    ) -> IterationOutcome:
        """Add the template tasks an earlier call did not get to."""
        try:
            task_ids = self._task_ids(event_id)
        except Exception as e:
            logger.error(f"Copy #{index} of event {snapshot.event_id} could not read event {event_id}: {e}")
            return IterationOutcome(
                index, OutcomeStatus.FAILED, start, end, event_id=event_id, error=str(e),
            )
        logger.info(
            f"Finishing copy #{index} (event {event_id}): "
            f"{len(task_ids)} of {len(snapshot.tasks)} tasks already exist"
        )
        return self._add_tasks(actor, snapshot, index, start, end, event_id, task_ids)

    def _add_tasks(
        self,
        actor: Actor,
        snapshot: SourceSnapshot,
        index: int,
        start: datetime,
        end: Optional[datetime],
        event_id: int,
        task_ids: List[int],
    ) -> IterationOutcome:
        """
        Create the template tasks after the first len(task_ids) on a copy.

        Tasks are always created in template order, so the tasks a copy
        already has are the leading templates.
        """
        task_ids = list(task_ids)
        for template in snapshot.tasks[len(task_ids):]:
            try:
                view = self.tasks.create(
                    actor,
                    event_id,
                    template.title,
                    template.required_volunteers,
                    description=template.description,
                    deadline_time=None,
                )
            except Exception as e:
                logger.error(
                    f"Copy #{index} of event {snapshot.event_id} failed creating task "
                    f"'{template.title}' on event {event_id}: {e}"
                )
                return IterationOutcome(
                    index, OutcomeStatus.FAILED, start, end,
                    event_id=event_id, task_ids=task_ids,
                    error=f"Task '{template.title}': {e}",
                )
            task_ids.append(view.task_id)

        return IterationOutcome(
            index, OutcomeStatus.CREATED, start, end,
            event_id=event_id, task_ids=task_ids,
        )

    def _claim_run(
        self,
        actor: Actor,
        key: str,
        source_event_id: int,
        unit: IntervalUnit,
        interval_value: int,
        repeat_count: int,
    ) -> Dict[int, RecordedCopy]:
        """
        Register an idempotency key, or load what an earlier call recorded.

        Returns:
            Iteration -> recorded copy, for copies whose event still exists

        Raises:
            ValidationError: If the key was issued by another actor or for
                             different parameters
        """
        with self.db.session() as session:
            run = session.get(RecurrenceRun, key)
            if run is None:
                session.add(RecurrenceRun(
                    idempotency_key=key,
                    source_event_id=source_event_id,
                    interval_unit=unit.value,
                    interval_value=interval_value,
                    repeat_count=repeat_count,
                    actor_id=actor.actor_id,
                ))
                return {}

            if not run.matches(actor.actor_id, source_event_id, unit.value, interval_value, repeat_count):
                logger.warning(f"Idempotency key '{key}' replayed with a different request by actor {actor.actor_id}")
                raise ValidationError(f"Idempotency key '{key}' was already used for a different request")

            recorded: Dict[int, RecordedCopy] = {}
            occurrences = (
                session.query(RecurrenceOccurrence)
                .filter(RecurrenceOccurrence.idempotency_key == key)
                .all()
            )
            for occurrence in occurrences:
                if session.get(Event, occurrence.event_id) is None:
                    # Copy was deleted since; make it again
                    session.delete(occurrence)
                    continue
                recorded[occurrence.iteration] = RecordedCopy(occurrence.event_id, occurrence.is_complete)

            partial = sum(1 for copy in recorded.values() if not copy.is_complete)
            logger.info(
                f"Replaying idempotency key '{key}': {len(recorded) - partial} complete and "
                f"{partial} partial copies already exist"
            )
            return recorded

    def _record_occurrence(self, key: str, index: int, event_id: int, is_complete: bool) -> None:
        try:
            with self.db.session() as session:
                occurrence = (
                    session.query(RecurrenceOccurrence)
                    .filter(
                        RecurrenceOccurrence.idempotency_key == key,
                        RecurrenceOccurrence.iteration == index,
                    )
                    .one_or_none()
                )
                if occurrence is None:
                    session.add(RecurrenceOccurrence(
                        idempotency_key=key, iteration=index, event_id=event_id, is_complete=is_complete,
                    ))
                else:
                    occurrence.event_id = event_id
                    occurrence.is_complete = is_complete
        except Exception as e:
            # The copy exists; only the replay bookkeeping is missing
            logger.error(f"Could not record copy #{index} (event {event_id}) under key '{key}': {e}")

    @with_retry()
    def _task_ids(self, event_id: int) -> List[int]:
        with self.db.session() as session:
            rows = (
                session.query(Task.task_id)
                .filter(Task.event_id == event_id)
                .order_by(Task.task_id.asc())
                .all()
            )
            return [task_id for (task_id,) in rows]
