"""Bookkeeping for idempotent recurrence runs."""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from .base import Base, utc_now

class RecurrenceRun(Base):
    """
    A recurrence request identified by a caller-supplied idempotency key.

    The parameters are stored so a replayed key can be checked against the
    request it was first issued for.
    """
    __tablename__ = 'recurrence_runs'

    idempotency_key = Column(String, primary_key=True)
    source_event_id = Column(Integer, nullable=False)
    interval_unit = Column(String, nullable=False)
    interval_value = Column(Integer, nullable=False)
    repeat_count = Column(Integer, nullable=False)
    actor_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def matches(
        self,
        actor_id: int,
        source_event_id: int,
        interval_unit: str,
        interval_value: int,
        repeat_count: int,
    ) -> bool:
        """A key only replays for the actor who issued it, with the same parameters."""
        return (
            self.actor_id == actor_id
            and self.source_event_id == source_event_id
            and self.interval_unit == interval_unit
            and self.interval_value == interval_value
            and self.repeat_count == repeat_count
        )

class RecurrenceOccurrence(Base):
    """
    One generated copy of a run.

    is_complete is False while the copy's event exists but some of its
    template tasks do not; a replay adds the missing tasks.

    event_id is not a foreign key: deleting a generated event must not be
    blocked by this bookkeeping row.
    """
    __tablename__ = 'recurrence_occurrences'
    __table_args__ = (UniqueConstraint('idempotency_key', 'iteration'),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    idempotency_key = Column(
        String, ForeignKey('recurrence_runs.idempotency_key'), nullable=False, index=True
    )
    iteration = Column(Integer, nullable=False)
    event_id = Column(Integer, nullable=False)
    is_complete = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'idempotency_key': self.idempotency_key,
            'iteration': self.iteration,
            'event_id': self.event_id,
            'is_complete': self.is_complete,
        }
