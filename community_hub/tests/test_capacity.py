import pytest

from community_hub.errors import NotFound
from community_hub.models import VolunteerSignup
from community_hub.services import Guest, Registered
from community_hub.tests.conftest import MEMBER_ID

def test_capacity_follows_signup_rows(event, organizer, tasks, capacity):
    task = tasks.create(organizer, event.event_id, "Set up chairs", 3)
    assert capacity.for_task(task.task_id).signed_up_volunteers == 0

    tasks.sign_up(task.task_id, Guest("Sam", "+447700900100"))
    tasks.sign_up(task.task_id, Registered(MEMBER_ID))

    current = capacity.for_task(task.task_id)
    assert current.signed_up_volunteers == 2
    assert current.remaining == 1
    assert not current.is_full

def test_capacity_reflects_deleted_signups(event, organizer, tasks, capacity, database):
    task = tasks.create(organizer, event.event_id, "Make tea", 1)
    signup = tasks.sign_up(task.task_id, Guest("Sam", "+447700900100"))
    assert capacity.for_task(task.task_id).is_full

    with database.session() as session:
        session.query(VolunteerSignup).filter(VolunteerSignup.signup_id == signup.signup_id).delete()

    assert capacity.for_task(task.task_id).signed_up_volunteers == 0

def test_capacity_for_event_lists_every_task(event, organizer, tasks, capacity):
    first = tasks.create(organizer, event.event_id, "Greeting", 2)
    second = tasks.create(organizer, event.event_id, "Clean up", 4)
    tasks.sign_up(second.task_id, Guest("Sam", "+447700900100"))

    result = capacity.for_event(event.event_id)

    assert [c.task_id for c in result] == [first.task_id, second.task_id]
    assert [c.signed_up_volunteers for c in result] == [0, 1]

def test_capacity_for_event_without_tasks_is_empty(event, capacity):
    assert capacity.for_event(event.event_id) == []

def test_capacity_of_missing_task_or_event(capacity):
    with pytest.raises(NotFound):
        capacity.for_task(999)
    with pytest.raises(NotFound):
        capacity.for_event(999)

def test_over_capacity_reports_zero_remaining(event, organizer, tasks, capacity):
    task = tasks.create(organizer, event.event_id, "Drive minibus", 1)
    tasks.sign_up(task.task_id, Guest("Sam", "+447700900100"))
    tasks.sign_up(task.task_id, Guest("Kim", "+447700900101"))

    current = capacity.for_task(task.task_id)
    assert current.signed_up_volunteers == 2
    assert current.remaining == 0
    assert current.to_dict()['is_full'] is True
