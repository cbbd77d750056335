import pytest

from community_hub.config.engine import EngineSettings
from community_hub.errors import Forbidden, NotFound, ValidationError
from community_hub.services import ON_SITE_CONTACT, ON_SITE_GUEST_NAME, AttendanceRegistry, Guest, Registered
from community_hub.tests.conftest import MEMBER_ID

def test_guest_registration_defaults(attendance, event):
    registration = attendance.register(event.event_id, Guest("Lee", "+447700900102"))

    assert registration.adults_count == 1
    assert registration.children_count == 0
    assert registration.guest_name == "Lee"
    assert registration.guest_contact == "+447700900102"
    assert registration.user_id is None
    assert registration.is_on_site is False

def test_registered_user_registration(attendance, event):
    registration = attendance.register(event.event_id, Registered(MEMBER_ID), adults=2, children=3)

    assert registration.user_id == MEMBER_ID
    assert registration.guest_name is None
    assert registration.headcount == 5

def test_on_site_registration_uses_placeholders(attendance, event):
    registration = attendance.register(event.event_id, Guest(None, None), on_site=True)

    assert registration.guest_name == ON_SITE_GUEST_NAME
    assert registration.guest_contact == ON_SITE_CONTACT
    assert registration.is_on_site is True

def test_missing_name_fails_without_on_site(attendance, event):
    with pytest.raises(ValidationError):
        attendance.register(event.event_id, Guest(None, None))

@pytest.mark.parametrize("adults, children", [(0, 0), (-1, 2), (1, -1), (1.5, 0)])
def test_invalid_counts(attendance, event, adults, children):
    with pytest.raises(ValidationError):
        attendance.register(event.event_id, Guest("Lee", "+447700900102"), adults=adults, children=children)

def test_children_only_is_allowed(attendance, event):
    registration = attendance.register(event.event_id, Guest("Lee", "+447700900102"), adults=0, children=2)
    assert registration.headcount == 2

def test_registration_for_missing_event(attendance):
    with pytest.raises(ValidationError):
        attendance.register(999, Guest("Lee", "+447700900102"))

def test_headcount(attendance, event):
    attendance.register(event.event_id, Guest("Lee", "+447700900102"), adults=2, children=1)
    attendance.register(event.event_id, Registered(MEMBER_ID), adults=1, children=2)

    assert attendance.headcount(event.event_id) == {
        'event_id': event.event_id,
        'registrations': 2,
        'adults': 3,
        'children': 3,
        'total': 6,
    }

def test_headcount_of_empty_and_missing_events(attendance, event):
    assert attendance.headcount(event.event_id)['total'] == 0
    with pytest.raises(NotFound):
        attendance.headcount(999)

def test_list_is_newest_first(attendance, event, organizer):
    first = attendance.register(event.event_id, Guest("Lee", "+447700900102"))
    second = attendance.register(event.event_id, Guest("Ana", "+447700900103"))

    listed = attendance.list_for_event(organizer, event.event_id)

    assert [r.registration_id for r in listed] == [second.registration_id, first.registration_id]

def test_list_requires_organizer(attendance, event, member):
    with pytest.raises(Forbidden):
        attendance.list_for_event(member, event.event_id)

def test_restricted_contacts(database, event, organizer, other_organizer, admin):
    registry = AttendanceRegistry(database, EngineSettings(expose_guest_contacts=False))
    registry.register(event.event_id, Guest("Lee", "+447700900102"))

    with pytest.raises(Forbidden):
        registry.list_for_event(other_organizer, event.event_id)
    assert len(registry.list_for_event(organizer, event.event_id)) == 1
    assert len(registry.list_for_event(admin, event.event_id)) == 1
