import pytest

from community_hub.errors import ValidationError
from community_hub.services import (
    ON_SITE_CONTACT,
    ON_SITE_GUEST_NAME,
    Guest,
    Registered,
    identity_from_fields,
    reconcile,
)
from community_hub.tests.conftest import MEMBER_ID

def test_user_id_wins_over_guest_fields():
    identity = identity_from_fields(MEMBER_ID, "Someone", "+447700900100")
    assert identity == Registered(MEMBER_ID)

def test_guest_fields_without_user_id():
    identity = identity_from_fields(None, "Sam", "+447700900100", "07700900100")
    assert identity == Guest("Sam", "+447700900100", "07700900100")

def test_registered_resolves_to_user_only(database):
    with database.session() as session:
        resolved = reconcile(session, Registered(MEMBER_ID))
    assert resolved.user_id == MEMBER_ID
    assert resolved.name is None and resolved.contact is None
    assert resolved.signup_columns()['guest_whatsapp'] is None

def test_unknown_user_is_rejected(database):
    with pytest.raises(ValidationError):
        with database.session() as session:
            reconcile(session, Registered(999))

def test_guest_values_are_stripped(database):
    with database.session() as session:
        resolved = reconcile(session, Guest("  Sam ", " +447700900100 ", "   "))
    assert resolved.is_guest
    assert resolved.name == "Sam"
    assert resolved.contact == "+447700900100"
    assert resolved.secondary_contact is None

@pytest.mark.parametrize("name, contact", [
    (None, "+447700900100"),
    ("Sam", None),
    ("  ", "+447700900100"),
])
def test_incomplete_guest_is_rejected(database, name, contact):
    with pytest.raises(ValidationError):
        with database.session() as session:
            reconcile(session, Guest(name, contact))

def test_on_site_fills_placeholders(database):
    with database.session() as session:
        resolved = reconcile(session, Guest(None, None), on_site=True)
    assert resolved.name == ON_SITE_GUEST_NAME
    assert resolved.contact == ON_SITE_CONTACT

def test_on_site_keeps_given_values(database):
    with database.session() as session:
        resolved = reconcile(session, Guest("Sam", None), on_site=True)
    assert resolved.name == "Sam"
    assert resolved.contact == ON_SITE_CONTACT
