"""Identity reconciliation for sign-ups and registrations.

A participant is either a guest, known only by name and contact details, or
a registered user, known by user id. The two forms are modelled as separate
types and this module is the only place that dispatches on them, turning a
request into the columns that get stored.

Walk-up registrations from the on-site QR code are allowed to skip name and
contact entirely: the gaps are filled with ON_SITE_GUEST_NAME and
ON_SITE_CONTACT instead of being rejected.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import User

ON_SITE_GUEST_NAME = "Guest (on-site)"
ON_SITE_CONTACT = "On-site"

@dataclass(frozen=True)
class Guest:
    """A participant without an account."""
    name: Optional[str]
    contact: Optional[str]
    secondary_contact: Optional[str] = None

@dataclass(frozen=True)
class Registered:
    """A participant with an account; contact details live on the user record."""
    user_id: int

Identity = Union[Guest, Registered]

@dataclass(frozen=True)
class ResolvedIdentity:
    """
    A validated identity ready to be stored.

    Either user_id is set and every guest field is None, or user_id is None
    and name/contact are set.
    """
    user_id: Optional[int] = None
    name: Optional[str] = None
    contact: Optional[str] = None
    secondary_contact: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def signup_columns(self) -> Dict[str, Any]:
        """Column values for a VolunteerSignup row."""
        return {
            'user_id': self.user_id,
            'guest_name': self.name,
            'guest_whatsapp': self.contact,
            'guest_uk_phone': self.secondary_contact,
        }

    def registration_columns(self) -> Dict[str, Any]:
        """Column values for an EventRegistration row."""
        return {
            'user_id': self.user_id,
            'guest_name': self.name,
            'guest_contact': self.contact,
            'guest_secondary_contact': self.secondary_contact,
        }

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None

def identity_from_fields(
    user_id: Optional[int] = None,
    name: Optional[str] = None,
    contact: Optional[str] = None,
    secondary_contact: Optional[str] = None,
) -> Identity:
    """
    Build an Identity from loose request fields.

    A user id wins: any guest fields sent alongside it are dropped, so an
    authenticated caller never has to (and never can) submit both forms.
    """
    if user_id is not None:
        return Registered(user_id=user_id)
    return Guest(name=name, contact=contact, secondary_contact=secondary_contact)

def reconcile(session: Session, identity: Identity, on_site: bool = False) -> ResolvedIdentity:
    """
    Validate an identity and normalise it into storable values.

    Args:
        session: Open session, used to look up registered users
        identity: Guest or Registered
        on_site: Request came from the on-site QR flow; missing guest name or
                 contact are replaced with placeholders instead of rejected

    Raises:
        ValidationError: If the identity cannot be resolved
    """
    if isinstance(identity, Registered):
        if session.get(User, identity.user_id) is None:
            raise ValidationError(f"Unknown user {identity.user_id}")
        return ResolvedIdentity(user_id=identity.user_id)

    if isinstance(identity, Guest):
        name = _clean(identity.name)
        contact = _clean(identity.contact)
        secondary = _clean(identity.secondary_contact)
        if on_site:
            name = name or ON_SITE_GUEST_NAME
            contact = contact or ON_SITE_CONTACT
        missing = [label for label, value in (('name', name), ('contact', contact)) if not value]
        if missing:
            raise ValidationError(f"Guest {' and '.join(missing)} required")
        return ResolvedIdentity(name=name, contact=contact, secondary_contact=secondary)

    raise ValidationError("No user id or guest details given")
