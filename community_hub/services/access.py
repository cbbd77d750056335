"""Role and ownership checks applied by the registries."""

import logging
from typing import Tuple

from ..config.engine import OwnershipPolicy
from ..errors import Forbidden
from ..models import Actor, Event

logger = logging.getLogger(__name__)

def can_manage_event(actor: Actor, event: Event, policy: OwnershipPolicy) -> Tuple[bool, str]:
    """
    Decide whether an actor may mutate an event and its tasks.

    Returns:
        Tuple of (allowed, reason)
    """
    if not actor.is_organizer:
        return False, f"role {actor.role.value} is not an organizer role"
    if actor.is_admin:
        return True, "admin"
    if policy == OwnershipPolicy.ANY_ORGANIZER:
        return True, "any organizer may manage events"
    if event.organizer_id == actor.actor_id:
        return True, "owner"
    return False, f"event {event.event_id} belongs to organizer {event.organizer_id}"

def require_organizer(actor: Actor, action: str) -> None:
    """Raise Forbidden unless the actor is Admin or Organizer."""
    if not actor.is_organizer:
        logger.warning(f"Denied {action} for actor {actor.actor_id}: role {actor.role.value}")
        raise Forbidden(f"Role {actor.role.value} may not {action}")

def require_event_manager(actor: Actor, event: Event, policy: OwnershipPolicy, action: str) -> None:
    """Raise Forbidden unless the ownership policy lets the actor manage the event."""
    allowed, reason = can_manage_event(actor, event, policy)
    if not allowed:
        logger.warning(f"Denied {action} on event {event.event_id} for actor {actor.actor_id}: {reason}")
        raise Forbidden(f"Not allowed to {action} event {event.event_id}")

def may_see_contacts(actor: Actor, event: Event, expose_guest_contacts: bool) -> bool:
    """
    Whether a viewer may see names and phone numbers of an event's participants.

    With expose_guest_contacts on, every organizer may. Otherwise only the
    event owner and admins; everyone else gets aggregate counts.
    """
    if not actor.is_organizer:
        return False
    if expose_guest_contacts or actor.is_admin:
        return True
    return event.organizer_id == actor.actor_id
