"""Attendance registration and report routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends

from ...models import Actor
from ...services import AttendanceRegistry, Reports, identity_from_fields
from ..dependencies import get_actor, get_attendance_registry, get_optional_actor, get_reports
from ..schemas import RegistrationPayload

router = APIRouter(tags=["attendance"])

@router.post("/events/register", response_model=Dict, status_code=201)
async def register_attendance(
    payload: RegistrationPayload,
    actor: Optional[Actor] = Depends(get_optional_actor),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
):
    """Register attendance as a guest, or as the authenticated user."""
    identity = identity_from_fields(
        actor.actor_id if actor else None,
        payload.name,
        payload.contact,
        payload.secondary_contact,
    )
    registration = registry.register(
        payload.event_id,
        identity,
        adults=payload.adults,
        children=payload.children,
        comment=payload.comment,
        on_site=payload.on_site,
    )
    return registration.to_dict()

@router.get("/events/stats/global", response_model=Dict)
async def global_stats(actor: Actor = Depends(get_actor), reports: Reports = Depends(get_reports)):
    return reports.global_stats(actor)

@router.get("/events/{event_id}/registrations", response_model=List[Dict])
async def list_registrations(
    event_id: int,
    actor: Actor = Depends(get_actor),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
):
    return [registration.to_dict() for registration in registry.list_for_event(actor, event_id)]

@router.get("/events/{event_id}/headcount", response_model=Dict)
async def event_headcount(event_id: int, registry: AttendanceRegistry = Depends(get_attendance_registry)):
    """Aggregate attendance, no personal data."""
    return registry.headcount(event_id)

@router.get("/events/{event_id}/details", response_model=Dict)
async def event_details(
    event_id: int,
    actor: Actor = Depends(get_actor),
    reports: Reports = Depends(get_reports),
):
    """Attendees and volunteers of an event for its organizers."""
    return reports.event_roster(actor, event_id)
