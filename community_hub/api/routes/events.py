"""Events router module."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from ...models import Actor
from ...services import EventRegistry, RecurrenceGenerator
from ..dependencies import get_actor, get_event_registry, get_recurrence_generator
from ..schemas import EventPayload, PublishPayload, RepeatPayload

router = APIRouter(tags=["events"])

@router.get("/events/public", response_model=List[Dict])
async def list_public_events(registry: EventRegistry = Depends(get_event_registry)):
    """Published events for the public calendar."""
    return [event.to_dict() for event in registry.list_public()]

@router.get("/events", response_model=List[Dict])
async def list_organizer_events(
    actor: Actor = Depends(get_actor),
    registry: EventRegistry = Depends(get_event_registry),
):
    """Events for the admin console, with organizer names."""
    events = registry.list_for_organizer(actor)
    names = registry.organizer_names(events)
    return [event.to_dict(organizer_name=names.get(event.organizer_id)) for event in events]

@router.get("/events/{event_id}", response_model=Dict)
async def get_event(event_id: int, registry: EventRegistry = Depends(get_event_registry)):
    """Get a single event by ID."""
    return registry.get(event_id).to_dict()

@router.post("/events", response_model=Dict, status_code=201)
async def create_event(
    payload: EventPayload,
    actor: Actor = Depends(get_actor),
    registry: EventRegistry = Depends(get_event_registry),
):
    event = registry.create(
        actor,
        title=payload.title,
        category=payload.category,
        start_datetime=payload.start_datetime,
        end_datetime=payload.end_datetime,
        location_name=payload.location_name,
        description=payload.description,
        is_published=payload.is_published,
    )
    return event.to_dict()

@router.put("/events/{event_id}", response_model=Dict)
async def update_event(
    event_id: int,
    payload: EventPayload,
    actor: Actor = Depends(get_actor),
    registry: EventRegistry = Depends(get_event_registry),
):
    event = registry.update(
        actor,
        event_id,
        title=payload.title,
        category=payload.category,
        start_datetime=payload.start_datetime,
        end_datetime=payload.end_datetime,
        location_name=payload.location_name,
        description=payload.description,
    )
    return event.to_dict()

@router.put("/events/{event_id}/publish", response_model=Dict)
async def publish_event(
    event_id: int,
    payload: PublishPayload,
    actor: Actor = Depends(get_actor),
    registry: EventRegistry = Depends(get_event_registry),
):
    return registry.set_published(actor, event_id, payload.is_published).to_dict()

@router.delete("/events/{event_id}", response_model=Dict)
async def delete_event(
    event_id: int,
    actor: Actor = Depends(get_actor),
    registry: EventRegistry = Depends(get_event_registry),
):
    """Delete an event with its tasks, sign-ups and registrations."""
    removed = registry.delete(actor, event_id)
    return {"message": f"Event {event_id} deleted", "removed": removed}

@router.post("/events/{event_id}/repeat")
async def repeat_event(
    event_id: int,
    payload: RepeatPayload,
    actor: Actor = Depends(get_actor),
    generator: RecurrenceGenerator = Depends(get_recurrence_generator),
    idempotency_key: Optional[str] = Header(None),
):
    """
    Create a series of copies of an event.

    Responds 201 when every copy was created, 207 with per-iteration
    outcomes when some were not, and 200 when nothing was requested.
    A retried request carrying the same Idempotency-Key reuses the copies
    created the first time.
    """
    result = generator.generate(
        actor,
        event_id,
        interval_unit=payload.interval_unit,
        interval_value=payload.interval_value,
        repeat_count=payload.repeat_count,
        idempotency_key=idempotency_key if idempotency_key is not None else payload.idempotency_key,
    )
    if not result.outcomes:
        status_code = 200
    elif result.ok:
        status_code = 201
    else:
        status_code = 207
    return JSONResponse(status_code=status_code, content=result.to_dict())
