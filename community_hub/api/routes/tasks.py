"""Volunteer task routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends

from ...models import Actor
from ...services import CapacityAggregator, TaskRegistry, identity_from_fields
from ..dependencies import get_actor, get_capacity_aggregator, get_optional_actor, get_task_registry
from ..schemas import NewTaskPayload, SignupPayload, TaskUpdatePayload

router = APIRouter(tags=["tasks"])

@router.post("/tasks", response_model=Dict, status_code=201)
async def create_task(
    payload: NewTaskPayload,
    actor: Actor = Depends(get_actor),
    registry: TaskRegistry = Depends(get_task_registry),
):
    view = registry.create(
        actor,
        payload.event_id,
        title=payload.title,
        required_volunteers=payload.required_volunteers,
        description=payload.description,
        deadline_time=payload.deadline_time,
    )
    return view.to_dict()

@router.post("/tasks/signup", response_model=Dict, status_code=201)
async def sign_up(
    payload: SignupPayload,
    actor: Optional[Actor] = Depends(get_optional_actor),
    registry: TaskRegistry = Depends(get_task_registry),
):
    """Sign up for a task as a guest, or as the authenticated user."""
    identity = identity_from_fields(
        actor.actor_id if actor else None,
        payload.name,
        payload.whatsapp,
        payload.uk_phone,
    )
    signup = registry.sign_up(payload.task_id, identity, comment=payload.comment)
    return signup.to_dict()

@router.put("/tasks/{task_id}", response_model=Dict)
async def update_task(
    task_id: int,
    payload: TaskUpdatePayload,
    actor: Actor = Depends(get_actor),
    registry: TaskRegistry = Depends(get_task_registry),
):
    view = registry.update(
        actor,
        task_id,
        title=payload.title,
        required_volunteers=payload.required_volunteers,
        description=payload.description,
        deadline_time=payload.deadline_time,
        status=payload.status,
    )
    return view.to_dict()

@router.delete("/tasks/{task_id}", response_model=Dict)
async def delete_task(
    task_id: int,
    actor: Actor = Depends(get_actor),
    registry: TaskRegistry = Depends(get_task_registry),
):
    removed = registry.delete(actor, task_id)
    return {"message": f"Task {task_id} deleted", "removed_signups": removed}

@router.get("/tasks/public/{event_id}", response_model=List[Dict])
async def list_public_tasks(event_id: int, registry: TaskRegistry = Depends(get_task_registry)):
    """Tasks of an event with capacity only."""
    return [view.to_dict() for view in registry.list_for_event(event_id)]

@router.get("/tasks/capacity/{task_id}", response_model=Dict)
async def task_capacity(task_id: int, aggregator: CapacityAggregator = Depends(get_capacity_aggregator)):
    return aggregator.for_task(task_id).to_dict()

@router.get("/tasks/{event_id}", response_model=List[Dict])
async def list_tasks(
    event_id: int,
    actor: Actor = Depends(get_actor),
    registry: TaskRegistry = Depends(get_task_registry),
):
    """Tasks of an event, with volunteers when the caller may see them."""
    return [view.to_dict() for view in registry.list_for_event(event_id, viewer=actor)]
