"""Request bodies accepted by the HTTP API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

class EventPayload(BaseModel):
    title: str
    category: Optional[str] = None
    start_datetime: datetime
    end_datetime: Optional[datetime] = None
    location_name: Optional[str] = None
    description: Optional[str] = None
    is_published: bool = True

class PublishPayload(BaseModel):
    is_published: bool

class RepeatPayload(BaseModel):
    interval_unit: str = Field(description="day, week or month")
    interval_value: int = Field(description="Every N units")
    repeat_count: int = Field(description="Number of copies to create, not counting the source")
    idempotency_key: Optional[str] = None

class TaskPayload(BaseModel):
    title: str
    required_volunteers: int
    description: Optional[str] = None
    deadline_time: Optional[datetime] = None

class NewTaskPayload(TaskPayload):
    event_id: int

class TaskUpdatePayload(TaskPayload):
    status: Optional[str] = None

class SignupPayload(BaseModel):
    """Guest fields are ignored when the caller is authenticated."""
    task_id: int
    name: Optional[str] = None
    whatsapp: Optional[str] = None
    uk_phone: Optional[str] = None
    comment: Optional[str] = None

class RegistrationPayload(BaseModel):
    """on_site marks the walk-up QR flow, where name and contact may be left out."""
    event_id: int
    name: Optional[str] = None
    contact: Optional[str] = None
    secondary_contact: Optional[str] = None
    adults: int = 1
    children: int = 0
    comment: Optional[str] = None
    on_site: bool = False
