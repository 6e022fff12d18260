"""Event attendance schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class EventStatus(str, Enum):
    """Event lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ConfirmationStatus(str, Enum):
    """Attendance response."""

    CONFIRMED = "confirmed"
    DECLINED = "declined"
    PENDING = "pending"


class EventCreate(BaseModel):
    """Schema for creating an event."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=4000)
    starts_at: datetime
    requires_confirmation: bool = True
    max_participants: int | None = Field(None, ge=1)
    responsible_id: UUID


class Event(EventCreate):
    """Stored event."""

    id: UUID
    status: EventStatus = EventStatus.SCHEDULED
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    def is_upcoming(self, now: datetime) -> bool:
        return self.starts_at > now and self.status == EventStatus.SCHEDULED

    def has_room_for(self, confirmed_count: int) -> bool:
        if self.max_participants is None:
            return True
        return confirmed_count < self.max_participants


class ConfirmationRequest(BaseModel):
    """A user's attendance response."""

    status: ConfirmationStatus
    notes: str | None = Field(None, max_length=1000)


class Confirmation(BaseModel):
    """Stored attendance response; one per (event, user)."""

    id: UUID
    event_id: UUID
    user_id: UUID
    status: ConfirmationStatus
    notes: str | None = None
    responded_at: datetime

    model_config = {"from_attributes": True}


class ConfirmationListResponse(BaseModel):
    """Responses for an event with the confirmed head count."""

    event_id: UUID
    confirmed_count: int
    max_participants: int | None
    items: list[Confirmation]
