"""Notification schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationCategory(str, Enum):
    """What a notification is about."""

    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_STATUS = "appointment_status"
    EVENT_DECLINED = "event_declined"
    OTHER = "other"


class NotificationPriority(str, Enum):
    """Notification priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationRequest(BaseModel):
    """Message handed to the notifier; delivery is fire-and-forget."""

    recipient_id: UUID
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=1000)
    category: NotificationCategory = NotificationCategory.OTHER
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: str | None = Field(None, description="Deep link inside the client app")


class StoredNotification(NotificationRequest):
    """Notification persisted in the user's inbox."""

    id: UUID
    read_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
