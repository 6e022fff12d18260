"""Appointment schemas for request/response validation."""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_serializer, field_validator

from carebook.schemas.professionals import Modality, ServiceCategory


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    # Legacy value; reschedules move appointments back to SCHEDULED
    RESCHEDULED = "rescheduled"


# Statuses whose slot no longer blocks the professional's calendar
RELEASED_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class Priority(str, Enum):
    """Appointment priority enumeration."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class AppointmentAction(str, Enum):
    """Events recorded in an appointment's history."""

    CREATED = "created"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    STARTED = "started"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class AppointmentHistoryEntry(BaseModel):
    """One recorded status change."""

    action: AppointmentAction
    from_status: AppointmentStatus | None = None
    to_status: AppointmentStatus
    actor_id: UUID | None = None
    notes: str | None = None
    occurred_at: datetime

    model_config = {"from_attributes": True}


class AppointmentCreate(BaseModel):
    """Booking request."""

    patient_id: UUID
    professional_id: UUID
    category: ServiceCategory | None = Field(
        None, description="Defaults to the professional's category"
    )
    scheduled_at: datetime
    duration_minutes: int | None = Field(
        None, ge=5, le=480, description="Defaults to the professional's consultation length"
    )
    modality: Modality = Modality.IN_PERSON
    priority: Priority = Priority.NORMAL
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)
    value: Decimal | None = Field(
        None, ge=0, decimal_places=2, description="Defaults to the professional's fee"
    )

    @field_validator("scheduled_at")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are ambiguous across timezones."""
        if v.tzinfo is None:
            raise ValueError("scheduled_at must include a timezone offset")
        return v


class AppointmentUpdate(BaseModel):
    """Partial update of non-scheduling fields.

    Only explicitly set fields are applied. Time and status changes go through
    the dedicated transition operations.
    """

    modality: Modality | None = None
    priority: Priority | None = None
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)
    value: Decimal | None = Field(None, ge=0, decimal_places=2)


# Fields that may not be cleared through a patch
REQUIRED_APPOINTMENT_FIELDS = frozenset({"modality", "priority"})


class CancelRequest(BaseModel):
    """Cancellation payload."""

    reason: str = Field(..., max_length=500)


class RescheduleRequest(BaseModel):
    """Move an appointment to a new slot."""

    scheduled_at: datetime
    duration_minutes: int | None = Field(None, ge=5, le=480)

    @field_validator("scheduled_at")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are ambiguous across timezones."""
        if v.tzinfo is None:
            raise ValueError("scheduled_at must include a timezone offset")
        return v


class StartRequest(BaseModel):
    """Start payload; ``override`` lets staff begin before the booked time."""

    override: bool = False


class CompleteRequest(BaseModel):
    """Completion payload."""

    notes: str | None = Field(None, max_length=4000)


class Appointment(BaseModel):
    """Stored appointment."""

    id: UUID
    patient_id: UUID
    professional_id: UUID
    category: ServiceCategory
    scheduled_at: datetime
    duration_minutes: int
    modality: Modality
    priority: Priority
    status: AppointmentStatus
    reason: str | None = None
    notes: str | None = None
    professional_notes: str | None = None
    cancellation_reason: str | None = None
    value: Decimal | None = None
    created_by: UUID | None = None
    status_changed_by: UUID | None = None
    status_changed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    history: list[AppointmentHistoryEntry] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    @property
    def blocks_calendar(self) -> bool:
        """Whether this appointment still occupies its slot."""
        return self.deleted_at is None and self.status not in RELEASED_STATUSES

    @field_serializer("value", when_used="json")
    def serialize_value(self, value: Decimal | None) -> float | None:
        """Serialize Decimal to float for JSON."""
        return float(value) if value is not None else None


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[Appointment]


class AppointmentFilters(BaseModel):
    """Structured report/list predicate; an unset field does not filter."""

    professional_id: UUID | None = None
    patient_id: UUID | None = None
    category: ServiceCategory | None = None
    status: AppointmentStatus | None = None
    modality: Modality | None = None
    priority: Priority | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    min_value: Decimal | None = Field(None, ge=0)
    max_value: Decimal | None = Field(None, ge=0)

    @field_validator("from_date", "to_date")
    @classmethod
    def require_timezone(cls, v: datetime | None) -> datetime | None:
        """Naive bounds cannot be compared with stored start times."""
        if v is not None and v.tzinfo is None:
            raise ValueError("date filters must include a timezone offset")
        return v

    def matches(self, appointment: Appointment) -> bool:
        """Evaluate the predicate in memory."""
        checks = (
            (self.professional_id, lambda: appointment.professional_id == self.professional_id),
            (self.patient_id, lambda: appointment.patient_id == self.patient_id),
            (self.category, lambda: appointment.category == self.category),
            (self.status, lambda: appointment.status == self.status),
            (self.modality, lambda: appointment.modality == self.modality),
            (self.priority, lambda: appointment.priority == self.priority),
            (self.from_date, lambda: appointment.scheduled_at >= self.from_date),
            (self.to_date, lambda: appointment.scheduled_at <= self.to_date),
            (
                self.min_value,
                lambda: appointment.value is not None and appointment.value >= self.min_value,
            ),
            (
                self.max_value,
                lambda: appointment.value is not None and appointment.value <= self.max_value,
            ),
        )
        return all(check() for value, check in checks if value is not None)


class ReviewCreate(BaseModel):
    """Rating of a completed appointment."""

    score: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)
    would_recommend: bool = True


class Review(ReviewCreate):
    """Stored review."""

    id: UUID
    appointment_id: UUID
    professional_id: UUID
    reviewer_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
