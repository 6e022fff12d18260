"""Professional schemas for request/response validation."""

from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_serializer, model_validator

from carebook.config import settings


class ServiceCategory(str, Enum):
    """Kinds of assistance a professional provides."""

    PSYCHOLOGICAL = "psychological"
    SOCIAL = "social"
    LEGAL = "legal"
    MEDICAL = "medical"
    PHYSIOTHERAPY = "physiotherapy"
    NUTRITION = "nutrition"


class ProfessionalStatus(str, Enum):
    """Professional status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Modality(str, Enum):
    """How an appointment is delivered."""

    IN_PERSON = "in_person"
    REMOTE = "remote"
    HOME_VISIT = "home_visit"


class BreakPeriod(BaseModel):
    """Unbookable pause inside a working window (lunch, admin time)."""

    start_time: time
    end_time: time

    @model_validator(mode="after")
    def validate_times(self) -> "BreakPeriod":
        if self.end_time <= self.start_time:
            raise ValueError("Break end must be after break start")
        return self


class WorkingHours(BaseModel):
    """Weekly recurring working window, wall-clock in the scheduling timezone."""

    day_of_week: int = Field(..., ge=0, le=6, description="0=Monday, 6=Sunday")
    start_time: time
    end_time: time
    breaks: list[BreakPeriod] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_times(self) -> "WorkingHours":
        # equal start and end is a zero-length window, which is allowed
        if self.end_time < self.start_time:
            raise ValueError("End time must not be before start time")
        for pause in self.breaks:
            if pause.start_time < self.start_time or pause.end_time > self.end_time:
                raise ValueError("Breaks must lie inside the working window")
        return self


class ProfessionalBase(BaseModel):
    """Base professional schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    category: ServiceCategory
    registration_number: str = Field(..., min_length=1, max_length=100)
    national_id: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr
    phone: str | None = Field(None, max_length=20)
    consultation_minutes: int = Field(
        default_factory=lambda: settings.default_consultation_minutes, ge=5, le=480
    )
    consultation_fee: Decimal | None = Field(None, ge=0, decimal_places=2)
    modalities: list[Modality] = Field(default_factory=lambda: list(Modality))
    working_hours: list[WorkingHours] = Field(default_factory=list)


class ProfessionalCreate(ProfessionalBase):
    """Schema for registering a professional."""


class ProfessionalUpdate(BaseModel):
    """Partial update; only fields that were explicitly set are applied."""

    name: str | None = Field(None, min_length=1, max_length=200)
    category: ServiceCategory | None = None
    registration_number: str | None = Field(None, min_length=1, max_length=100)
    national_id: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    consultation_minutes: int | None = Field(None, ge=5, le=480)
    consultation_fee: Decimal | None = Field(None, ge=0, decimal_places=2)
    modalities: list[Modality] | None = None
    working_hours: list[WorkingHours] | None = None


# Fields that may not be cleared through a patch
REQUIRED_PROFESSIONAL_FIELDS = frozenset(
    {
        "name",
        "category",
        "registration_number",
        "email",
        "consultation_minutes",
        "modalities",
        "working_hours",
    }
)


class ProfessionalStatusUpdate(BaseModel):
    """Schema for changing a professional's status."""

    status: ProfessionalStatus
    reason: str | None = Field(None, max_length=500)


class WorkingHoursUpdate(BaseModel):
    """Schema for replacing a professional's weekly schedule."""

    working_hours: list[WorkingHours]


class Professional(ProfessionalBase):
    """Stored professional."""

    id: UUID
    status: ProfessionalStatus = ProfessionalStatus.ACTIVE
    status_reason: str | None = None
    status_changed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("consultation_fee", when_used="json")
    def serialize_fee(self, value: Decimal | None) -> float | None:
        """Serialize Decimal to float for JSON."""
        return float(value) if value is not None else None

    def hours_for(self, day_of_week: int) -> list[WorkingHours]:
        """Working windows on the given weekday."""
        return [h for h in self.working_hours if h.day_of_week == day_of_week]


class ProfessionalStatistics(BaseModel):
    """Registry-wide counts."""

    total: int
    active: int
    inactive: int
    suspended: int
    by_category: dict[ServiceCategory, int]
