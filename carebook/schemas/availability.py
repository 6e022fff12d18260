"""Availability response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class TimeSlotResponse(BaseModel):
    """A free ``[start, end)`` interval."""

    start: datetime
    end: datetime


class FreeSlotsResponse(BaseModel):
    """Free intervals for a professional within a range."""

    professional_id: UUID
    start: datetime
    end: datetime
    slots: list[TimeSlotResponse]


class StartTimesResponse(BaseModel):
    """Bookable start instants for a given consultation length."""

    professional_id: UUID
    duration_minutes: int
    start_times: list[datetime]


class AvailabilityResponse(BaseModel):
    """Result of a single availability check."""

    professional_id: UUID
    start: datetime
    duration_minutes: int
    available: bool
