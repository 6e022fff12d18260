"""Statistics and report schemas."""

from decimal import Decimal

from pydantic import BaseModel, field_serializer

from carebook.schemas.appointments import Appointment, AppointmentStatus
from carebook.schemas.professionals import Modality, ServiceCategory


class AppointmentStatistics(BaseModel):
    """Aggregates over a set of appointments."""

    total: int = 0
    today: int = 0
    this_week: int = 0
    this_month: int = 0
    by_status: dict[AppointmentStatus, int]
    by_category: dict[ServiceCategory, int]
    by_modality: dict[Modality, int]
    revenue: Decimal = Decimal("0")
    average_rating: float = 0.0
    completion_rate: float = 0.0

    @field_serializer("revenue", when_used="json")
    def serialize_revenue(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)


class AppointmentReport(BaseModel):
    """Filtered appointment listing with its distributions."""

    appointments: list[Appointment]
    total: int
    by_status: dict[AppointmentStatus, int]
    by_category: dict[ServiceCategory, int]
    revenue: Decimal = Decimal("0")
    average_rating: float = 0.0

    @field_serializer("revenue", when_used="json")
    def serialize_revenue(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)
