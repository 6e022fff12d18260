"""Read-side aggregation over appointments and reviews."""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal
from enum import Enum
from uuid import UUID

from carebook.config import settings
from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import ValidationError
from carebook.repositories.base import Repositories
from carebook.schemas.appointments import Appointment, AppointmentFilters, AppointmentStatus
from carebook.schemas.professionals import Modality, ServiceCategory
from carebook.schemas.statistics import AppointmentReport, AppointmentStatistics


def _distribution(values: Iterable[Enum], members: type[Enum]) -> dict:
    counts = Counter(values)
    return {member: counts[member] for member in members}


def _revenue(appointments: list[Appointment]) -> Decimal:
    return sum(
        (
            a.value
            for a in appointments
            if a.status == AppointmentStatus.COMPLETED and a.value is not None
        ),
        Decimal("0"),
    )


class StatisticsService:
    """Service deriving counts, revenue and ratings; never writes."""

    def __init__(
        self,
        repositories: Repositories,
        timezone: tzinfo | None = None,
        now: Clock | None = None,
    ):
        """Initialize service with repositories, reporting timezone and clock."""
        self.appointments = repositories.appointments
        self.reviews = repositories.reviews
        self.timezone = timezone or settings.timezone
        self.now = now or utcnow

    async def _average_rating(self, appointments: list[Appointment]) -> float:
        if not appointments:
            return 0.0
        reviews = await self.reviews.find_by_appointments([a.id for a in appointments])
        if not reviews:
            return 0.0
        return round(sum(r.score for r in reviews) / len(reviews), 2)

    async def generate_statistics(
        self,
        professional_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> AppointmentStatistics:
        """
        Aggregate appointments of one professional or of everyone.

        Args:
            professional_id: Restrict to this professional
            start: Only appointments starting at or after this instant
            end: Only appointments starting at or before this instant

        Returns:
            Statistics; every figure is zero when nothing matches

        Raises:
            ValidationError: If a bound has no timezone offset
        """
        if any(bound is not None and bound.tzinfo is None for bound in (start, end)):
            raise ValidationError("Statistics bounds must include a timezone offset")
        items = await self.appointments.find(
            AppointmentFilters(professional_id=professional_id, from_date=start, to_date=end)
        )
        by_status = _distribution((a.status for a in items), AppointmentStatus)

        today = self.now().astimezone(self.timezone).date()
        week_start = today - timedelta(days=today.weekday())
        week_end = week_start + timedelta(days=7)
        local_days = [a.scheduled_at.astimezone(self.timezone).date() for a in items]

        return AppointmentStatistics(
            total=len(items),
            today=sum(1 for d in local_days if d == today),
            this_week=sum(1 for d in local_days if week_start <= d < week_end),
            this_month=sum(1 for d in local_days if (d.year, d.month) == (today.year, today.month)),
            by_status=by_status,
            by_category=_distribution((a.category for a in items), ServiceCategory),
            by_modality=_distribution((a.modality for a in items), Modality),
            revenue=_revenue(items),
            average_rating=await self._average_rating(items),
            completion_rate=(
                round(by_status[AppointmentStatus.COMPLETED] / len(items), 4) if items else 0.0
            ),
        )

    async def generate_report(self, filters: AppointmentFilters) -> AppointmentReport:
        """Appointments matching ``filters`` with their distributions and totals."""
        items = await self.appointments.find(filters)
        return AppointmentReport(
            appointments=items,
            total=len(items),
            by_status=_distribution((a.status for a in items), AppointmentStatus),
            by_category=_distribution((a.category for a in items), ServiceCategory),
            revenue=_revenue(items),
            average_rating=await self._average_rating(items),
        )
