"""Tests for statistics and reports."""

from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from pydantic import ValidationError as PydanticValidationError

from carebook.core.exceptions import ValidationError
from carebook.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentStatus,
    ReviewCreate,
)
from carebook.schemas.professionals import Modality, ServiceCategory
from tests.conftest import at


@pytest_asyncio.fixture
async def history(appointment_service, professional, clock):
    """Two completed and reviewed, one cancelled, one still scheduled on Monday."""

    async def book(hour, minute=0, **extra):
        return await appointment_service.create_appointment(
            AppointmentCreate(
                patient_id=uuid4(),
                professional_id=professional.id,
                scheduled_at=at(hour, minute),
                **extra,
            )
        )

    first = await book(9)
    cancelled = await book(9, 30)
    scheduled = await book(10, value=Decimal("80.00"))
    last = await book(11)
    await appointment_service.confirm(first.id)
    await appointment_service.confirm(last.id)
    await appointment_service.cancel(cancelled.id, "Schedule clash")

    for appointment, score in ((first, 4), (last, 5)):
        clock.set(appointment.scheduled_at)
        await appointment_service.start(appointment.id)
        await appointment_service.complete(appointment.id)
        await appointment_service.rate(appointment.id, ReviewCreate(score=score))

    clock.set(at(12))
    return {"first": first, "cancelled": cancelled, "scheduled": scheduled, "last": last}


@pytest.mark.asyncio
async def test_generate_statistics(statistics_service, history) -> None:
    stats = await statistics_service.generate_statistics()

    assert stats.total == 4
    assert stats.today == 4
    assert stats.this_week == 4
    assert stats.this_month == 4
    assert stats.by_status[AppointmentStatus.COMPLETED] == 2
    assert stats.by_status[AppointmentStatus.CANCELLED] == 1
    assert stats.by_status[AppointmentStatus.SCHEDULED] == 1
    assert stats.by_status[AppointmentStatus.NO_SHOW] == 0
    assert stats.by_category[ServiceCategory.PSYCHOLOGICAL] == 4
    assert stats.by_modality[Modality.IN_PERSON] == 4
    assert stats.revenue == Decimal("300.00")
    assert stats.average_rating == 4.5
    assert stats.completion_rate == 0.5


@pytest.mark.asyncio
async def test_statistics_time_window(statistics_service, history) -> None:
    stats = await statistics_service.generate_statistics(start=at(10))

    assert stats.total == 2
    assert stats.revenue == Decimal("150.00")
    assert stats.average_rating == 5.0
    assert stats.completion_rate == 0.5


@pytest.mark.asyncio
async def test_week_buckets_start_on_monday(statistics_service, history, clock) -> None:
    # the Sunday before: same month, previous week
    clock.set(at(12).replace(day=6))

    stats = await statistics_service.generate_statistics()

    assert stats.today == 0
    assert stats.this_week == 0
    assert stats.this_month == 4


@pytest.mark.asyncio
async def test_statistics_for_unknown_professional_are_zero(statistics_service, history):
    stats = await statistics_service.generate_statistics(professional_id=uuid4())

    assert stats.total == 0
    assert stats.revenue == Decimal("0")
    assert stats.average_rating == 0.0
    assert stats.completion_rate == 0.0
    assert set(stats.by_status) == set(AppointmentStatus)
    assert all(count == 0 for count in stats.by_status.values())


@pytest.mark.asyncio
async def test_generate_report(statistics_service, history) -> None:
    report = await statistics_service.generate_report(
        AppointmentFilters(status=AppointmentStatus.COMPLETED)
    )

    assert report.total == 2
    assert {a.id for a in report.appointments} == {history["first"].id, history["last"].id}
    assert report.revenue == Decimal("300.00")
    assert report.average_rating == 4.5
    assert report.by_category[ServiceCategory.PSYCHOLOGICAL] == 2


@pytest.mark.asyncio
async def test_report_value_range(statistics_service, history) -> None:
    report = await statistics_service.generate_report(
        AppointmentFilters(max_value=Decimal("100"))
    )
    assert [a.id for a in report.appointments] == [history["scheduled"].id]
    assert report.revenue == Decimal("0")


@pytest.mark.asyncio
async def test_statistics_bounds_require_timezone(statistics_service, history) -> None:
    with pytest.raises(ValidationError):
        await statistics_service.generate_statistics(start=at(10).replace(tzinfo=None))
    with pytest.raises(PydanticValidationError):
        AppointmentFilters(to_date=at(10).replace(tzinfo=None))
