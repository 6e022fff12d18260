"""Tests for free-slot computation and availability checks."""

from datetime import UTC, time, timedelta
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.core.intervals import TimeSlot, merge
from carebook.schemas.appointments import AppointmentCreate
from carebook.schemas.professionals import ProfessionalStatus, WorkingHours
from carebook.services.availability_service import AvailabilityService, working_slots
from tests.conftest import MONDAY, at


def book(professional_id: UUID, patient_id: UUID, hour: int, minute: int = 0, **extra):
    return AppointmentCreate(
        patient_id=patient_id,
        professional_id=professional_id,
        scheduled_at=at(hour, minute),
        **extra,
    )


@pytest.mark.asyncio
async def test_free_slots_around_single_booking(
    availability_service, appointment_service, professional, patient_id
) -> None:
    """Monday 09:00-12:00 with 10:00-10:30 booked leaves two free slots."""
    await appointment_service.create_appointment(book(professional.id, patient_id, 10))

    slots = await availability_service.compute_free_slots(
        professional.id, at(0), at(0) + timedelta(days=1)
    )

    assert list(slots) == [
        TimeSlot(at(9), at(10)),
        TimeSlot(at(10, 30), at(12)),
    ]


@pytest.mark.asyncio
async def test_free_slots_exclude_breaks(availability_service, professional_with_lunch) -> None:
    slots = await availability_service.compute_free_slots(
        professional_with_lunch.id, at(0), at(0) + timedelta(days=1)
    )

    assert list(slots) == [TimeSlot(at(8), at(12)), TimeSlot(at(13), at(17))]


@pytest.mark.asyncio
async def test_abutting_bookings_are_both_accepted(
    availability_service, appointment_service, professional, patient_id
) -> None:
    await appointment_service.create_appointment(book(professional.id, patient_id, 9))
    await appointment_service.create_appointment(book(professional.id, uuid4(), 9, 30))

    slots = await availability_service.compute_free_slots(professional.id, at(0), at(23))

    assert list(slots) == [TimeSlot(at(10), at(12))]


@pytest.mark.asyncio
async def test_slot_sequence_is_restartable(
    availability_service, appointment_service, professional, patient_id
) -> None:
    await appointment_service.create_appointment(book(professional.id, patient_id, 11))
    slots = await availability_service.compute_free_slots(
        professional.id, at(0), at(0) + timedelta(days=14)
    )

    first = list(slots)
    second = list(slots)

    assert first == second
    assert len(first) == 3
    assert bool(slots)


@pytest.mark.asyncio
async def test_range_clips_working_windows(availability_service, professional) -> None:
    slots = await availability_service.compute_free_slots(professional.id, at(10), at(11))
    assert list(slots) == [TimeSlot(at(10), at(11))]


@pytest.mark.asyncio
async def test_range_spanning_two_weeks(availability_service, professional) -> None:
    start = at(0)
    slots = await availability_service.compute_free_slots(
        professional.id, start, start + timedelta(days=14)
    )
    assert list(slots) == [
        TimeSlot(at(9), at(12)),
        TimeSlot(at(9, day=MONDAY + timedelta(days=7)), at(12, day=MONDAY + timedelta(days=7))),
    ]


@pytest.mark.asyncio
async def test_range_ending_at_midnight_excludes_next_day(
    availability_service, professional
) -> None:
    sunday = MONDAY - timedelta(days=1)
    slots = await availability_service.compute_free_slots(
        professional.id, at(0, day=sunday), at(0)
    )
    assert list(slots) == []
    assert not slots


@pytest.mark.asyncio
async def test_zero_length_window_yields_nothing(
    availability_service, professional_service, professional
) -> None:
    await professional_service.set_working_hours(
        professional.id,
        [WorkingHours(day_of_week=0, start_time=time(9, 0), end_time=time(9, 0))],
    )

    slots = await availability_service.compute_free_slots(professional.id, at(0), at(23))

    assert list(slots) == []


@pytest.mark.asyncio
async def test_cancelled_booking_frees_its_slot(
    availability_service, appointment_service, professional, patient_id
) -> None:
    appointment = await appointment_service.create_appointment(
        book(professional.id, patient_id, 10)
    )
    await appointment_service.cancel(appointment.id, "Patient travelling")

    slots = await availability_service.compute_free_slots(professional.id, at(0), at(23))

    assert list(slots) == [TimeSlot(at(9), at(12))]


@pytest.mark.asyncio
async def test_inactive_professional_has_no_free_time(
    availability_service, professional_service, professional
) -> None:
    await professional_service.deactivate(professional.id, "On leave")

    slots = await availability_service.compute_free_slots(professional.id, at(0), at(23))

    assert list(slots) == []
    assert not await availability_service.is_available(
        professional.id, at(9), timedelta(minutes=30)
    )


@pytest.mark.asyncio
async def test_free_slots_cover_working_time_minus_bookings(
    availability_service, appointment_service, professional_with_lunch, patient_id
) -> None:
    pid = professional_with_lunch.id
    for hour, minute in ((8, 30), (11, 30), (13, 0), (16, 30)):
        await appointment_service.create_appointment(book(pid, patient_id, hour, minute))

    slots = list(await availability_service.compute_free_slots(pid, at(0), at(23, 59)))
    booked = [
        TimeSlot(at(h, m), at(h, m) + timedelta(minutes=30))
        for h, m in ((8, 30), (11, 30), (13, 0), (16, 30))
    ]
    working = working_slots(professional_with_lunch, MONDAY, MONDAY, UTC)

    assert merge(slots + booked) == working
    assert all(not s.overlaps(b) for s in slots for b in booked)


@pytest.mark.asyncio
async def test_working_hours_follow_scheduling_timezone(repositories, clock, professional) -> None:
    service = AvailabilityService(
        repositories, timezone=ZoneInfo("America/Sao_Paulo"), now=clock
    )

    slots = await service.compute_free_slots(professional.id, at(0), at(0) + timedelta(days=1))

    # 09:00-12:00 in Sao Paulo (UTC-3)
    assert list(slots) == [TimeSlot(at(12), at(15))]


@pytest.mark.asyncio
async def test_invalid_ranges_are_rejected(availability_service, professional) -> None:
    with pytest.raises(ValidationError):
        await availability_service.compute_free_slots(professional.id, at(12), at(9))
    with pytest.raises(ValidationError):
        await availability_service.compute_free_slots(
            professional.id, at(9).replace(tzinfo=None), at(12)
        )
    with pytest.raises(ValidationError):
        await availability_service.compute_free_slots(
            professional.id, at(0), at(0) + timedelta(days=120)
        )


@pytest.mark.asyncio
async def test_unknown_professional(availability_service) -> None:
    with pytest.raises(NotFoundError):
        await availability_service.compute_free_slots(uuid4(), at(0), at(23))
    with pytest.raises(NotFoundError):
        await availability_service.is_available(uuid4(), at(9), timedelta(minutes=30))


@pytest.mark.asyncio
async def test_is_available(
    availability_service, appointment_service, professional, patient_id
) -> None:
    appointment = await appointment_service.create_appointment(
        book(professional.id, patient_id, 10)
    )
    half_hour = timedelta(minutes=30)

    assert await availability_service.is_available(professional.id, at(9), half_hour)
    assert await availability_service.is_available(professional.id, at(10, 30), half_hour)
    assert not await availability_service.is_available(professional.id, at(10, 15), half_hour)
    assert not await availability_service.is_available(professional.id, at(11, 45), half_hour)
    assert not await availability_service.is_available(professional.id, at(13), half_hour)
    assert await availability_service.is_available(
        professional.id, at(10), half_hour, exclude_appointment_id=appointment.id
    )

    with pytest.raises(ValidationError):
        await availability_service.is_available(
            professional.id, at(9).replace(tzinfo=None), half_hour
        )


@pytest.mark.asyncio
async def test_find_conflict_returns_earliest_clash(
    availability_service, appointment_service, professional, patient_id
) -> None:
    first = await appointment_service.create_appointment(book(professional.id, patient_id, 9))
    await appointment_service.create_appointment(book(professional.id, uuid4(), 9, 30))

    conflict = await availability_service.find_conflict(
        professional.id, at(9), timedelta(hours=1)
    )

    assert conflict is not None
    assert conflict.id == first.id


@pytest.mark.asyncio
async def test_bookable_start_times_skip_bookings_and_past(
    availability_service, appointment_service, professional, patient_id, clock
) -> None:
    await appointment_service.create_appointment(book(professional.id, patient_id, 10))

    times = await availability_service.bookable_start_times(professional.id, at(0), at(23))
    assert times == [at(9), at(9, 30), at(10, 30), at(11), at(11, 30)]

    clock.set(at(9, 45))
    times = await availability_service.bookable_start_times(professional.id, at(0), at(23))
    assert times == [at(10, 30), at(11), at(11, 30)]


@pytest.mark.asyncio
async def test_bookable_start_times_with_longer_duration(
    availability_service, professional
) -> None:
    times = await availability_service.bookable_start_times(
        professional.id, at(0), at(23), timedelta(minutes=50)
    )
    assert times == [at(9), at(9, 50), at(10, 40)]


@pytest.mark.asyncio
async def test_suspended_professional_slot_sequence_is_falsy(
    availability_service, professional_service, professional
) -> None:
    await professional_service.set_status(professional.id, ProfessionalStatus.SUSPENDED)
    slots = await availability_service.compute_free_slots(professional.id, at(0), at(23))
    assert not slots
    assert "SlotSequence" in repr(slots)
