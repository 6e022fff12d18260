"""Availability calculation for professionals.

Working hours are wall-clock windows in the scheduling timezone; they are
turned into absolute UTC intervals per local date and the intervals occupied
by appointments are subtracted from them.
"""

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta, tzinfo
from uuid import UUID

from carebook.config import settings
from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.core.intervals import TimeSlot, merge, overlaps, pack, subtract
from carebook.repositories.base import Repositories
from carebook.schemas.appointments import Appointment
from carebook.schemas.professionals import Professional, ProfessionalStatus

MAX_RANGE = timedelta(days=92)


def working_slots(
    professional: Professional,
    first_day: date,
    last_day: date,
    tz: tzinfo,
) -> list[TimeSlot]:
    """Bookable working time between two local dates, inclusive, breaks removed."""
    slots: list[TimeSlot] = []
    day = first_day
    while day <= last_day:
        windows = []
        pauses = []
        for hours in professional.hours_for(day.weekday()):
            windows.append(_local_slot(day, hours.start_time, hours.end_time, tz))
            pauses.extend(_local_slot(day, b.start_time, b.end_time, tz) for b in hours.breaks)
        slots.extend(subtract(windows, pauses))
        day += timedelta(days=1)
    return merge(slots)


def _local_slot(day: date, start, end, tz: tzinfo) -> TimeSlot:
    return TimeSlot(
        datetime.combine(day, start, tzinfo=tz).astimezone(UTC),
        datetime.combine(day, end, tzinfo=tz).astimezone(UTC),
    )


class SlotSequence:
    """Free slots of one professional over a range.

    Iterating computes one local day at a time; the sequence can be iterated
    any number of times and always yields the same chronologically ordered
    slots.
    """

    def __init__(
        self,
        professional: Professional,
        range_start: datetime,
        range_end: datetime,
        occupied: list[TimeSlot],
        tz: tzinfo,
    ):
        self.professional = professional
        self.range_start = range_start
        self.range_end = range_end
        self._occupied = merge(occupied)
        self._tz = tz

    def __iter__(self) -> Iterator[TimeSlot]:
        if self.professional.status != ProfessionalStatus.ACTIVE:
            return
        day = self.range_start.astimezone(self._tz).date()
        # the end is exclusive, so a range ending at local midnight stops the day before
        last_day = (self.range_end - timedelta(microseconds=1)).astimezone(self._tz).date()
        while day <= last_day:
            windows = [
                slot.clip(self.range_start, self.range_end)
                for slot in working_slots(self.professional, day, day, self._tz)
            ]
            yield from subtract(windows, self._occupied)
            day += timedelta(days=1)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def __repr__(self) -> str:
        return (
            f"SlotSequence(professional_id={self.professional.id}, "
            f"start={self.range_start.isoformat()}, end={self.range_end.isoformat()})"
        )


class AvailabilityService:
    """Service answering when a professional can be booked."""

    def __init__(
        self,
        repositories: Repositories,
        timezone: tzinfo | None = None,
        now: Clock | None = None,
    ):
        """Initialize service with repositories, scheduling timezone and clock."""
        self.professionals = repositories.professionals
        self.appointments = repositories.appointments
        self.timezone = timezone or settings.timezone
        self.now = now or utcnow

    async def _get_professional(self, professional_id: UUID) -> Professional:
        professional = await self.professionals.get(professional_id)
        if not professional:
            raise NotFoundError("Professional not found")
        return professional

    async def _occupying(
        self,
        professional_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> list[Appointment]:
        found = await self.appointments.find_by_professional_and_range(professional_id, start, end)
        return [
            a
            for a in found
            if a.blocks_calendar and a.id != exclude_appointment_id
        ]

    async def compute_free_slots(
        self,
        professional_id: UUID,
        range_start: datetime,
        range_end: datetime,
    ) -> SlotSequence:
        """
        Free time of a professional within ``[range_start, range_end)``.

        Args:
            professional_id: Professional ID
            range_start: Inclusive start of the range (timezone-aware)
            range_end: Exclusive end of the range (timezone-aware)

        Returns:
            Restartable sequence of free slots, ordered chronologically

        Raises:
            NotFoundError: If the professional does not exist
            ValidationError: If the range is empty, naive or too long
        """
        _validate_range(range_start, range_end)
        professional = await self._get_professional(professional_id)
        occupied = await self._occupying(professional_id, range_start, range_end)
        return SlotSequence(
            professional,
            range_start,
            range_end,
            [TimeSlot(a.scheduled_at, a.ends_at) for a in occupied],
            self.timezone,
        )

    def fits_working_hours(
        self,
        professional: Professional,
        start: datetime,
        end: datetime,
    ) -> bool:
        """Whether ``[start, end)`` lies inside a single stretch of working time."""
        if professional.status != ProfessionalStatus.ACTIVE or end <= start:
            return False
        requested = TimeSlot(start, end)
        first_day = start.astimezone(self.timezone).date()
        last_day = end.astimezone(self.timezone).date()
        return any(
            slot.contains(requested)
            for slot in working_slots(professional, first_day, last_day, self.timezone)
        )

    async def find_conflict(
        self,
        professional_id: UUID,
        start: datetime,
        duration: timedelta,
        exclude_appointment_id: UUID | None = None,
    ) -> Appointment | None:
        """Earliest occupying appointment overlapping ``[start, start + duration)``."""
        end = start + duration
        clashes = [
            a
            for a in await self._occupying(professional_id, start, end, exclude_appointment_id)
            if overlaps(a.scheduled_at, a.ends_at, start, end)
        ]
        return min(clashes, key=lambda a: a.scheduled_at) if clashes else None

    async def is_available(
        self,
        professional_id: UUID,
        start: datetime,
        duration: timedelta,
        exclude_appointment_id: UUID | None = None,
    ) -> bool:
        """
        Check whether a professional can take a booking.

        Args:
            professional_id: Professional ID
            start: Requested start (timezone-aware)
            duration: Requested length
            exclude_appointment_id: Appointment to ignore, used when moving it

        Returns:
            True if the interval is inside working hours and overlaps no booking
        """
        if start.tzinfo is None:
            raise ValidationError("start must include a timezone offset")
        professional = await self._get_professional(professional_id)
        if not self.fits_working_hours(professional, start, start + duration):
            return False
        conflict = await self.find_conflict(
            professional_id, start, duration, exclude_appointment_id
        )
        return conflict is None

    async def bookable_start_times(
        self,
        professional_id: UUID,
        range_start: datetime,
        range_end: datetime,
        duration: timedelta | None = None,
    ) -> list[datetime]:
        """
        Back-to-back consultation start times that are still in the future.

        Args:
            professional_id: Professional ID
            range_start: Inclusive start of the range
            range_end: Exclusive end of the range
            duration: Consultation length, defaults to the professional's own

        Returns:
            Start instants, ordered chronologically
        """
        slots = await self.compute_free_slots(professional_id, range_start, range_end)
        length = duration or timedelta(minutes=slots.professional.consultation_minutes)
        now = self.now()
        return [start for slot in slots for start in pack(slot, length) if start > now]


def _validate_range(range_start: datetime, range_end: datetime) -> None:
    if range_start.tzinfo is None or range_end.tzinfo is None:
        raise ValidationError("Range bounds must include a timezone offset")
    if range_end <= range_start:
        raise ValidationError("Range end must be after range start")
    if range_end - range_start > MAX_RANGE:
        raise ValidationError(f"Range may span at most {MAX_RANGE.days} days")
