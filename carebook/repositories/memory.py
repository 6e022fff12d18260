"""In-memory repositories.

Used by the test-suite and by ``STORAGE_BACKEND=memory`` for local runs.
Stored models are copied on the way in and out so callers never share state
with the store.
"""

from bisect import bisect_left, insort
from collections import defaultdict
from datetime import datetime
from uuid import UUID

from carebook.repositories.base import (
    AppointmentRepository,
    EventRepository,
    NotificationRepository,
    ProfessionalRepository,
    RecordRepository,
    Repositories,
    ReviewRepository,
)
from carebook.schemas.appointments import (
    Appointment,
    AppointmentFilters,
    AppointmentStatus,
    Review,
)
from carebook.schemas.events import Confirmation, ConfirmationStatus, Event
from carebook.schemas.notifications import StoredNotification
from carebook.schemas.professionals import Professional, ProfessionalStatus, ServiceCategory
from carebook.schemas.records import ServiceRecord

OPEN_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


class InMemoryProfessionalRepository(ProfessionalRepository):
    """Professionals keyed by id."""

    def __init__(self) -> None:
        self._items: dict[UUID, Professional] = {}

    async def get(self, professional_id: UUID) -> Professional | None:
        item = self._items.get(professional_id)
        return item.model_copy(deep=True) if item else None

    async def list(
        self,
        category: ServiceCategory | None = None,
        status: ProfessionalStatus | None = None,
        search: str | None = None,
    ) -> list[Professional]:
        needle = search.lower() if search else None
        items = []
        for item in self._items.values():
            if category and item.category != category:
                continue
            if status and item.status != status:
                continue
            if needle and not any(
                needle in field.lower()
                for field in (item.name, item.email, item.registration_number)
            ):
                continue
            items.append(item.model_copy(deep=True))
        return sorted(items, key=lambda p: p.name.lower())

    async def _find_one(self, predicate) -> Professional | None:
        for item in self._items.values():
            if predicate(item):
                return item.model_copy(deep=True)
        return None

    async def find_by_registration_number(self, registration_number: str) -> Professional | None:
        return await self._find_one(lambda p: p.registration_number == registration_number)

    async def find_by_national_id(self, national_id: str) -> Professional | None:
        return await self._find_one(lambda p: p.national_id == national_id)

    async def find_by_email(self, email: str) -> Professional | None:
        return await self._find_one(lambda p: p.email.lower() == email.lower())

    async def create(self, professional: Professional) -> Professional:
        self._items[professional.id] = professional.model_copy(deep=True)
        return professional.model_copy(deep=True)

    async def update(self, professional: Professional) -> Professional:
        self._items[professional.id] = professional.model_copy(deep=True)
        return professional.model_copy(deep=True)

    async def delete(self, professional_id: UUID) -> bool:
        return self._items.pop(professional_id, None) is not None


class InMemoryAppointmentRepository(AppointmentRepository):
    """Appointments keyed by id, indexed by professional (sorted by start) and patient."""

    def __init__(self) -> None:
        self._items: dict[UUID, Appointment] = {}
        self._by_professional: dict[UUID, list[tuple[datetime, UUID]]] = defaultdict(list)
        self._by_patient: dict[UUID, set[UUID]] = defaultdict(set)

    def _index(self, appointment: Appointment) -> None:
        insort(
            self._by_professional[appointment.professional_id],
            (appointment.scheduled_at, appointment.id),
        )
        self._by_patient[appointment.patient_id].add(appointment.id)

    def _unindex(self, appointment: Appointment) -> None:
        entries = self._by_professional[appointment.professional_id]
        entries.remove((appointment.scheduled_at, appointment.id))
        self._by_patient[appointment.patient_id].discard(appointment.id)

    def _live(self) -> list[Appointment]:
        return [a for a in self._items.values() if a.deleted_at is None]

    async def get(self, appointment_id: UUID, include_deleted: bool = False) -> Appointment | None:
        item = self._items.get(appointment_id)
        if item is None or (item.deleted_at is not None and not include_deleted):
            return None
        return item.model_copy(deep=True)

    async def create(self, appointment: Appointment) -> Appointment:
        stored = appointment.model_copy(deep=True)
        self._items[stored.id] = stored
        self._index(stored)
        return stored.model_copy(deep=True)

    async def update(self, appointment: Appointment) -> Appointment:
        previous = self._items.get(appointment.id)
        if previous is not None:
            self._unindex(previous)
        stored = appointment.model_copy(deep=True)
        self._items[stored.id] = stored
        self._index(stored)
        return stored.model_copy(deep=True)

    async def find_by_professional_and_range(
        self,
        professional_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Appointment]:
        entries = self._by_professional.get(professional_id, [])
        # only entries starting before ``end`` can intersect the range
        cutoff = bisect_left(entries, (end,))
        found = []
        for _, appointment_id in entries[:cutoff]:
            item = self._items[appointment_id]
            if item.deleted_at is None and item.ends_at > start:
                found.append(item.model_copy(deep=True))
        return found

    async def find_by_patient(self, patient_id: UUID) -> list[Appointment]:
        items = [
            self._items[i]
            for i in self._by_patient.get(patient_id, set())
            if self._items[i].deleted_at is None
        ]
        items.sort(key=lambda a: a.scheduled_at, reverse=True)
        return [a.model_copy(deep=True) for a in items]

    async def find_upcoming(
        self,
        professional_id: UUID | None,
        now: datetime,
        limit: int = 10,
    ) -> list[Appointment]:
        items = [
            a
            for a in self._live()
            if a.status in OPEN_STATUSES
            and a.scheduled_at >= now
            and (professional_id is None or a.professional_id == professional_id)
        ]
        items.sort(key=lambda a: a.scheduled_at)
        return [a.model_copy(deep=True) for a in items[:limit]]

    async def find_overdue(self, now: datetime) -> list[Appointment]:
        items = [a for a in self._live() if a.status in OPEN_STATUSES and a.scheduled_at < now]
        items.sort(key=lambda a: a.scheduled_at)
        return [a.model_copy(deep=True) for a in items]

    async def find(
        self,
        filters: AppointmentFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Appointment]:
        items = [a for a in self._live() if filters.matches(a)]
        items.sort(key=lambda a: a.scheduled_at, reverse=True)
        stop = offset + limit if limit is not None else None
        return [a.model_copy(deep=True) for a in items[offset:stop]]

    async def count(self, filters: AppointmentFilters) -> int:
        return sum(1 for a in self._live() if filters.matches(a))

    async def exists_for_professional(self, professional_id: UUID) -> bool:
        return bool(self._by_professional.get(professional_id))

    async def soft_delete(self, appointment_id: UUID, deleted_at: datetime) -> bool:
        item = self._items.get(appointment_id)
        if item is None or item.deleted_at is not None:
            return False
        item.deleted_at = deleted_at
        item.updated_at = deleted_at
        return True

    async def hard_delete(self, appointment_id: UUID) -> bool:
        item = self._items.pop(appointment_id, None)
        if item is None:
            return False
        self._unindex(item)
        return True

    async def lock_professional(self, professional_id: UUID) -> None:
        # single process: the service-level booking lock is sufficient
        return None


class InMemoryReviewRepository(ReviewRepository):
    """Reviews keyed by appointment."""

    def __init__(self) -> None:
        self._by_appointment: dict[UUID, Review] = {}

    async def create(self, review: Review) -> Review:
        self._by_appointment[review.appointment_id] = review.model_copy(deep=True)
        return review.model_copy(deep=True)

    async def get_by_appointment(self, appointment_id: UUID) -> Review | None:
        item = self._by_appointment.get(appointment_id)
        return item.model_copy(deep=True) if item else None

    async def find_by_appointments(self, appointment_ids: list[UUID]) -> list[Review]:
        return [
            self._by_appointment[i].model_copy(deep=True)
            for i in appointment_ids
            if i in self._by_appointment
        ]


class InMemoryRecordRepository(RecordRepository):
    """Service records keyed by id."""

    def __init__(self) -> None:
        self._items: dict[UUID, ServiceRecord] = {}

    async def create(self, record: ServiceRecord) -> ServiceRecord:
        self._items[record.id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def get(self, record_id: UUID) -> ServiceRecord | None:
        item = self._items.get(record_id)
        return item.model_copy(deep=True) if item else None

    async def find(
        self,
        appointment_id: UUID | None = None,
        patient_id: UUID | None = None,
        professional_id: UUID | None = None,
    ) -> list[ServiceRecord]:
        items = [
            r
            for r in self._items.values()
            if (appointment_id is None or r.appointment_id == appointment_id)
            and (patient_id is None or r.patient_id == patient_id)
            and (professional_id is None or r.professional_id == professional_id)
        ]
        items.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in items]


class InMemoryEventRepository(EventRepository):
    """Events plus confirmations keyed by ``(event_id, user_id)``."""

    def __init__(self) -> None:
        self._events: dict[UUID, Event] = {}
        self._confirmations: dict[tuple[UUID, UUID], Confirmation] = {}

    async def create(self, event: Event) -> Event:
        self._events[event.id] = event.model_copy(deep=True)
        return event.model_copy(deep=True)

    async def get(self, event_id: UUID) -> Event | None:
        item = self._events.get(event_id)
        return item.model_copy(deep=True) if item else None

    async def get_confirmation(self, event_id: UUID, user_id: UUID) -> Confirmation | None:
        item = self._confirmations.get((event_id, user_id))
        return item.model_copy(deep=True) if item else None

    async def save_confirmation(self, confirmation: Confirmation) -> Confirmation:
        key = (confirmation.event_id, confirmation.user_id)
        existing = self._confirmations.get(key)
        stored = confirmation.model_copy(deep=True)
        if existing is not None:
            stored.id = existing.id
        self._confirmations[key] = stored
        return stored.model_copy(deep=True)

    async def list_confirmations(self, event_id: UUID) -> list[Confirmation]:
        items = [c for (eid, _), c in self._confirmations.items() if eid == event_id]
        items.sort(key=lambda c: c.responded_at)
        return [c.model_copy(deep=True) for c in items]

    async def count_confirmations(
        self,
        event_id: UUID,
        status: ConfirmationStatus = ConfirmationStatus.CONFIRMED,
    ) -> int:
        return sum(
            1
            for (eid, _), c in self._confirmations.items()
            if eid == event_id and c.status == status
        )

    async def lock_event(self, event_id: UUID) -> None:
        return None


class InMemoryNotificationRepository(NotificationRepository):
    """Notifications in insertion order."""

    def __init__(self) -> None:
        self._items: list[StoredNotification] = []

    async def create(self, notification: StoredNotification) -> StoredNotification:
        self._items.append(notification.model_copy(deep=True))
        return notification.model_copy(deep=True)

    async def list_for_user(self, user_id: UUID) -> list[StoredNotification]:
        items = [n for n in self._items if n.recipient_id == user_id]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return [n.model_copy(deep=True) for n in items]


def create_memory_repositories() -> Repositories:
    """Fresh, empty in-memory repository bundle."""
    return Repositories(
        professionals=InMemoryProfessionalRepository(),
        appointments=InMemoryAppointmentRepository(),
        reviews=InMemoryReviewRepository(),
        records=InMemoryRecordRepository(),
        events=InMemoryEventRepository(),
        notifications=InMemoryNotificationRepository(),
    )
