"""Repository interfaces consumed by the scheduling services.

Implementations never raise for missing data: lookups return ``None`` and
queries return empty lists. They hold no business rules.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from carebook.schemas.appointments import Appointment, AppointmentFilters, Review
from carebook.schemas.events import Confirmation, ConfirmationStatus, Event
from carebook.schemas.notifications import StoredNotification
from carebook.schemas.professionals import Professional, ProfessionalStatus, ServiceCategory
from carebook.schemas.records import ServiceRecord


class ProfessionalRepository(ABC):
    """Storage for professionals."""

    @abstractmethod
    async def get(self, professional_id: UUID) -> Professional | None:
        """Retrieve a professional by ID."""

    @abstractmethod
    async def list(
        self,
        category: ServiceCategory | None = None,
        status: ProfessionalStatus | None = None,
        search: str | None = None,
    ) -> list[Professional]:
        """List professionals ordered by name."""

    @abstractmethod
    async def find_by_registration_number(self, registration_number: str) -> Professional | None:
        """Look up by professional registration number."""

    @abstractmethod
    async def find_by_national_id(self, national_id: str) -> Professional | None:
        """Look up by national id number."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Professional | None:
        """Look up by email, case-insensitively."""

    @abstractmethod
    async def create(self, professional: Professional) -> Professional:
        """Store a new professional."""

    @abstractmethod
    async def update(self, professional: Professional) -> Professional:
        """Replace a stored professional."""

    @abstractmethod
    async def delete(self, professional_id: UUID) -> bool:
        """Physically remove a professional."""


class AppointmentRepository(ABC):
    """Keyed, indexed appointment collection with range queries.

    Soft-deleted appointments are invisible to every read except
    ``get(..., include_deleted=True)``.
    """

    @abstractmethod
    async def get(self, appointment_id: UUID, include_deleted: bool = False) -> Appointment | None:
        """Retrieve an appointment by ID."""

    @abstractmethod
    async def create(self, appointment: Appointment) -> Appointment:
        """Store a new appointment."""

    @abstractmethod
    async def update(self, appointment: Appointment) -> Appointment:
        """Replace a stored appointment."""

    @abstractmethod
    async def find_by_professional_and_range(
        self,
        professional_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Appointment]:
        """Appointments of a professional whose interval intersects ``[start, end)``."""

    @abstractmethod
    async def find_by_patient(self, patient_id: UUID) -> list[Appointment]:
        """Appointments of a patient, newest first."""

    @abstractmethod
    async def find_upcoming(
        self,
        professional_id: UUID | None,
        now: datetime,
        limit: int = 10,
    ) -> list[Appointment]:
        """Scheduled or confirmed appointments starting at or after ``now``, soonest first."""

    @abstractmethod
    async def find_overdue(self, now: datetime) -> list[Appointment]:
        """Scheduled or confirmed appointments whose start has passed."""

    @abstractmethod
    async def find(
        self,
        filters: AppointmentFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Appointment]:
        """Appointments matching ``filters``, newest first."""

    @abstractmethod
    async def count(self, filters: AppointmentFilters) -> int:
        """Number of appointments matching ``filters``."""

    @abstractmethod
    async def exists_for_professional(self, professional_id: UUID) -> bool:
        """Whether any appointment, deleted or not, references the professional."""

    @abstractmethod
    async def soft_delete(self, appointment_id: UUID, deleted_at: datetime) -> bool:
        """Mark an appointment deleted, keeping it for audit."""

    @abstractmethod
    async def hard_delete(self, appointment_id: UUID) -> bool:
        """Physically remove an appointment, skipping referential checks."""

    @abstractmethod
    async def lock_professional(self, professional_id: UUID) -> None:
        """Serialise writers booking the same professional until the next write commits."""


class ReviewRepository(ABC):
    """Storage for appointment reviews."""

    @abstractmethod
    async def create(self, review: Review) -> Review:
        """Store a review."""

    @abstractmethod
    async def get_by_appointment(self, appointment_id: UUID) -> Review | None:
        """Review left for an appointment, if any."""

    @abstractmethod
    async def find_by_appointments(self, appointment_ids: list[UUID]) -> list[Review]:
        """Reviews attached to any of the given appointments."""


class RecordRepository(ABC):
    """Storage for service records."""

    @abstractmethod
    async def create(self, record: ServiceRecord) -> ServiceRecord:
        """Store a record."""

    @abstractmethod
    async def get(self, record_id: UUID) -> ServiceRecord | None:
        """Retrieve a record by ID."""

    @abstractmethod
    async def find(
        self,
        appointment_id: UUID | None = None,
        patient_id: UUID | None = None,
        professional_id: UUID | None = None,
    ) -> list[ServiceRecord]:
        """Records matching every given reference, newest first."""


class EventRepository(ABC):
    """Storage for events and attendance confirmations."""

    @abstractmethod
    async def create(self, event: Event) -> Event:
        """Store an event."""

    @abstractmethod
    async def get(self, event_id: UUID) -> Event | None:
        """Retrieve an event by ID."""

    @abstractmethod
    async def get_confirmation(self, event_id: UUID, user_id: UUID) -> Confirmation | None:
        """A user's response to an event, if any."""

    @abstractmethod
    async def save_confirmation(self, confirmation: Confirmation) -> Confirmation:
        """Insert or replace the response for ``(event_id, user_id)``."""

    @abstractmethod
    async def list_confirmations(self, event_id: UUID) -> list[Confirmation]:
        """All responses to an event."""

    @abstractmethod
    async def count_confirmations(
        self,
        event_id: UUID,
        status: ConfirmationStatus = ConfirmationStatus.CONFIRMED,
    ) -> int:
        """Number of responses with the given status."""

    @abstractmethod
    async def lock_event(self, event_id: UUID) -> None:
        """Serialise writers confirming the same event until the next write commits."""


class NotificationRepository(ABC):
    """Per-user notification inbox."""

    @abstractmethod
    async def create(self, notification: StoredNotification) -> StoredNotification:
        """Store a notification."""

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> list[StoredNotification]:
        """A user's notifications, newest first."""


@dataclass
class Repositories:
    """Bundle of repositories handed to the services."""

    professionals: ProfessionalRepository
    appointments: AppointmentRepository
    reviews: ReviewRepository
    records: RecordRepository
    events: EventRepository
    notifications: NotificationRepository
