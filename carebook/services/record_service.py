"""Service record (consultation write-up) service."""

from uuid import UUID, uuid4

import structlog

from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.repositories.base import Repositories
from carebook.schemas.records import ServiceRecord, ServiceRecordCreate

logger = structlog.get_logger(__name__)


class RecordService:
    """Service for records written against appointments."""

    def __init__(self, repositories: Repositories, now: Clock | None = None):
        """Initialize service with repositories and clock."""
        self.records = repositories.records
        self.appointments = repositories.appointments
        self.now = now or utcnow

    async def create_record(
        self,
        data: ServiceRecordCreate,
        author_id: UUID | None = None,
    ) -> ServiceRecord:
        """
        Attach a record to an appointment.

        Patient and professional are copied from the appointment.

        Raises:
            NotFoundError: If the appointment does not exist
            ValidationError: If the content is blank
        """
        if not data.content.strip():
            raise ValidationError("Record content must not be blank")
        appointment = await self.appointments.get(data.appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        record = await self.records.create(
            ServiceRecord(
                **data.model_dump(),
                id=uuid4(),
                patient_id=appointment.patient_id,
                professional_id=appointment.professional_id,
                created_by=author_id,
                created_at=self.now(),
            )
        )
        logger.info(
            "service_record_created",
            record_id=str(record.id),
            appointment_id=str(record.appointment_id),
            kind=record.kind.value,
        )
        return record

    async def get_record(self, record_id: UUID) -> ServiceRecord:
        """Get a record, raising NotFoundError if absent."""
        record = await self.records.get(record_id)
        if not record:
            raise NotFoundError("Record not found")
        return record

    async def find_records(
        self,
        appointment_id: UUID | None = None,
        patient_id: UUID | None = None,
        professional_id: UUID | None = None,
    ) -> list[ServiceRecord]:
        """Records matching every given reference, newest first."""
        return await self.records.find(
            appointment_id=appointment_id,
            patient_id=patient_id,
            professional_id=professional_id,
        )
