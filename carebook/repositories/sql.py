"""PostgreSQL repositories built on SQLAlchemy Core.

Reads never commit so that a ``lock_*`` call, the availability reads that
follow it and the final write share one transaction; every write commits.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.core.exceptions import DuplicateError
from carebook.models import (
    appointments,
    event_confirmations,
    events,
    notifications,
    professionals,
    reviews,
    service_records,
)
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

OPEN_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value)


def _to_row(model: BaseModel, json_fields: tuple[str, ...] = ()) -> dict[str, Any]:
    """Column values for a model; enums become plain values, ``json_fields`` JSON-ready."""
    values = model.model_dump()
    for key, value in values.items():
        if isinstance(value, Enum):
            values[key] = value.value
    for key in json_fields:
        values[key] = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else _plain(item)
            for item in getattr(model, key)
        ]
    return values


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class SqlProfessionalRepository(ProfessionalRepository):
    """Professionals stored in PostgreSQL."""

    JSON_FIELDS = ("working_hours", "modalities")
    UNIQUE_CONSTRAINTS = {
        "professionals_registration_number_key": "registration number",
        "professionals_national_id_key": "national id",
        "uq_professionals_email_lower": "email",
    }

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def _one(self, *conditions: Any) -> Professional | None:
        result = await self.db.execute(select(professionals).where(*conditions))
        row = result.mappings().first()
        return Professional.model_validate(dict(row)) if row else None

    async def get(self, professional_id: UUID) -> Professional | None:
        return await self._one(professionals.c.id == professional_id)

    async def list(
        self,
        category: ServiceCategory | None = None,
        status: ProfessionalStatus | None = None,
        search: str | None = None,
    ) -> list[Professional]:
        conditions = []
        if category:
            conditions.append(professionals.c.category == category.value)
        if status:
            conditions.append(professionals.c.status == status.value)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    professionals.c.name.ilike(pattern),
                    professionals.c.email.ilike(pattern),
                    professionals.c.registration_number.ilike(pattern),
                )
            )

        stmt = select(professionals).where(*conditions).order_by(
            func.lower(professionals.c.name)
        )
        result = await self.db.execute(stmt)
        return [Professional.model_validate(dict(row)) for row in result.mappings().all()]

    async def find_by_registration_number(self, registration_number: str) -> Professional | None:
        return await self._one(professionals.c.registration_number == registration_number)

    async def find_by_national_id(self, national_id: str) -> Professional | None:
        return await self._one(professionals.c.national_id == national_id)

    async def find_by_email(self, email: str) -> Professional | None:
        return await self._one(func.lower(professionals.c.email) == email.lower())

    async def create(self, professional: Professional) -> Professional:
        stmt = (
            insert(professionals)
            .values(**_to_row(professional, self.JSON_FIELDS))
            .returning(professionals)
        )
        return await self._write(stmt)

    async def update(self, professional: Professional) -> Professional:
        values = _to_row(professional, self.JSON_FIELDS)
        values.pop("id")
        stmt = (
            update(professionals)
            .where(professionals.c.id == professional.id)
            .values(**values)
            .returning(professionals)
        )
        return await self._write(stmt)

    async def _write(self, stmt: Any) -> Professional:
        """Execute an insert or update, reporting unique violations as duplicates.

        Concurrent registrations can both pass the service-level uniqueness
        check; the database constraints settle the race.
        """
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            error_msg = str(e.orig) if hasattr(e, "orig") else str(e)
            for constraint, field in self.UNIQUE_CONSTRAINTS.items():
                if constraint in error_msg:
                    raise DuplicateError(
                        f"A professional with this {field} already exists"
                    ) from e
            raise
        return Professional.model_validate(dict(row))

    async def delete(self, professional_id: UUID) -> bool:
        result = await self.db.execute(
            delete(professionals).where(professionals.c.id == professional_id)
        )
        await self.db.commit()
        return result.rowcount > 0


class SqlAppointmentRepository(AppointmentRepository):
    """Appointments stored in PostgreSQL."""

    JSON_FIELDS = ("history",)

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def _many(self, stmt: Any) -> list[Appointment]:
        result = await self.db.execute(stmt)
        return [Appointment.model_validate(dict(row)) for row in result.mappings().all()]

    @staticmethod
    def _filter_conditions(filters: AppointmentFilters) -> list[Any]:
        conditions: list[Any] = [appointments.c.deleted_at.is_(None)]

        if filters.professional_id:
            conditions.append(appointments.c.professional_id == filters.professional_id)
        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)
        if filters.category:
            conditions.append(appointments.c.category == filters.category.value)
        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)
        if filters.modality:
            conditions.append(appointments.c.modality == filters.modality.value)
        if filters.priority:
            conditions.append(appointments.c.priority == filters.priority.value)
        if filters.from_date:
            conditions.append(appointments.c.scheduled_at >= filters.from_date)
        if filters.to_date:
            conditions.append(appointments.c.scheduled_at <= filters.to_date)
        if filters.min_value is not None:
            conditions.append(appointments.c.value >= filters.min_value)
        if filters.max_value is not None:
            conditions.append(appointments.c.value <= filters.max_value)

        return conditions

    async def get(self, appointment_id: UUID, include_deleted: bool = False) -> Appointment | None:
        conditions = [appointments.c.id == appointment_id]
        if not include_deleted:
            conditions.append(appointments.c.deleted_at.is_(None))
        items = await self._many(select(appointments).where(and_(*conditions)))
        return items[0] if items else None

    async def create(self, appointment: Appointment) -> Appointment:
        stmt = (
            insert(appointments)
            .values(**_to_row(appointment, self.JSON_FIELDS))
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return Appointment.model_validate(dict(result.mappings().one()))

    async def update(self, appointment: Appointment) -> Appointment:
        values = _to_row(appointment, self.JSON_FIELDS)
        values.pop("id")
        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment.id)
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return Appointment.model_validate(dict(result.mappings().one()))

    async def find_by_professional_and_range(
        self,
        professional_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(
                appointments.c.professional_id == professional_id,
                appointments.c.deleted_at.is_(None),
                appointments.c.scheduled_at < end,
                appointments.c.ends_at > start,
            )
            .order_by(appointments.c.scheduled_at)
        )
        return await self._many(stmt)

    async def find_by_patient(self, patient_id: UUID) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(
                appointments.c.patient_id == patient_id,
                appointments.c.deleted_at.is_(None),
            )
            .order_by(appointments.c.scheduled_at.desc())
        )
        return await self._many(stmt)

    async def find_upcoming(
        self,
        professional_id: UUID | None,
        now: datetime,
        limit: int = 10,
    ) -> list[Appointment]:
        conditions = [
            appointments.c.deleted_at.is_(None),
            appointments.c.status.in_(OPEN_STATUSES),
            appointments.c.scheduled_at >= now,
        ]
        if professional_id:
            conditions.append(appointments.c.professional_id == professional_id)

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_at)
            .limit(limit)
        )
        return await self._many(stmt)

    async def find_overdue(self, now: datetime) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(
                appointments.c.deleted_at.is_(None),
                appointments.c.status.in_(OPEN_STATUSES),
                appointments.c.scheduled_at < now,
            )
            .order_by(appointments.c.scheduled_at)
        )
        return await self._many(stmt)

    async def find(
        self,
        filters: AppointmentFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(and_(*self._filter_conditions(filters)))
            .order_by(appointments.c.scheduled_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._many(stmt)

    async def count(self, filters: AppointmentFilters) -> int:
        stmt = (
            select(func.count())
            .select_from(appointments)
            .where(and_(*self._filter_conditions(filters)))
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def exists_for_professional(self, professional_id: UUID) -> bool:
        stmt = select(
            select(appointments.c.id)
            .where(appointments.c.professional_id == professional_id)
            .exists()
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def soft_delete(self, appointment_id: UUID, deleted_at: datetime) -> bool:
        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.deleted_at.is_(None),
            )
            .values(deleted_at=deleted_at, updated_at=deleted_at)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def hard_delete(self, appointment_id: UUID) -> bool:
        result = await self.db.execute(
            delete(appointments).where(appointments.c.id == appointment_id)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def lock_professional(self, professional_id: UUID) -> None:
        await self.db.execute(
            select(professionals.c.id)
            .where(professionals.c.id == professional_id)
            .with_for_update()
        )


class SqlReviewRepository(ReviewRepository):
    """Reviews stored in PostgreSQL."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, review: Review) -> Review:
        stmt = insert(reviews).values(**_to_row(review)).returning(reviews)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return Review.model_validate(dict(result.mappings().one()))

    async def get_by_appointment(self, appointment_id: UUID) -> Review | None:
        result = await self.db.execute(
            select(reviews).where(reviews.c.appointment_id == appointment_id)
        )
        row = result.mappings().first()
        return Review.model_validate(dict(row)) if row else None

    async def find_by_appointments(self, appointment_ids: list[UUID]) -> list[Review]:
        if not appointment_ids:
            return []
        result = await self.db.execute(
            select(reviews).where(reviews.c.appointment_id.in_(appointment_ids))
        )
        return [Review.model_validate(dict(row)) for row in result.mappings().all()]


class SqlRecordRepository(RecordRepository):
    """Service records stored in PostgreSQL."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, record: ServiceRecord) -> ServiceRecord:
        stmt = insert(service_records).values(**_to_row(record)).returning(service_records)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return ServiceRecord.model_validate(dict(result.mappings().one()))

    async def get(self, record_id: UUID) -> ServiceRecord | None:
        result = await self.db.execute(
            select(service_records).where(service_records.c.id == record_id)
        )
        row = result.mappings().first()
        return ServiceRecord.model_validate(dict(row)) if row else None

    async def find(
        self,
        appointment_id: UUID | None = None,
        patient_id: UUID | None = None,
        professional_id: UUID | None = None,
    ) -> list[ServiceRecord]:
        conditions = []
        if appointment_id:
            conditions.append(service_records.c.appointment_id == appointment_id)
        if patient_id:
            conditions.append(service_records.c.patient_id == patient_id)
        if professional_id:
            conditions.append(service_records.c.professional_id == professional_id)

        stmt = (
            select(service_records)
            .where(*conditions)
            .order_by(service_records.c.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [ServiceRecord.model_validate(dict(row)) for row in result.mappings().all()]


class SqlEventRepository(EventRepository):
    """Events and confirmations stored in PostgreSQL."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, event: Event) -> Event:
        stmt = insert(events).values(**_to_row(event)).returning(events)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return Event.model_validate(dict(result.mappings().one()))

    async def get(self, event_id: UUID) -> Event | None:
        result = await self.db.execute(select(events).where(events.c.id == event_id))
        row = result.mappings().first()
        return Event.model_validate(dict(row)) if row else None

    async def get_confirmation(self, event_id: UUID, user_id: UUID) -> Confirmation | None:
        result = await self.db.execute(
            select(event_confirmations).where(
                event_confirmations.c.event_id == event_id,
                event_confirmations.c.user_id == user_id,
            )
        )
        row = result.mappings().first()
        return Confirmation.model_validate(dict(row)) if row else None

    async def save_confirmation(self, confirmation: Confirmation) -> Confirmation:
        values = _to_row(confirmation)
        stmt = pg_insert(event_confirmations).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_event_confirmations_event_user",
            set_={
                "status": stmt.excluded.status,
                "notes": stmt.excluded.notes,
                "responded_at": stmt.excluded.responded_at,
            },
        ).returning(event_confirmations)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return Confirmation.model_validate(dict(result.mappings().one()))

    async def list_confirmations(self, event_id: UUID) -> list[Confirmation]:
        result = await self.db.execute(
            select(event_confirmations)
            .where(event_confirmations.c.event_id == event_id)
            .order_by(event_confirmations.c.responded_at)
        )
        return [Confirmation.model_validate(dict(row)) for row in result.mappings().all()]

    async def count_confirmations(
        self,
        event_id: UUID,
        status: ConfirmationStatus = ConfirmationStatus.CONFIRMED,
    ) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(event_confirmations)
            .where(
                event_confirmations.c.event_id == event_id,
                event_confirmations.c.status == status.value,
            )
        )
        return result.scalar() or 0

    async def lock_event(self, event_id: UUID) -> None:
        await self.db.execute(select(events.c.id).where(events.c.id == event_id).with_for_update())


class SqlNotificationRepository(NotificationRepository):
    """Notification inbox stored in PostgreSQL."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, notification: StoredNotification) -> StoredNotification:
        stmt = insert(notifications).values(**_to_row(notification)).returning(notifications)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return StoredNotification.model_validate(dict(result.mappings().one()))

    async def list_for_user(self, user_id: UUID) -> list[StoredNotification]:
        result = await self.db.execute(
            select(notifications)
            .where(notifications.c.recipient_id == user_id)
            .order_by(notifications.c.created_at.desc())
        )
        return [StoredNotification.model_validate(dict(row)) for row in result.mappings().all()]


def create_sql_repositories(db: AsyncSession) -> Repositories:
    """Repository bundle sharing one database session."""
    return Repositories(
        professionals=SqlProfessionalRepository(db),
        appointments=SqlAppointmentRepository(db),
        reviews=SqlReviewRepository(db),
        records=SqlRecordRepository(db),
        events=SqlEventRepository(db),
        notifications=SqlNotificationRepository(db),
    )
