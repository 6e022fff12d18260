"""PostgreSQL repository tests; run only when TEST_DATABASE_URL is set."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from carebook.core.exceptions import (
    CapacityExceededError,
    DuplicateError,
    SchedulingConflictError,
)
from carebook.models import metadata
from carebook.repositories.base import Repositories
from carebook.repositories.sql import create_sql_repositories
from carebook.schemas.appointments import AppointmentCreate, AppointmentFilters
from carebook.schemas.events import ConfirmationRequest, ConfirmationStatus, EventCreate
from carebook.services.appointment_service import AppointmentService
from carebook.services.availability_service import AvailabilityService
from carebook.services.event_service import EventService
from carebook.services.professional_service import ProfessionalService
from carebook.services.transitions import BookingLocks
from tests.conftest import NOW, FakeClock, at, professional_data

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")
PATIENT_ID = uuid4()
OTHER_ID = uuid4()

pytestmark = pytest.mark.skipif(
    not TEST_DATABASE_URL, reason="TEST_DATABASE_URL is not set"
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a freshly created schema."""
    url = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sql_repositories(db_session: AsyncSession) -> Repositories:
    return create_sql_repositories(db_session)


@pytest.mark.asyncio
async def test_professional_round_trip(sql_repositories) -> None:
    service = ProfessionalService(sql_repositories, now=FakeClock())
    created = await service.create(professional_data())

    loaded = await service.get(created.id)
    assert loaded.working_hours == created.working_hours
    assert loaded.modalities == created.modalities
    assert await sql_repositories.professionals.find_by_email("ANA.SOUZA@example.com")


@pytest.mark.asyncio
async def test_booking_against_postgres(sql_repositories) -> None:
    clock = FakeClock()
    professional = await ProfessionalService(sql_repositories, now=clock).create(
        professional_data()
    )
    availability = AvailabilityService(sql_repositories, timezone=UTC, now=clock)
    service = AppointmentService(
        sql_repositories, availability=availability, locks=BookingLocks(), now=clock
    )

    first = await service.create_appointment(
        AppointmentCreate(
            patient_id=PATIENT_ID, professional_id=professional.id, scheduled_at=at(10)
        )
    )
    with pytest.raises(SchedulingConflictError):
        await service.create_appointment(
            AppointmentCreate(
                patient_id=PATIENT_ID, professional_id=professional.id, scheduled_at=at(10, 15)
            )
        )

    moved = await service.reschedule(first.id, at(11))
    assert [h.action.value for h in moved.history] == ["created", "rescheduled"]

    slots = await availability.compute_free_slots(professional.id, at(0), at(23))
    assert [(s.start, s.end) for s in slots] == [(at(9), at(11)), (at(11, 30), at(12))]

    await service.delete_appointment(first.id)
    assert await service.appointments.count(AppointmentFilters()) == 0
    assert await sql_repositories.appointments.exists_for_professional(professional.id)


@pytest.mark.asyncio
async def test_confirmation_upsert_and_capacity(sql_repositories) -> None:
    clock = FakeClock()
    service = EventService(sql_repositories, locks=BookingLocks(), now=clock)
    event = await service.create_event(
        EventCreate(
            title="Group session",
            starts_at=NOW + timedelta(days=1),
            max_participants=1,
            responsible_id=PATIENT_ID,
        )
    )
    confirm = ConfirmationRequest(status=ConfirmationStatus.CONFIRMED)

    first = await service.respond(event.id, PATIENT_ID, confirm)
    again = await service.respond(event.id, PATIENT_ID, confirm)
    assert again.id == first.id

    with pytest.raises(CapacityExceededError):
        await service.respond(event.id, OTHER_ID, confirm)
    pending = await service.respond(
        event.id, OTHER_ID, ConfirmationRequest(status=ConfirmationStatus.PENDING)
    )
    assert pending.status == ConfirmationStatus.PENDING


@pytest.mark.asyncio
async def test_unique_violation_is_reported_as_duplicate(sql_repositories) -> None:
    """Writes that skip the service check still surface as duplicates."""
    created = await ProfessionalService(sql_repositories, now=FakeClock()).create(
        professional_data()
    )
    repository = sql_repositories.professionals

    same_email = created.model_copy(
        update={
            "id": uuid4(),
            "registration_number": "CRP-06/99999",
            "national_id": None,
            "email": "Ana.Souza@EXAMPLE.com",
        }
    )
    with pytest.raises(DuplicateError):
        await repository.create(same_email)

    same_registration = created.model_copy(
        update={"id": uuid4(), "national_id": None, "email": "other@example.com"}
    )
    with pytest.raises(DuplicateError):
        await repository.create(same_registration)

    assert len(await repository.list()) == 1
