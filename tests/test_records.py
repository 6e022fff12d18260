"""Tests for service records."""

from datetime import timedelta
from uuid import uuid4

import pytest

from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.schemas.appointments import AppointmentCreate
from carebook.schemas.records import RecordKind, ServiceRecordCreate
from tests.conftest import at


@pytest.mark.asyncio
async def test_record_copies_appointment_parties(
    record_service, appointment_service, professional, patient_id, user_id, clock
) -> None:
    appointment = await appointment_service.create_appointment(
        AppointmentCreate(
            patient_id=patient_id, professional_id=professional.id, scheduled_at=at(9)
        )
    )

    first = await record_service.create_record(
        ServiceRecordCreate(appointment_id=appointment.id, content="Initial assessment"),
        author_id=user_id,
    )
    clock.advance(timedelta(minutes=5))
    second = await record_service.create_record(
        ServiceRecordCreate(
            appointment_id=appointment.id,
            kind=RecordKind.REFERRAL,
            content="Referred to social assistance",
            recommendations="Contact CRAS",
        )
    )

    assert first.patient_id == patient_id
    assert first.professional_id == professional.id
    assert first.created_by == user_id
    assert await record_service.get_record(first.id) == first

    by_patient = await record_service.find_records(patient_id=patient_id)
    assert [r.id for r in by_patient] == [second.id, first.id]
    assert await record_service.find_records(professional_id=uuid4()) == []


@pytest.mark.asyncio
async def test_record_needs_content_and_appointment(record_service) -> None:
    with pytest.raises(ValidationError):
        await record_service.create_record(
            ServiceRecordCreate(appointment_id=uuid4(), content="   ")
        )
    with pytest.raises(NotFoundError):
        await record_service.create_record(
            ServiceRecordCreate(appointment_id=uuid4(), content="Notes")
        )
    with pytest.raises(NotFoundError):
        await record_service.get_record(uuid4())
