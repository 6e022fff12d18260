"""Service record endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from carebook.dependencies import CurrentUserId, RecordServiceDep
from carebook.schemas.records import ServiceRecord, ServiceRecordCreate

router = APIRouter()


@router.post(
    "",
    response_model=ServiceRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Write service record",
)
async def create_record(
    data: ServiceRecordCreate,
    current_user_id: CurrentUserId,
    service: RecordServiceDep,
) -> ServiceRecord:
    """
    Attach a record to an appointment.

    Args:
        data: Record content
        current_user_id: Authenticated user, recorded as the author
        service: Record service

    Returns:
        Created record
    """
    return await service.create_record(data, author_id=current_user_id)


@router.get(
    "",
    response_model=list[ServiceRecord],
    status_code=status.HTTP_200_OK,
    summary="Find service records",
)
async def find_records(
    current_user_id: CurrentUserId,
    service: RecordServiceDep,
    appointment_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    professional_id: UUID | None = Query(None),
) -> list[ServiceRecord]:
    """Records matching every given reference, newest first."""
    return await service.find_records(
        appointment_id=appointment_id,
        patient_id=patient_id,
        professional_id=professional_id,
    )


@router.get(
    "/{record_id}",
    response_model=ServiceRecord,
    status_code=status.HTTP_200_OK,
    summary="Get service record",
)
async def get_record(
    record_id: UUID,
    current_user_id: CurrentUserId,
    service: RecordServiceDep,
) -> ServiceRecord:
    """Get a specific record by ID."""
    return await service.get_record(record_id)
