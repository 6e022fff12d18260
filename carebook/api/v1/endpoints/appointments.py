"""Appointment endpoints."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from pydantic import AwareDatetime

from carebook.dependencies import AppointmentServiceDep, CurrentUserId
from carebook.schemas.appointments import (
    Appointment,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentStatus,
    AppointmentUpdate,
    CancelRequest,
    CompleteRequest,
    Priority,
    RescheduleRequest,
    Review,
    ReviewCreate,
    StartRequest,
)
from carebook.schemas.professionals import Modality, ServiceCategory

router = APIRouter()


@router.post(
    "",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Book an appointment with a professional.

    Args:
        data: Booking request
        current_user_id: Authenticated user, recorded as the creator
        service: Appointment service

    Returns:
        Created appointment
    """
    return await service.create_appointment(data, actor_id=current_user_id)


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
    professional_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    category: ServiceCategory | None = Query(None),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    modality: Modality | None = Query(None),
    priority: Priority | None = Query(None),
    from_date: AwareDatetime | None = Query(None),
    to_date: AwareDatetime | None = Query(None),
    min_value: Decimal | None = Query(None, ge=0),
    max_value: Decimal | None = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments with filtering and pagination.

    Args:
        current_user_id: Authenticated user ID
        service: Appointment service
        professional_id: Filter by professional
        patient_id: Filter by patient
        category: Filter by service category
        status_filter: Filter by status
        modality: Filter by modality
        priority: Filter by priority
        from_date: Earliest start
        to_date: Latest start
        min_value: Lowest value
        max_value: Highest value
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        professional_id=professional_id,
        patient_id=patient_id,
        category=category,
        status=status_filter,
        modality=modality,
        priority=priority,
        from_date=from_date,
        to_date=to_date,
        min_value=min_value,
        max_value=max_value,
    )
    return await service.list_appointments(filters, page=page, page_size=page_size)


@router.get(
    "/overdue",
    response_model=list[Appointment],
    status_code=status.HTTP_200_OK,
    summary="Open appointments whose start has passed",
)
async def overdue_appointments(
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> list[Appointment]:
    """Scheduled or confirmed appointments that should already have started."""
    return await service.find_overdue()


@router.get(
    "/upcoming",
    response_model=list[Appointment],
    status_code=status.HTTP_200_OK,
    summary="Next open appointments",
)
async def upcoming_appointments(
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
    professional_id: UUID | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
) -> list[Appointment]:
    """Open appointments that have not started yet, soonest first."""
    return await service.find_upcoming(professional_id, limit)


@router.get(
    "/patients/{patient_id}",
    response_model=list[Appointment],
    status_code=status.HTTP_200_OK,
    summary="Appointments of a patient",
)
async def patient_appointments(
    patient_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> list[Appointment]:
    """A patient's appointments, newest first."""
    return await service.find_by_patient(patient_id)


@router.get(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.patch(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Update appointment details",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Update non-scheduling fields; time and status have their own endpoints.

    Args:
        appointment_id: Appointment ID
        data: Fields to change
        current_user_id: Authenticated user ID
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.update_appointment(appointment_id, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
    hard: bool = Query(False, description="Remove the row instead of soft-deleting it"),
) -> Response:
    """Soft-delete an appointment, or remove it with ``hard=true``."""
    await service.delete_appointment(appointment_id, hard=hard)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{appointment_id}/confirm",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """Confirm a scheduled appointment."""
    return await service.confirm(appointment_id, actor_id=current_user_id)


@router.post(
    "/{appointment_id}/cancel",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: CancelRequest,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """Cancel an open appointment; a reason is required."""
    return await service.cancel(appointment_id, data.reason, actor_id=current_user_id)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: RescheduleRequest,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Move an open appointment to a new slot.

    Args:
        appointment_id: Appointment ID
        data: New start and optional length
        current_user_id: Authenticated user ID
        service: Appointment service

    Returns:
        Rescheduled appointment
    """
    return await service.reschedule(
        appointment_id,
        data.scheduled_at,
        duration_minutes=data.duration_minutes,
        actor_id=current_user_id,
    )


@router.post(
    "/{appointment_id}/start",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Start appointment",
)
async def start_appointment(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
    data: StartRequest | None = None,
) -> Appointment:
    """Begin a confirmed appointment."""
    override = data.override if data else False
    return await service.start(appointment_id, override=override, actor_id=current_user_id)


@router.post(
    "/{appointment_id}/complete",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Complete appointment",
)
async def complete_appointment(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
    data: CompleteRequest | None = None,
) -> Appointment:
    """Finish an in-progress appointment."""
    notes = data.notes if data else None
    return await service.complete(appointment_id, notes=notes, actor_id=current_user_id)


@router.post(
    "/{appointment_id}/no-show",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Mark patient absent",
)
async def mark_no_show(
    appointment_id: UUID,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Appointment:
    """Record that the patient did not attend."""
    return await service.mark_no_show(appointment_id, actor_id=current_user_id)


@router.post(
    "/{appointment_id}/review",
    response_model=Review,
    status_code=status.HTTP_201_CREATED,
    summary="Review appointment",
)
async def review_appointment(
    appointment_id: UUID,
    data: ReviewCreate,
    current_user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> Review:
    """Rate a completed appointment."""
    return await service.rate(appointment_id, data, reviewer_id=current_user_id)
