"""Professional registry and availability endpoints."""

from datetime import date, datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from carebook.dependencies import (
    AvailabilityServiceDep,
    CurrentUserId,
    ProfessionalServiceDep,
)
from carebook.schemas.availability import (
    AvailabilityResponse,
    FreeSlotsResponse,
    StartTimesResponse,
    TimeSlotResponse,
)
from carebook.schemas.professionals import (
    Professional,
    ProfessionalCreate,
    ProfessionalStatistics,
    ProfessionalStatus,
    ProfessionalStatusUpdate,
    ProfessionalUpdate,
    ServiceCategory,
    WorkingHoursUpdate,
)

router = APIRouter()


@router.post(
    "",
    response_model=Professional,
    status_code=status.HTTP_201_CREATED,
    summary="Register professional",
)
async def create_professional(
    data: ProfessionalCreate,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> Professional:
    """
    Register a new professional.

    Args:
        data: Professional registration data
        current_user_id: Authenticated user ID
        service: Professional service

    Returns:
        Created professional
    """
    return await service.create(data)


@router.get(
    "",
    response_model=list[Professional],
    status_code=status.HTTP_200_OK,
    summary="List professionals",
)
async def list_professionals(
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
    category: ServiceCategory | None = Query(None),
    status_filter: ProfessionalStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
) -> list[Professional]:
    """
    List professionals ordered by name.

    Args:
        current_user_id: Authenticated user ID
        service: Professional service
        category: Filter by service category
        status_filter: Filter by status
        search: Case-insensitive match on name, email or registration number

    Returns:
        Matching professionals
    """
    return await service.list_professionals(
        category=category, status=status_filter, search=search
    )


@router.get(
    "/statistics",
    response_model=ProfessionalStatistics,
    status_code=status.HTTP_200_OK,
    summary="Registry statistics",
)
async def professional_statistics(
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> ProfessionalStatistics:
    """Counts of professionals by status and category."""
    return await service.statistics()


@router.get(
    "/available",
    response_model=list[Professional],
    status_code=status.HTTP_200_OK,
    summary="Professionals working on a date",
)
async def available_professionals(
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
    category: ServiceCategory = Query(...),
    on_date: date = Query(..., alias="date"),
) -> list[Professional]:
    """
    Active professionals of a category with working hours on the given date.

    Args:
        current_user_id: Authenticated user ID
        service: Professional service
        category: Service category
        on_date: Date to check

    Returns:
        Matching professionals
    """
    return await service.find_available_on_date(category, on_date)


@router.get(
    "/{professional_id}",
    response_model=Professional,
    status_code=status.HTTP_200_OK,
    summary="Get professional by ID",
)
async def get_professional(
    professional_id: UUID,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> Professional:
    """Get a specific professional by ID."""
    return await service.get(professional_id)


@router.patch(
    "/{professional_id}",
    response_model=Professional,
    status_code=status.HTTP_200_OK,
    summary="Update professional",
)
async def update_professional(
    professional_id: UUID,
    data: ProfessionalUpdate,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> Professional:
    """
    Update a professional; only fields present in the body change.

    Args:
        professional_id: Professional ID
        data: Fields to change
        current_user_id: Authenticated user ID
        service: Professional service

    Returns:
        Updated professional
    """
    return await service.update(professional_id, data)


@router.delete(
    "/{professional_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete professional",
)
async def delete_professional(
    professional_id: UUID,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
    force: bool = Query(False, description="Delete even if appointments reference it"),
) -> Response:
    """Physically remove a professional."""
    await service.delete(professional_id, force=force)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{professional_id}/status",
    response_model=Professional,
    status_code=status.HTTP_200_OK,
    summary="Change professional status",
)
async def set_professional_status(
    professional_id: UUID,
    data: ProfessionalStatusUpdate,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> Professional:
    """Change a professional's status, recording the reason."""
    return await service.set_status(professional_id, data.status, data.reason)


@router.put(
    "/{professional_id}/working-hours",
    response_model=Professional,
    status_code=status.HTTP_200_OK,
    summary="Replace working hours",
)
async def set_working_hours(
    professional_id: UUID,
    data: WorkingHoursUpdate,
    current_user_id: CurrentUserId,
    service: ProfessionalServiceDep,
) -> Professional:
    """Replace a professional's weekly working hours."""
    return await service.set_working_hours(professional_id, data.working_hours)


@router.get(
    "/{professional_id}/free-slots",
    response_model=FreeSlotsResponse,
    status_code=status.HTTP_200_OK,
    summary="Free time within a range",
)
async def free_slots(
    professional_id: UUID,
    current_user_id: CurrentUserId,
    service: AvailabilityServiceDep,
    start: datetime = Query(...),
    end: datetime = Query(...),
) -> FreeSlotsResponse:
    """
    Free intervals of a professional within ``[start, end)``.

    Args:
        professional_id: Professional ID
        current_user_id: Authenticated user ID
        service: Availability service
        start: Range start (with timezone offset)
        end: Range end (with timezone offset)

    Returns:
        Free slots ordered chronologically
    """
    slots = await service.compute_free_slots(professional_id, start, end)
    return FreeSlotsResponse(
        professional_id=professional_id,
        start=start,
        end=end,
        slots=[TimeSlotResponse(start=s.start, end=s.end) for s in slots],
    )


@router.get(
    "/{professional_id}/start-times",
    response_model=StartTimesResponse,
    status_code=status.HTTP_200_OK,
    summary="Bookable start times",
)
async def start_times(
    professional_id: UUID,
    current_user_id: CurrentUserId,
    availability: AvailabilityServiceDep,
    professionals: ProfessionalServiceDep,
    start: datetime = Query(...),
    end: datetime = Query(...),
    duration_minutes: int | None = Query(None, ge=5, le=480),
) -> StartTimesResponse:
    """Consultation start times still open within ``[start, end)``."""
    professional = await professionals.get(professional_id)
    minutes = duration_minutes or professional.consultation_minutes
    times = await availability.bookable_start_times(
        professional_id, start, end, timedelta(minutes=minutes)
    )
    return StartTimesResponse(
        professional_id=professional_id,
        duration_minutes=minutes,
        start_times=times,
    )


@router.get(
    "/{professional_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Check a single slot",
)
async def check_availability(
    professional_id: UUID,
    current_user_id: CurrentUserId,
    availability: AvailabilityServiceDep,
    professionals: ProfessionalServiceDep,
    start: datetime = Query(...),
    duration_minutes: int | None = Query(None, ge=5, le=480),
) -> AvailabilityResponse:
    """
    Check whether a professional can be booked at ``start``.

    Args:
        professional_id: Professional ID
        current_user_id: Authenticated user ID
        availability: Availability service
        professionals: Professional service
        start: Requested start (with timezone offset)
        duration_minutes: Requested length, defaults to the consultation length

    Returns:
        Availability verdict
    """
    professional = await professionals.get(professional_id)
    minutes = duration_minutes or professional.consultation_minutes
    available = await availability.is_available(
        professional_id, start, timedelta(minutes=minutes)
    )
    return AvailabilityResponse(
        professional_id=professional_id,
        start=start,
        duration_minutes=minutes,
        available=available,
    )
