"""Statistics and report endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import AwareDatetime

from carebook.dependencies import CurrentUserId, StatisticsServiceDep
from carebook.schemas.appointments import AppointmentFilters
from carebook.schemas.statistics import AppointmentReport, AppointmentStatistics

router = APIRouter()


@router.get(
    "",
    response_model=AppointmentStatistics,
    status_code=status.HTTP_200_OK,
    summary="Appointment statistics",
)
async def get_statistics(
    current_user_id: CurrentUserId,
    service: StatisticsServiceDep,
    professional_id: UUID | None = Query(None),
    start: AwareDatetime | None = Query(None),
    end: AwareDatetime | None = Query(None),
) -> AppointmentStatistics:
    """
    Appointment statistics, globally or for one professional.

    Args:
        current_user_id: Authenticated user ID
        service: Statistics service
        professional_id: Restrict to this professional
        start: Earliest appointment start
        end: Latest appointment start

    Returns:
        Counts, revenue and rating figures
    """
    return await service.generate_statistics(professional_id, start, end)


@router.post(
    "/report",
    response_model=AppointmentReport,
    status_code=status.HTTP_200_OK,
    summary="Filtered appointment report",
)
async def generate_report(
    filters: AppointmentFilters,
    current_user_id: CurrentUserId,
    service: StatisticsServiceDep,
) -> AppointmentReport:
    """Appointments matching the filters with their distributions and totals."""
    return await service.generate_report(filters)
