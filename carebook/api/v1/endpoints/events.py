"""Event attendance endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from carebook.dependencies import CurrentUserId, EventServiceDep
from carebook.schemas.events import (
    Confirmation,
    ConfirmationListResponse,
    ConfirmationRequest,
    Event,
    EventCreate,
)

router = APIRouter()


@router.post(
    "",
    response_model=Event,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    data: EventCreate,
    current_user_id: CurrentUserId,
    service: EventServiceDep,
) -> Event:
    """Create an event that users can respond to."""
    return await service.create_event(data)


@router.get(
    "/{event_id}",
    response_model=Event,
    status_code=status.HTTP_200_OK,
    summary="Get event by ID",
)
async def get_event(
    event_id: UUID,
    current_user_id: CurrentUserId,
    service: EventServiceDep,
) -> Event:
    """Get a specific event by ID."""
    return await service.get_event(event_id)


@router.post(
    "/{event_id}/responses",
    response_model=Confirmation,
    status_code=status.HTTP_200_OK,
    summary="Respond to event",
)
async def respond_to_event(
    event_id: UUID,
    data: ConfirmationRequest,
    current_user_id: CurrentUserId,
    service: EventServiceDep,
) -> Confirmation:
    """
    Record the authenticated user's attendance response.

    A new response replaces the previous one. Only ``confirmed`` responses
    count against the event's capacity.

    Args:
        event_id: Event ID
        data: Response status and notes
        current_user_id: Responding user
        service: Event service

    Returns:
        Stored confirmation
    """
    return await service.respond(event_id, current_user_id, data)


@router.get(
    "/{event_id}/responses",
    response_model=ConfirmationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List event responses",
)
async def list_event_responses(
    event_id: UUID,
    current_user_id: CurrentUserId,
    service: EventServiceDep,
) -> ConfirmationListResponse:
    """All responses to an event with the confirmed head count."""
    return await service.list_responses(event_id)
