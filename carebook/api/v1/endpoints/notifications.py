"""Notification inbox endpoints."""

from fastapi import APIRouter, status

from carebook.dependencies import CurrentUserId, NotificationInboxDep
from carebook.schemas.notifications import StoredNotification

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "/me",
    response_model=list[StoredNotification],
    status_code=status.HTTP_200_OK,
    summary="My notifications",
)
async def my_notifications(
    current_user_id: CurrentUserId,
    inbox: NotificationInboxDep,
) -> list[StoredNotification]:
    """
    Notifications addressed to the authenticated user, newest first.

    Args:
        current_user_id: Authenticated user ID
        inbox: Notification inbox

    Returns:
        Stored notifications
    """
    return await inbox.list_for_user(current_user_id)
