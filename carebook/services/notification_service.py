"""Notification collaborators handed to the scheduling services.

Delivery is fire-and-forget: a failing notifier is logged and never fails the
operation that triggered it.
"""

from typing import Protocol
from uuid import UUID, uuid4

import structlog

from carebook.core.clock import Clock, utcnow
from carebook.repositories.base import NotificationRepository
from carebook.schemas.notifications import NotificationRequest, StoredNotification

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    """Anything that can accept a notification request."""

    async def notify(self, request: NotificationRequest) -> None: ...


class LogNotifier:
    """Notifier that only writes the request to the log."""

    async def notify(self, request: NotificationRequest) -> None:
        logger.info(
            "notification_requested",
            recipient_id=str(request.recipient_id),
            category=request.category.value,
            priority=request.priority.value,
            title=request.title,
        )


class StoredNotifier:
    """Notifier that keeps requests in the recipient's inbox."""

    def __init__(self, repository: NotificationRepository, now: Clock | None = None):
        """Initialize notifier with the notification repository."""
        self.repository = repository
        self.now = now or utcnow

    async def notify(self, request: NotificationRequest) -> None:
        stored = await self.repository.create(
            StoredNotification(**request.model_dump(), id=uuid4(), created_at=self.now())
        )
        logger.info(
            "notification_stored",
            notification_id=str(stored.id),
            recipient_id=str(stored.recipient_id),
            category=stored.category.value,
        )


async def send_notification(notifier: Notifier | None, request: NotificationRequest) -> bool:
    """
    Hand ``request`` to ``notifier`` without letting delivery errors escape.

    Returns:
        True if the notifier accepted the request
    """
    if notifier is None:
        return False
    try:
        await notifier.notify(request)
    except Exception as e:
        logger.warning(
            "failed_to_send_notification",
            recipient_id=str(request.recipient_id),
            category=request.category.value,
            error=str(e),
        )
        return False
    return True


class NotificationInbox:
    """Read access to stored notifications."""

    def __init__(self, repository: NotificationRepository):
        """Initialize inbox with the notification repository."""
        self.repository = repository

    async def list_for_user(self, user_id: UUID) -> list[StoredNotification]:
        """A user's notifications, newest first."""
        return await self.repository.list_for_user(user_id)
