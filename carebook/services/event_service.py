"""Event attendance service.

Capacity is enforced only for ``confirmed`` responses: a user may still ask to
attend (``pending``) or decline a full event.
"""

from uuid import UUID, uuid4

import structlog

from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import CapacityExceededError, NotFoundError, ValidationError
from carebook.repositories.base import Repositories
from carebook.schemas.events import (
    Confirmation,
    ConfirmationListResponse,
    ConfirmationRequest,
    ConfirmationStatus,
    Event,
    EventCreate,
    EventStatus,
)
from carebook.schemas.notifications import (
    NotificationCategory,
    NotificationPriority,
    NotificationRequest,
)
from carebook.services.notification_service import Notifier, send_notification
from carebook.services.transitions import BookingLocks, event_locks

logger = structlog.get_logger(__name__)


class EventService:
    """Service for events and their attendance confirmations."""

    def __init__(
        self,
        repositories: Repositories,
        notifier: Notifier | None = None,
        locks: BookingLocks | None = None,
        now: Clock | None = None,
    ):
        """Initialize service with repositories and collaborators."""
        self.events = repositories.events
        self.notifier = notifier
        self.locks = locks or event_locks
        self.now = now or utcnow

    async def create_event(self, data: EventCreate) -> Event:
        """
        Create an event.

        Raises:
            ValidationError: If the start is naive or not in the future
        """
        if data.starts_at.tzinfo is None:
            raise ValidationError("starts_at must include a timezone offset")
        now = self.now()
        if data.starts_at <= now:
            raise ValidationError("Event must start in the future")

        event = await self.events.create(
            Event(
                **data.model_dump(),
                id=uuid4(),
                status=EventStatus.SCHEDULED,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "event_created",
            event_id=str(event.id),
            max_participants=event.max_participants,
        )
        return event

    async def get_event(self, event_id: UUID) -> Event:
        """Get an event, raising NotFoundError if absent."""
        event = await self.events.get(event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    async def respond(
        self,
        event_id: UUID,
        user_id: UUID,
        request: ConfirmationRequest,
    ) -> Confirmation:
        """
        Record a user's attendance response, replacing any earlier one.

        Args:
            event_id: Event ID
            user_id: Responding user
            request: Response status and notes

        Returns:
            Stored confirmation

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the event takes no confirmations or is not upcoming
            CapacityExceededError: If a confirmation would exceed the event's limit
        """
        event = await self.get_event(event_id)
        if not event.requires_confirmation:
            raise ValidationError("Event does not take attendance confirmations")
        now = self.now()
        if not event.is_upcoming(now):
            raise ValidationError("Event is no longer open for confirmations")

        async with self.locks.hold(event_id):
            await self.events.lock_event(event_id)
            if request.status == ConfirmationStatus.CONFIRMED:
                confirmed = await self.events.count_confirmations(event_id)
                previous = await self.events.get_confirmation(event_id, user_id)
                if previous and previous.status == ConfirmationStatus.CONFIRMED:
                    confirmed -= 1
                if not event.has_room_for(confirmed):
                    raise CapacityExceededError(
                        f"Event is full ({event.max_participants} confirmed participants)"
                    )

            confirmation = await self.events.save_confirmation(
                Confirmation(
                    id=uuid4(),
                    event_id=event_id,
                    user_id=user_id,
                    status=request.status,
                    notes=request.notes,
                    responded_at=now,
                )
            )

        logger.info(
            "event_response_recorded",
            event_id=str(event_id),
            user_id=str(user_id),
            status=confirmation.status.value,
        )
        if confirmation.status == ConfirmationStatus.DECLINED:
            await send_notification(
                self.notifier,
                NotificationRequest(
                    recipient_id=event.responsible_id,
                    title="Attendance declined",
                    message=f"A participant declined {event.title}.",
                    category=NotificationCategory.EVENT_DECLINED,
                    priority=NotificationPriority.LOW,
                    action_url=f"/events/{event_id}",
                ),
            )
        return confirmation

    async def list_responses(self, event_id: UUID) -> ConfirmationListResponse:
        """All responses to an event with the current confirmed head count."""
        event = await self.get_event(event_id)
        items = await self.events.list_confirmations(event_id)
        return ConfirmationListResponse(
            event_id=event_id,
            confirmed_count=sum(1 for c in items if c.status == ConfirmationStatus.CONFIRMED),
            max_participants=event.max_participants,
            items=items,
        )
