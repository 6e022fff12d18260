"""Appointment service for booking and status transitions."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from uuid import UUID, uuid4

import structlog

from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingConflictError,
    ValidationError,
)
from carebook.repositories.base import Repositories
from carebook.schemas.appointments import (
    REQUIRED_APPOINTMENT_FIELDS,
    Appointment,
    AppointmentAction,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentHistoryEntry,
    AppointmentListResponse,
    AppointmentStatus,
    AppointmentUpdate,
    Review,
    ReviewCreate,
)
from carebook.schemas.notifications import (
    NotificationCategory,
    NotificationPriority,
    NotificationRequest,
)
from carebook.schemas.professionals import Professional, ProfessionalStatus
from carebook.services.availability_service import AvailabilityService
from carebook.services.notification_service import Notifier, send_notification
from carebook.services.transitions import (
    PATIENT_FACING_ACTIONS,
    AppointmentEvent,
    BookingLocks,
    booking_locks,
    resolve_transition,
)

logger = structlog.get_logger(__name__)

STATUS_MESSAGES = {
    AppointmentAction.CONFIRMED: (
        "Appointment confirmed",
        "Your appointment on {when} is confirmed.",
    ),
    AppointmentAction.CANCELLED: (
        "Appointment cancelled",
        "Your appointment on {when} was cancelled.",
    ),
    AppointmentAction.RESCHEDULED: (
        "Appointment rescheduled",
        "Your appointment moved to {when}.",
    ),
    AppointmentAction.NO_SHOW: (
        "Missed appointment",
        "You missed your appointment on {when}.",
    ),
}


class AppointmentService:
    """Service for booking appointments and moving them through their lifecycle."""

    def __init__(
        self,
        repositories: Repositories,
        notifier: Notifier | None = None,
        availability: AvailabilityService | None = None,
        locks: BookingLocks | None = None,
        now: Clock | None = None,
    ):
        """Initialize service with repositories and collaborators."""
        self.professionals = repositories.professionals
        self.appointments = repositories.appointments
        self.reviews = repositories.reviews
        self.notifier = notifier
        self.now = now or utcnow
        self.availability = availability or AvailabilityService(repositories, now=self.now)
        self.locks = locks or booking_locks

    @asynccontextmanager
    async def _booking(self, professional_id: UUID):
        """Serialise check-then-commit for one professional."""
        async with self.locks.hold(professional_id):
            await self.appointments.lock_professional(professional_id)
            yield

    async def _get_professional(self, professional_id: UUID) -> Professional:
        professional = await self.professionals.get(professional_id)
        if not professional:
            raise NotFoundError("Professional not found")
        return professional

    async def _ensure_bookable(
        self,
        professional: Professional,
        start: datetime,
        duration_minutes: int,
        exclude_appointment_id: UUID | None = None,
    ) -> None:
        duration = timedelta(minutes=duration_minutes)
        conflict = await self.availability.find_conflict(
            professional.id, start, duration, exclude_appointment_id
        )
        if conflict:
            raise SchedulingConflictError(
                f"Professional already has an appointment at {conflict.scheduled_at.isoformat()}",
                conflicting_appointment_id=conflict.id,
            )
        if not self.availability.fits_working_hours(professional, start, start + duration):
            raise SchedulingConflictError(
                "Requested time is outside the professional's working hours"
            )

    async def create_appointment(
        self,
        data: AppointmentCreate,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """
        Book a new appointment.

        Args:
            data: Booking request
            actor_id: ID of the user making the booking

        Returns:
            Created appointment, status ``scheduled``

        Raises:
            NotFoundError: If the professional does not exist
            ValidationError: If the start is not in the future, the professional is
                not active, or category/modality do not match the professional
            SchedulingConflictError: If the slot is taken or outside working hours
        """
        now = self.now()
        if data.scheduled_at <= now:
            raise ValidationError("Appointment must be scheduled in the future")

        professional = await self._get_professional(data.professional_id)
        if professional.status != ProfessionalStatus.ACTIVE:
            raise ValidationError("Professional is not accepting appointments")
        category = data.category or professional.category
        if category != professional.category:
            raise ValidationError(f"Professional does not provide {category.value} services")
        if data.modality not in professional.modalities:
            raise ValidationError(
                f"Professional does not offer {data.modality.value} appointments"
            )

        duration_minutes = data.duration_minutes or professional.consultation_minutes
        value = data.value if "value" in data.model_fields_set else professional.consultation_fee

        async with self._booking(professional.id):
            await self._ensure_bookable(professional, data.scheduled_at, duration_minutes)
            appointment = Appointment(
                id=uuid4(),
                patient_id=data.patient_id,
                professional_id=professional.id,
                category=category,
                scheduled_at=data.scheduled_at,
                duration_minutes=duration_minutes,
                modality=data.modality,
                priority=data.priority,
                status=AppointmentStatus.SCHEDULED,
                reason=data.reason,
                notes=data.notes,
                value=value,
                created_by=actor_id,
                created_at=now,
                updated_at=now,
                history=[
                    AppointmentHistoryEntry(
                        action=AppointmentAction.CREATED,
                        to_status=AppointmentStatus.SCHEDULED,
                        actor_id=actor_id,
                        occurred_at=now,
                    )
                ],
            )
            created = await self.appointments.create(appointment)

        logger.info(
            "appointment_created",
            appointment_id=str(created.id),
            professional_id=str(created.professional_id),
            scheduled_at=created.scheduled_at.isoformat(),
        )
        await send_notification(
            self.notifier,
            NotificationRequest(
                recipient_id=created.patient_id,
                title="Appointment booked",
                message=f"Your appointment on {_when(created)} has been booked.",
                category=NotificationCategory.APPOINTMENT_CREATED,
                action_url=f"/appointments/{created.id}",
            ),
        )
        return created

    async def get_appointment(self, appointment_id: UUID) -> Appointment:
        """Get an appointment, raising NotFoundError if absent or deleted."""
        appointment = await self.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    async def list_appointments(
        self,
        filters: AppointmentFilters,
        page: int = 1,
        page_size: int = 20,
    ) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            filters: Filter predicate; unset fields do not filter
            page: Page number, starting at 1
            page_size: Items per page

        Returns:
            Paginated list of appointments, newest first
        """
        total = await self.appointments.count(filters)
        items = await self.appointments.find(
            filters, limit=page_size, offset=(page - 1) * page_size
        )
        return AppointmentListResponse(total=total, page=page, page_size=page_size, items=items)

    async def find_by_patient(self, patient_id: UUID) -> list[Appointment]:
        """A patient's appointments, newest first."""
        return await self.appointments.find_by_patient(patient_id)

    async def find_upcoming(
        self,
        professional_id: UUID | None = None,
        limit: int = 10,
    ) -> list[Appointment]:
        """Open appointments that have not started yet, soonest first."""
        return await self.appointments.find_upcoming(professional_id, self.now(), limit)

    async def find_overdue(self) -> list[Appointment]:
        """Scheduled or confirmed appointments whose start has passed."""
        return await self.appointments.find_overdue(self.now())

    async def update_appointment(
        self,
        appointment_id: UUID,
        patch: AppointmentUpdate,
    ) -> Appointment:
        """
        Apply the explicitly set non-scheduling fields of ``patch``.

        Raises:
            NotFoundError: If the appointment does not exist
            ValidationError: If a required field is cleared or the modality is not offered
        """
        appointment = await self.get_appointment(appointment_id)
        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            return appointment

        cleared = sorted(
            k for k, v in changes.items() if v is None and k in REQUIRED_APPOINTMENT_FIELDS
        )
        if cleared:
            raise ValidationError(f"Cannot clear required fields: {', '.join(cleared)}")
        if "modality" in changes:
            professional = await self.professionals.get(appointment.professional_id)
            if professional and changes["modality"] not in professional.modalities:
                raise ValidationError(
                    f"Professional does not offer {changes['modality'].value} appointments"
                )

        for field, value in changes.items():
            setattr(appointment, field, value)
        appointment.updated_at = self.now()
        saved = await self.appointments.update(appointment)
        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            fields=sorted(changes),
        )
        return saved

    async def _apply(
        self,
        appointment: Appointment,
        event: AppointmentEvent,
        actor_id: UUID | None,
        notes: str | None = None,
    ) -> Appointment:
        """Move ``appointment`` along ``event``, record history, persist and notify."""
        transition = resolve_transition(event, appointment.status)
        now = self.now()
        appointment.history.append(
            AppointmentHistoryEntry(
                action=transition.action,
                from_status=appointment.status,
                to_status=transition.target,
                actor_id=actor_id,
                notes=notes,
                occurred_at=now,
            )
        )
        appointment.status = transition.target
        appointment.status_changed_by = actor_id
        appointment.status_changed_at = now
        appointment.updated_at = now
        saved = await self.appointments.update(appointment)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(saved.id),
            action=transition.action.value,
            status=saved.status.value,
        )
        if transition.action in PATIENT_FACING_ACTIONS:
            await self._notify_status(saved, transition.action)
        return saved

    async def _notify_status(self, appointment: Appointment, action: AppointmentAction) -> None:
        title, template = STATUS_MESSAGES[action]
        priority = (
            NotificationPriority.HIGH
            if action in (AppointmentAction.CANCELLED, AppointmentAction.NO_SHOW)
            else NotificationPriority.NORMAL
        )
        await send_notification(
            self.notifier,
            NotificationRequest(
                recipient_id=appointment.patient_id,
                title=title,
                message=template.format(when=_when(appointment)),
                category=NotificationCategory.APPOINTMENT_STATUS,
                priority=priority,
                action_url=f"/appointments/{appointment.id}",
            ),
        )

    async def confirm(self, appointment_id: UUID, actor_id: UUID | None = None) -> Appointment:
        """
        Confirm a scheduled appointment.

        Raises:
            InvalidTransitionError: If not scheduled or its start has passed
        """
        appointment = await self.get_appointment(appointment_id)
        resolve_transition(AppointmentEvent.CONFIRM, appointment.status)
        if appointment.scheduled_at <= self.now():
            raise InvalidTransitionError("Cannot confirm an appointment whose start has passed")
        return await self._apply(appointment, AppointmentEvent.CONFIRM, actor_id)

    async def cancel(
        self,
        appointment_id: UUID,
        reason: str,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """
        Cancel an open appointment, freeing its slot.

        Raises:
            InvalidTransitionError: If the appointment is not scheduled or confirmed
            ValidationError: If no reason is given
        """
        appointment = await self.get_appointment(appointment_id)
        resolve_transition(AppointmentEvent.CANCEL, appointment.status)
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required")
        appointment.cancellation_reason = reason.strip()
        return await self._apply(
            appointment, AppointmentEvent.CANCEL, actor_id, notes=appointment.cancellation_reason
        )

    async def reschedule(
        self,
        appointment_id: UUID,
        scheduled_at: datetime,
        duration_minutes: int | None = None,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """
        Move an open appointment to a new slot.

        The old slot is released and the new one claimed in the same write, while
        holding the professional's booking lock.

        Args:
            appointment_id: Appointment ID
            scheduled_at: New start (timezone-aware)
            duration_minutes: New length, defaults to the current one
            actor_id: ID of the user moving the appointment

        Returns:
            Appointment back in ``scheduled`` status at its new time

        Raises:
            InvalidTransitionError: If the appointment is not scheduled or confirmed
            ValidationError: If the new start is not in the future
            SchedulingConflictError: If the new slot is not available
        """
        current = await self.get_appointment(appointment_id)
        professional = await self._get_professional(current.professional_id)

        async with self._booking(professional.id):
            appointment = await self.get_appointment(appointment_id)
            resolve_transition(AppointmentEvent.RESCHEDULE, appointment.status)
            if scheduled_at <= self.now():
                raise ValidationError("Appointment must be rescheduled to a future time")
            duration = duration_minutes or appointment.duration_minutes
            await self._ensure_bookable(
                professional, scheduled_at, duration, exclude_appointment_id=appointment.id
            )
            previous = appointment.scheduled_at
            appointment.scheduled_at = scheduled_at
            appointment.duration_minutes = duration
            return await self._apply(
                appointment,
                AppointmentEvent.RESCHEDULE,
                actor_id,
                notes=f"Moved from {previous.isoformat()}",
            )

    async def start(
        self,
        appointment_id: UUID,
        override: bool = False,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """
        Begin a confirmed appointment.

        Raises:
            InvalidTransitionError: If not confirmed, or early without ``override``
        """
        appointment = await self.get_appointment(appointment_id)
        resolve_transition(AppointmentEvent.START, appointment.status)
        if not override and self.now() < appointment.scheduled_at:
            raise InvalidTransitionError("Appointment cannot start before its scheduled time")
        return await self._apply(appointment, AppointmentEvent.START, actor_id)

    async def complete(
        self,
        appointment_id: UUID,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """Finish an in-progress appointment, keeping the professional's notes."""
        appointment = await self.get_appointment(appointment_id)
        resolve_transition(AppointmentEvent.COMPLETE, appointment.status)
        if notes is not None:
            appointment.professional_notes = notes
        return await self._apply(appointment, AppointmentEvent.COMPLETE, actor_id, notes=notes)

    async def mark_no_show(
        self,
        appointment_id: UUID,
        actor_id: UUID | None = None,
    ) -> Appointment:
        """
        Record that the patient did not attend.

        Raises:
            InvalidTransitionError: If not open or its start has not passed yet
        """
        appointment = await self.get_appointment(appointment_id)
        resolve_transition(AppointmentEvent.MARK_NO_SHOW, appointment.status)
        if self.now() <= appointment.scheduled_at:
            raise InvalidTransitionError("Cannot mark a no-show before the appointment starts")
        return await self._apply(appointment, AppointmentEvent.MARK_NO_SHOW, actor_id)

    async def delete_appointment(self, appointment_id: UUID, hard: bool = False) -> None:
        """
        Delete an appointment.

        Soft deletion hides the appointment and frees its slot but keeps the row
        for audit; hard deletion removes it, including already soft-deleted rows.

        Raises:
            NotFoundError: If the appointment does not exist
        """
        if hard:
            if not await self.appointments.hard_delete(appointment_id):
                raise NotFoundError("Appointment not found")
        elif not await self.appointments.soft_delete(appointment_id, self.now()):
            raise NotFoundError("Appointment not found")
        logger.info("appointment_deleted", appointment_id=str(appointment_id), hard=hard)

    async def rate(
        self,
        appointment_id: UUID,
        data: ReviewCreate,
        reviewer_id: UUID | None = None,
    ) -> Review:
        """
        Review a completed appointment.

        Raises:
            NotFoundError: If the appointment does not exist
            ValidationError: If the appointment is not completed
            DuplicateError: If it has already been reviewed
        """
        appointment = await self.get_appointment(appointment_id)
        if appointment.status != AppointmentStatus.COMPLETED:
            raise ValidationError("Only completed appointments can be reviewed")
        if await self.reviews.get_by_appointment(appointment_id):
            raise DuplicateError("Appointment has already been reviewed")

        review = await self.reviews.create(
            Review(
                **data.model_dump(),
                id=uuid4(),
                appointment_id=appointment_id,
                professional_id=appointment.professional_id,
                reviewer_id=reviewer_id,
                created_at=self.now(),
            )
        )
        logger.info(
            "appointment_reviewed",
            appointment_id=str(appointment_id),
            score=review.score,
        )
        return review


def _when(appointment: Appointment) -> str:
    return appointment.scheduled_at.strftime("%Y-%m-%d %H:%M %Z").strip()
