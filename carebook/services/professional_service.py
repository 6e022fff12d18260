"""Professional registry service."""

from collections import Counter
from datetime import date
from uuid import UUID, uuid4

import structlog

from carebook.core.clock import Clock, utcnow
from carebook.core.exceptions import DuplicateError, NotFoundError, ValidationError
from carebook.repositories.base import Repositories
from carebook.schemas.professionals import (
    REQUIRED_PROFESSIONAL_FIELDS,
    Professional,
    ProfessionalCreate,
    ProfessionalStatistics,
    ProfessionalStatus,
    ProfessionalUpdate,
    ServiceCategory,
    WorkingHours,
)

logger = structlog.get_logger(__name__)


class ProfessionalService:
    """Service for registering and maintaining professionals."""

    def __init__(self, repositories: Repositories, now: Clock | None = None):
        """Initialize service with repositories and clock."""
        self.professionals = repositories.professionals
        self.appointments = repositories.appointments
        self.now = now or utcnow

    async def _ensure_unique(
        self,
        registration_number: str | None,
        national_id: str | None,
        email: str | None,
        exclude_id: UUID | None = None,
    ) -> None:
        repo = self.professionals
        lookups = (
            ("registration number", registration_number, repo.find_by_registration_number),
            ("national id", national_id, repo.find_by_national_id),
            ("email", email, repo.find_by_email),
        )
        for label, value, find in lookups:
            if not value:
                continue
            existing = await find(value)
            if existing and existing.id != exclude_id:
                raise DuplicateError(f"A professional with this {label} already exists")

    async def create(self, data: ProfessionalCreate) -> Professional:
        """
        Register a new professional.

        Args:
            data: Professional registration data

        Returns:
            Created professional

        Raises:
            ValidationError: If the name is blank
            DuplicateError: If registration number, national id or email is taken
        """
        if not data.name.strip():
            raise ValidationError("Name must not be blank")
        await self._ensure_unique(data.registration_number, data.national_id, data.email)

        now = self.now()
        professional = Professional(
            **data.model_dump(),
            id=uuid4(),
            status=ProfessionalStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        created = await self.professionals.create(professional)
        logger.info(
            "professional_created",
            professional_id=str(created.id),
            category=created.category.value,
        )
        return created

    async def get(self, professional_id: UUID) -> Professional:
        """Get a professional, raising NotFoundError if absent."""
        professional = await self.professionals.get(professional_id)
        if not professional:
            raise NotFoundError("Professional not found")
        return professional

    async def list_professionals(
        self,
        category: ServiceCategory | None = None,
        status: ProfessionalStatus | None = None,
        search: str | None = None,
    ) -> list[Professional]:
        """List professionals ordered by name."""
        return await self.professionals.list(
            category=category,
            status=status,
            search=search.strip() if search and search.strip() else None,
        )

    async def update(self, professional_id: UUID, patch: ProfessionalUpdate) -> Professional:
        """
        Apply the explicitly set fields of ``patch``.

        Args:
            professional_id: Professional ID
            patch: Fields to change; ``None`` clears an optional field

        Returns:
            Updated professional

        Raises:
            NotFoundError: If the professional does not exist
            ValidationError: If a required field is cleared or the name is blank
            DuplicateError: If a unique field collides with another professional
        """
        professional = await self.get(professional_id)
        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            return professional

        cleared = sorted(
            k for k, v in changes.items() if v is None and k in REQUIRED_PROFESSIONAL_FIELDS
        )
        if cleared:
            raise ValidationError(f"Cannot clear required fields: {', '.join(cleared)}")
        if "name" in changes and not changes["name"].strip():
            raise ValidationError("Name must not be blank")

        await self._ensure_unique(
            changes.get("registration_number"),
            changes.get("national_id"),
            changes.get("email"),
            exclude_id=professional_id,
        )

        updated = Professional.model_validate(
            {**professional.model_dump(), **changes, "updated_at": self.now()}
        )
        saved = await self.professionals.update(updated)
        logger.info(
            "professional_updated",
            professional_id=str(professional_id),
            fields=sorted(changes),
        )
        return saved

    async def set_status(
        self,
        professional_id: UUID,
        status: ProfessionalStatus,
        reason: str | None = None,
    ) -> Professional:
        """
        Change a professional's status, recording the reason for audit.

        Any status may move to any other, including suspended to active.
        """
        professional = await self.get(professional_id)
        now = self.now()
        professional.status = status
        professional.status_reason = reason.strip() if reason and reason.strip() else None
        professional.status_changed_at = now
        professional.updated_at = now
        saved = await self.professionals.update(professional)
        logger.info(
            "professional_status_changed",
            professional_id=str(professional_id),
            status=status.value,
            reason=saved.status_reason,
        )
        return saved

    async def activate(self, professional_id: UUID) -> Professional:
        """Set a professional active."""
        return await self.set_status(professional_id, ProfessionalStatus.ACTIVE)

    async def deactivate(self, professional_id: UUID, reason: str | None = None) -> Professional:
        """Set a professional inactive; the soft alternative to delete."""
        return await self.set_status(professional_id, ProfessionalStatus.INACTIVE, reason)

    async def set_working_hours(
        self,
        professional_id: UUID,
        hours: list[WorkingHours],
    ) -> Professional:
        """Replace a professional's weekly schedule.

        Existing appointments are kept even when they fall outside the new hours.
        """
        professional = await self.get(professional_id)
        professional.working_hours = sorted(hours, key=lambda h: (h.day_of_week, h.start_time))
        professional.updated_at = self.now()
        saved = await self.professionals.update(professional)
        logger.info(
            "professional_working_hours_set",
            professional_id=str(professional_id),
            windows=len(saved.working_hours),
        )
        return saved

    async def find_available_on_date(
        self,
        category: ServiceCategory,
        on_date: date,
    ) -> list[Professional]:
        """Active professionals of ``category`` with working time on ``on_date``'s weekday."""
        candidates = await self.professionals.list(
            category=category, status=ProfessionalStatus.ACTIVE
        )
        weekday = on_date.weekday()
        return [
            p
            for p in candidates
            if any(h.end_time > h.start_time for h in p.hours_for(weekday))
        ]

    async def delete(self, professional_id: UUID, force: bool = False) -> None:
        """
        Physically remove a professional.

        Args:
            professional_id: Professional ID
            force: Remove even when appointments reference the professional

        Raises:
            NotFoundError: If the professional does not exist
            ValidationError: If appointments exist and ``force`` is not set
        """
        await self.get(professional_id)
        if not force and await self.appointments.exists_for_professional(professional_id):
            raise ValidationError(
                "Professional has appointments; deactivate instead or force the deletion"
            )
        await self.professionals.delete(professional_id)
        logger.info("professional_deleted", professional_id=str(professional_id), forced=force)

    async def statistics(self) -> ProfessionalStatistics:
        """Registry-wide counts by status and category."""
        items = await self.professionals.list()
        by_status = Counter(p.status for p in items)
        by_category = Counter(p.category for p in items)
        return ProfessionalStatistics(
            total=len(items),
            active=by_status[ProfessionalStatus.ACTIVE],
            inactive=by_status[ProfessionalStatus.INACTIVE],
            suspended=by_status[ProfessionalStatus.SUSPENDED],
            by_category={c: by_category[c] for c in ServiceCategory},
        )
