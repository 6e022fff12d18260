"""FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.config import settings
from carebook.core.clock import Clock, utcnow
from carebook.core.security import decode_access_token
from carebook.database import get_db
from carebook.repositories.base import Repositories
from carebook.repositories.memory import create_memory_repositories
from carebook.repositories.sql import create_sql_repositories
from carebook.services.appointment_service import AppointmentService
from carebook.services.availability_service import AvailabilityService
from carebook.services.event_service import EventService
from carebook.services.notification_service import NotificationInbox, Notifier, StoredNotifier
from carebook.services.professional_service import ProfessionalService
from carebook.services.record_service import RecordService
from carebook.services.statistics_service import StatisticsService

# Security
security = HTTPBearer()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """
    Extract and validate the actor ID from a JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from the token's ``sub`` claim

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)

    user_id_str = payload.get("sub") if payload else None
    if user_id_str is None or not isinstance(user_id_str, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )


@lru_cache(maxsize=1)
def get_memory_repositories() -> Repositories:
    """Process-wide in-memory store used when ``STORAGE_BACKEND=memory``."""
    return create_memory_repositories()


async def get_repositories(db: Annotated[AsyncSession, Depends(get_db)]) -> Repositories:
    """Repositories for the configured storage backend."""
    if settings.use_memory_storage:
        return get_memory_repositories()
    return create_sql_repositories(db)


def get_clock() -> Clock:
    """Time source for the services."""
    return utcnow


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
Repos = Annotated[Repositories, Depends(get_repositories)]
Now = Annotated[Clock, Depends(get_clock)]


def get_notifier(repositories: Repos, now: Now) -> Notifier:
    """Notifier that stores requests in the recipients' inboxes."""
    return StoredNotifier(repositories.notifications, now=now)


NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def get_notification_inbox(repositories: Repos) -> NotificationInbox:
    return NotificationInbox(repositories.notifications)


def get_professional_service(repositories: Repos, now: Now) -> ProfessionalService:
    return ProfessionalService(repositories, now=now)


def get_availability_service(repositories: Repos, now: Now) -> AvailabilityService:
    return AvailabilityService(repositories, now=now)


def get_appointment_service(
    repositories: Repos,
    notifier: NotifierDep,
    now: Now,
) -> AppointmentService:
    return AppointmentService(repositories, notifier=notifier, now=now)


def get_event_service(repositories: Repos, notifier: NotifierDep, now: Now) -> EventService:
    return EventService(repositories, notifier=notifier, now=now)


def get_record_service(repositories: Repos, now: Now) -> RecordService:
    return RecordService(repositories, now=now)


def get_statistics_service(repositories: Repos, now: Now) -> StatisticsService:
    return StatisticsService(repositories, now=now)


ProfessionalServiceDep = Annotated[ProfessionalService, Depends(get_professional_service)]
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
EventServiceDep = Annotated[EventService, Depends(get_event_service)]
RecordServiceDep = Annotated[RecordService, Depends(get_record_service)]
StatisticsServiceDep = Annotated[StatisticsService, Depends(get_statistics_service)]
NotificationInboxDep = Annotated[NotificationInbox, Depends(get_notification_inbox)]
