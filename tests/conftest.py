import os
from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

# The in-memory store keeps the suite independent of PostgreSQL
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SCHEDULE_TIMEZONE"] = "UTC"

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

load_dotenv()

from carebook.core.security import create_access_token
from carebook.dependencies import get_clock, get_repositories
from carebook.main import app
from carebook.repositories.base import Repositories
from carebook.repositories.memory import create_memory_repositories
from carebook.schemas.notifications import NotificationRequest
from carebook.schemas.professionals import (
    BreakPeriod,
    Modality,
    Professional,
    ProfessionalCreate,
    ServiceCategory,
    WorkingHours,
)
from carebook.services.appointment_service import AppointmentService
from carebook.services.availability_service import AvailabilityService
from carebook.services.event_service import EventService
from carebook.services.professional_service import ProfessionalService
from carebook.services.record_service import RecordService
from carebook.services.statistics_service import StatisticsService
from carebook.services.transitions import BookingLocks

# Friday; the Monday below is the first working day after it
NOW = datetime(2030, 1, 4, 12, 0, tzinfo=UTC)
MONDAY = date(2030, 1, 7)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """UTC instant on ``day`` (Monday by default)."""
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)


class FakeClock:
    """Settable time source."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta

    def set(self, now: datetime) -> None:
        self.now = now


class RecordingNotifier:
    """Notifier keeping every request it receives."""

    def __init__(self) -> None:
        self.sent: list[NotificationRequest] = []

    async def notify(self, request: NotificationRequest) -> None:
        self.sent.append(request)


class FailingNotifier:
    """Notifier whose delivery always fails."""

    async def notify(self, request: NotificationRequest) -> None:
        raise RuntimeError("push gateway unavailable")


def professional_data(**overrides) -> ProfessionalCreate:
    """Registration payload for a psychologist working Monday mornings."""
    data = {
        "name": "Ana Souza",
        "category": ServiceCategory.PSYCHOLOGICAL,
        "registration_number": "CRP-06/12345",
        "national_id": "123.456.789-00",
        "email": "ana.souza@example.com",
        "consultation_minutes": 30,
        "consultation_fee": Decimal("150.00"),
        "modalities": [Modality.IN_PERSON, Modality.REMOTE],
        "working_hours": [
            WorkingHours(day_of_week=0, start_time=time(9, 0), end_time=time(12, 0)),
        ],
    }
    data.update(overrides)
    return ProfessionalCreate(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repositories() -> Repositories:
    return create_memory_repositories()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def professional_service(repositories: Repositories, clock: FakeClock) -> ProfessionalService:
    return ProfessionalService(repositories, now=clock)


@pytest.fixture
def availability_service(repositories: Repositories, clock: FakeClock) -> AvailabilityService:
    return AvailabilityService(repositories, timezone=UTC, now=clock)


@pytest.fixture
def appointment_service(
    repositories: Repositories,
    notifier: RecordingNotifier,
    availability_service: AvailabilityService,
    clock: FakeClock,
) -> AppointmentService:
    return AppointmentService(
        repositories,
        notifier=notifier,
        availability=availability_service,
        locks=BookingLocks(),
        now=clock,
    )


@pytest.fixture
def event_service(
    repositories: Repositories,
    notifier: RecordingNotifier,
    clock: FakeClock,
) -> EventService:
    return EventService(repositories, notifier=notifier, locks=BookingLocks(), now=clock)


@pytest.fixture
def record_service(repositories: Repositories, clock: FakeClock) -> RecordService:
    return RecordService(repositories, now=clock)


@pytest.fixture
def statistics_service(repositories: Repositories, clock: FakeClock) -> StatisticsService:
    return StatisticsService(repositories, timezone=UTC, now=clock)


@pytest_asyncio.fixture
async def professional(professional_service: ProfessionalService) -> Professional:
    """Active psychologist, Mondays 09:00-12:00 UTC, 30 minute consultations."""
    return await professional_service.create(professional_data())


@pytest_asyncio.fixture
async def professional_with_lunch(professional_service: ProfessionalService) -> Professional:
    """Works Mondays 08:00-17:00 with a 12:00-13:00 break."""
    return await professional_service.create(
        professional_data(
            name="Bruno Lima",
            category=ServiceCategory.SOCIAL,
            registration_number="CRESS-9876",
            national_id="987.654.321-00",
            email="bruno.lima@example.com",
            working_hours=[
                WorkingHours(
                    day_of_week=0,
                    start_time=time(8, 0),
                    end_time=time(17, 0),
                    breaks=[BreakPeriod(start_time=time(12, 0), end_time=time(13, 0))],
                ),
            ],
        )
    )


@pytest.fixture
def patient_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture
async def client(
    repositories: Repositories,
    clock: FakeClock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with in-memory repositories and a fixed clock."""
    app.dependency_overrides[get_repositories] = lambda: repositories
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id: UUID) -> dict:
    """Create authentication headers for testing protected endpoints."""
    token = create_access_token(data={"sub": str(user_id)}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_professional_data() -> dict:
    """JSON registration payload for the HTTP API."""
    return {
        "name": "Carla Mendes",
        "category": "legal",
        "registration_number": "OAB-SP-55555",
        "national_id": "555.555.555-55",
        "email": "carla.mendes@example.com",
        "consultation_minutes": 60,
        "consultation_fee": 200.0,
        "modalities": ["in_person", "remote"],
        "working_hours": [
            {"day_of_week": 0, "start_time": "09:00:00", "end_time": "12:00:00"},
            {"day_of_week": 2, "start_time": "14:00:00", "end_time": "18:00:00"},
        ],
    }
