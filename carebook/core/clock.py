"""Time source shared by the services."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current timezone-aware UTC time."""
    return datetime.now(UTC)
