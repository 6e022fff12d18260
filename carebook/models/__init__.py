"""Database models."""

from carebook.models.appointments import appointments, reviews
from carebook.models.base import metadata
from carebook.models.events import event_confirmations, events
from carebook.models.notifications import notifications
from carebook.models.professionals import professionals
from carebook.models.records import service_records

__all__ = [
    "appointments",
    "event_confirmations",
    "events",
    "metadata",
    "notifications",
    "professionals",
    "reviews",
    "service_records",
]
