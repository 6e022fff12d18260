"""Appointment state machine and booking serialisation."""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from enum import Enum
from typing import NamedTuple
from uuid import UUID

from carebook.core.exceptions import InvalidTransitionError
from carebook.schemas.appointments import AppointmentAction, AppointmentStatus


class AppointmentEvent(str, Enum):
    """Operations that move an appointment between statuses."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    START = "start"
    COMPLETE = "complete"
    MARK_NO_SHOW = "mark_no_show"


class Transition(NamedTuple):
    sources: frozenset[AppointmentStatus]
    target: AppointmentStatus
    action: AppointmentAction


_OPEN = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})

TRANSITIONS: dict[AppointmentEvent, Transition] = {
    AppointmentEvent.CONFIRM: Transition(
        frozenset({AppointmentStatus.SCHEDULED}),
        AppointmentStatus.CONFIRMED,
        AppointmentAction.CONFIRMED,
    ),
    AppointmentEvent.CANCEL: Transition(
        _OPEN, AppointmentStatus.CANCELLED, AppointmentAction.CANCELLED
    ),
    AppointmentEvent.RESCHEDULE: Transition(
        _OPEN, AppointmentStatus.SCHEDULED, AppointmentAction.RESCHEDULED
    ),
    AppointmentEvent.START: Transition(
        frozenset({AppointmentStatus.CONFIRMED}),
        AppointmentStatus.IN_PROGRESS,
        AppointmentAction.STARTED,
    ),
    AppointmentEvent.COMPLETE: Transition(
        frozenset({AppointmentStatus.IN_PROGRESS}),
        AppointmentStatus.COMPLETED,
        AppointmentAction.COMPLETED,
    ),
    AppointmentEvent.MARK_NO_SHOW: Transition(
        _OPEN, AppointmentStatus.NO_SHOW, AppointmentAction.NO_SHOW
    ),
}

# Statuses the patient is told about when an appointment enters them
PATIENT_FACING_ACTIONS = frozenset(
    {
        AppointmentAction.CONFIRMED,
        AppointmentAction.CANCELLED,
        AppointmentAction.RESCHEDULED,
        AppointmentAction.NO_SHOW,
    }
)


def resolve_transition(event: AppointmentEvent, current: AppointmentStatus) -> Transition:
    """
    Look up the transition ``event`` triggers from ``current``.

    Raises:
        InvalidTransitionError: If the table has no such edge
    """
    transition = TRANSITIONS[event]
    if current not in transition.sources:
        raise InvalidTransitionError(f"Cannot {event.value} an appointment that is {current.value}")
    return transition


def allowed_events(current: AppointmentStatus) -> list[AppointmentEvent]:
    """Events that are legal from ``current``, in table order."""
    return [event for event, t in TRANSITIONS.items() if current in t.sources]


class BookingLocks:
    """Process-local mutual exclusion keyed by id.

    Locks are created on first use and dropped again once nobody holds or
    waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: dict[UUID, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: UUID):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every service instance in the process
booking_locks = BookingLocks()
event_locks = BookingLocks()
