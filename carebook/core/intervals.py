"""Half-open time interval arithmetic.

Every interval is ``[start, end)``: it contains its start instant and excludes
its end instant, so two intervals that merely touch (one ends exactly where the
next begins) do not overlap.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, order=True)
class TimeSlot:
    """A contiguous ``[start, end)`` span of time."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "TimeSlot") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "TimeSlot") -> bool:
        return self.start <= other.start and other.end <= self.end

    def clip(self, start: datetime, end: datetime) -> "TimeSlot":
        """Intersect with ``[start, end)``; the result may be empty."""
        return TimeSlot(max(self.start, start), min(self.end, end))


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Return True when ``[a_start, a_end)`` and ``[b_start, b_end)`` share an instant."""
    return a_start < b_end and b_start < a_end


def merge(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Union of intervals as a sorted list of disjoint, non-touching slots."""
    merged: list[TimeSlot] = []
    for slot in sorted(s for s in slots if not s.is_empty):
        if merged and slot.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeSlot(last.start, max(last.end, slot.end))
        else:
            merged.append(slot)
    return merged


def subtract(base: Iterable[TimeSlot], removals: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Remove every instant covered by ``removals`` from ``base``.

    The result is sorted and contains no empty slots.
    """
    cuts = merge(removals)
    remaining: list[TimeSlot] = []

    for slot in merge(base):
        cursor = slot.start
        for cut in cuts:
            if cut.end <= cursor:
                continue
            if cut.start >= slot.end:
                break
            if cut.start > cursor:
                remaining.append(TimeSlot(cursor, cut.start))
            cursor = max(cursor, cut.end)
            if cursor >= slot.end:
                break
        if cursor < slot.end:
            remaining.append(TimeSlot(cursor, slot.end))

    return remaining


def pack(slot: TimeSlot, length: timedelta) -> list[datetime]:
    """Start instants of back-to-back ``length`` blocks that fit inside ``slot``."""
    if length <= timedelta(0):
        return []
    starts: list[datetime] = []
    cursor = slot.start
    while cursor + length <= slot.end:
        starts.append(cursor)
        cursor += length
    return starts
