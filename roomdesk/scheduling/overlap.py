"""Booking overlap resolver: stamp slots from bookings and detect conflicts.

All intervals are half-open minutes-of-day on one local date, so a booking
ending at 10:00 and one starting at 10:00 never overlap.
"""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Union

from roomdesk.scheduling.timeutils import get_zone, minutes_since_midnight
from roomdesk.scheduling.types import Booking, Occupancy, Slot, SlotStatus

logger = logging.getLogger(__name__)

_MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class BookingWindow:
    """A non-canceled booking projected onto one local date."""
    booking_id: str
    start_minute: int
    end_minute: int
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    return start < other_end and end > other_start


def overlaps_datetimes(
    start: _dt.datetime, end: _dt.datetime, other_start: _dt.datetime, other_end: _dt.datetime
) -> bool:
    return start < other_end and end > other_start


def windows_for_date(
    bookings: Iterable[Booking],
    day: _dt.date,
    timezone: Union[str, _dt.tzinfo],
    *,
    exclude_booking_id: Optional[str] = None,
) -> List[BookingWindow]:
    """Project bookings onto *day* in *timezone*.

    Canceled bookings, the excluded booking and bookings that do not touch
    the local date are dropped. Parts outside the date are clipped to it.
    """
    tz = get_zone(timezone)
    day_start = _dt.datetime.combine(day, _dt.time(0, 0), tzinfo=tz)
    day_end = day_start + _dt.timedelta(days=1)
    windows: List[BookingWindow] = []
    for b in bookings:
        if b.is_canceled or (exclude_booking_id is not None and b.id == exclude_booking_id):
            continue
        start = b.starts_at.astimezone(tz)
        end = b.ends_at.astimezone(tz)
        if not overlaps_datetimes(start, end, day_start, day_end):
            continue
        start_minute = 0 if start < day_start else minutes_since_midnight(start)
        end_minute = _MINUTES_PER_DAY if end >= day_end else minutes_since_midnight(end)
        windows.append(
            BookingWindow(
                booking_id=b.id,
                start_minute=start_minute,
                end_minute=end_minute,
                customer_id=b.customer_id,
                customer_name=b.customer_name,
            )
        )
    return windows


def _occupying(start: int, end: int, windows: Sequence[BookingWindow]) -> List[BookingWindow]:
    return [w for w in windows if overlaps(start, end, w.start_minute, w.end_minute)]


def peak_occupancy(start: int, end: int, windows: Sequence[BookingWindow]) -> int:
    """Most bookings in use at the same moment inside [start, end).

    Bookings that touch the range but never each other count once each,
    not together. Ends sort before starts at the same minute (half-open).
    """
    edges = []
    for w in _occupying(start, end, windows):
        edges.append((max(start, w.start_minute), 1))
        edges.append((min(end, w.end_minute), -1))
    edges.sort()
    peak = current = 0
    for _, delta in edges:
        current += delta
        peak = max(peak, current)
    return peak


def classify_slots(
    slots: Iterable[Slot],
    bookings: Iterable[BookingWindow],
    capacity: int = 1,
) -> List[Slot]:
    """Return copies of *slots* with status and occupancy set.

    A slot is booked once the peak number of simultaneous bookings inside
    it reaches *capacity*; otherwise it is available when inside the
    schedule and unavailable when not.
    """
    capacity = max(1, capacity)
    windows = list(bookings)
    out: List[Slot] = []
    for slot in slots:
        hits = _occupying(slot.start_minute, slot.end_minute, windows)
        count = peak_occupancy(slot.start_minute, slot.end_minute, hits)
        if count >= capacity:
            status = SlotStatus.BOOKED
        elif slot.in_schedule:
            status = SlotStatus.AVAILABLE
        else:
            status = SlotStatus.UNAVAILABLE
        out.append(
            replace(
                slot,
                status=status,
                occupancy=Occupancy(count=count, capacity=capacity),
                booking_ids=tuple(w.booking_id for w in hits),
            )
        )
    return out


def find_conflict(
    proposed_start: int,
    proposed_end: int,
    bookings: Iterable[BookingWindow],
    capacity: int = 1,
) -> bool:
    """True if at some moment in [proposed_start, proposed_end) *capacity* bookings are in use.

    Uses the same counting rule as classify_slots, so a slot is booked
    exactly when this returns True for the slot's bounds, and a window made
    only of available slots never conflicts.
    """
    peak = peak_occupancy(proposed_start, proposed_end, list(bookings))
    if peak:
        logger.debug(
            "Window %d-%d peaks at %d booking(s), capacity %d",
            proposed_start, proposed_end, peak, capacity,
        )
    return peak >= max(1, capacity)
