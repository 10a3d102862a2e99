"""Booking request validator: the last gate before a create/update call.

Failures are returned inside a ValidationOutcome rather than raised, so a UI
can render inline feedback; ``raise_for_error()`` is there for callers that
prefer exceptions.
"""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Container, Iterable, Optional

from roomdesk.core.exceptions import (
    BookingRejectedError,
    ConflictError,
    InvalidRangeError,
    OutsideScheduleError,
    PastTimeError,
    ScheduleMismatchError,
)
from roomdesk.scheduling.overlap import BookingWindow, find_conflict
from roomdesk.scheduling.schedule import blocks_for_weekday
from roomdesk.scheduling.timeutils import combine_with_offset, is_past_relative_to, time_to_minutes
from roomdesk.scheduling.types import ScheduleBlock, Weekday

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    date: Optional[_dt.date]
    start_time: _dt.time
    end_time: _dt.time


@dataclass(frozen=True)
class ValidationOutcome:
    """Either wire timestamps for the request, or the first check that failed."""

    error: Optional[BookingRejectedError] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    duration_minutes: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "ValidationOutcome":
        if self.error is not None:
            raise self.error
        return self


def _reject(error: BookingRejectedError) -> ValidationOutcome:
    logger.info("Booking request rejected: %s (%s)", error.code, error.details or "-")
    return ValidationOutcome(error=error)


def validate_booking_request(
    request: BookingRequest,
    *,
    schedule_blocks: Iterable[ScheduleBlock],
    existing_bookings: Iterable[BookingWindow],
    now: _dt.datetime,
    utc_offset: str,
    capacity: int = 1,
    valid_dates: Optional[Container[_dt.date]] = None,
) -> ValidationOutcome:
    """Run the booking checks in order and stop at the first failure.

    1. a date is chosen and, when *valid_dates* is given, belongs to it
    2. start is before end
    3. start is not in the past (*now* is in the resource's timezone)
    4. the window sits fully inside one block for the date's weekday
    5. the window does not conflict with *existing_bookings*

    *existing_bookings* must already exclude the booking being edited.
    """
    day = request.date
    if day is None:
        return _reject(ScheduleMismatchError("Please choose a date."))
    if valid_dates is not None and day not in valid_dates:
        return _reject(ScheduleMismatchError(details={"date": day.isoformat()}))

    start = time_to_minutes(request.start_time)
    end = time_to_minutes(request.end_time)
    if start >= end:
        return _reject(
            InvalidRangeError(
                details={"start_time": request.start_time.isoformat(), "end_time": request.end_time.isoformat()}
            )
        )

    if is_past_relative_to(day, request.start_time, now):
        return _reject(PastTimeError(details={"date": day.isoformat(), "start_time": request.start_time.isoformat()}))

    day_blocks = blocks_for_weekday(schedule_blocks, Weekday.of(day))
    if not any(b.contains(start, end) for b in day_blocks):
        return _reject(
            OutsideScheduleError(
                details={
                    "weekday": Weekday.of(day).value,
                    "blocks": [f"{b.start_time:%H:%M}-{b.end_time:%H:%M}" for b in day_blocks],
                }
            )
        )

    if find_conflict(start, end, existing_bookings, capacity):
        return _reject(ConflictError(details={"date": day.isoformat(), "capacity": capacity}))

    return ValidationOutcome(
        starts_at=combine_with_offset(day, request.start_time, utc_offset),
        ends_at=combine_with_offset(day, request.end_time, utc_offset),
        duration_minutes=end - start,
    )
