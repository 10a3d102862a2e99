"""
roomdesk exception system.

Usage:
    from roomdesk.core.exceptions import ConflictError, UpstreamRequestError

    raise UpstreamRequestError("Booking API unreachable", cause=exc)

    # Validator errors are usually returned, not raised:
    outcome = validate_booking_request(...)
    if not outcome.ok:
        show(outcome.error.message)
"""
from roomdesk.core.exceptions.base import RoomdeskError
from roomdesk.core.exceptions.errors import (
    BookingRejectedError,
    ConfigurationError,
    ConflictError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    OutsideScheduleError,
    ParseError,
    PastTimeError,
    ScheduleMismatchError,
    UpstreamRequestError,
)

__all__ = [
    "RoomdeskError",
    "ConfigurationError",
    "ParseError",
    "NotFoundError",
    "UpstreamRequestError",
    "InvalidTransitionError",
    "BookingRejectedError",
    "ScheduleMismatchError",
    "InvalidRangeError",
    "PastTimeError",
    "OutsideScheduleError",
    "ConflictError",
]
