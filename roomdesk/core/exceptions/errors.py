"""
Built-in exception types.
"""
from __future__ import annotations

from roomdesk.core.exceptions.base import RoomdeskError


class ConfigurationError(RoomdeskError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ParseError(RoomdeskError):
    """Malformed timestamp, date, time-of-day or weekday input."""

    default_code = "PARSE_ERROR"
    default_http_status = 422


class NotFoundError(RoomdeskError):
    """Requested resource or booking not found."""

    default_code = "NOT_FOUND"
    default_http_status = 404


class UpstreamRequestError(RoomdeskError):
    """The remote booking API could not be reached or answered with an error."""

    default_code = "UPSTREAM_REQUEST_ERROR"
    default_http_status = 502


class InvalidTransitionError(RoomdeskError):
    """A booking flow was asked to move to a state it cannot reach."""

    default_code = "INVALID_TRANSITION"
    default_http_status = 409


class BookingRejectedError(RoomdeskError):
    """
    A proposed booking window failed validation.

    Subclasses map one-to-one to the validator checks and each has its own
    default user message.
    """

    default_code = "BOOKING_REJECTED"
    default_http_status = 422
    default_message = "This booking cannot be made."

    def __init__(self, message: str | None = None, **kwargs) -> None:
        super().__init__(message or self.default_message, **kwargs)


class ScheduleMismatchError(BookingRejectedError):
    """No date chosen, or the date has no schedule for this resource."""

    default_code = "SCHEDULE_MISMATCH"
    default_message = "The selected date is not available for this resource."


class InvalidRangeError(BookingRejectedError):
    """End time is not after start time."""

    default_code = "INVALID_RANGE"
    default_message = "End time must be after start time."


class PastTimeError(BookingRejectedError):
    """Start time has already passed."""

    default_code = "PAST_TIME"
    default_message = "Cannot book a time that has already passed."


class OutsideScheduleError(BookingRejectedError):
    """The window is not fully inside one of the resource's schedule blocks."""

    default_code = "OUTSIDE_SCHEDULE"
    default_message = "The selected time is outside the resource's opening hours."


class ConflictError(BookingRejectedError):
    """The window overlaps existing bookings up to the resource's capacity."""

    default_code = "CONFLICT"
    default_http_status = 409
    default_message = "This time slot is already booked."
