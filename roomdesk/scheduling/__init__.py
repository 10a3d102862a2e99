"""
Availability/slot engine: schedule blocks → slots → booking overlap → request validation.

Everything in this package is synchronous and pure; fetching data is the
job of roomdesk.services.
"""
from roomdesk.scheduling.lifecycle import BookingFlow, BookingState
from roomdesk.scheduling.overlap import BookingWindow, classify_slots, find_conflict, windows_for_date
from roomdesk.scheduling.schedule import (
    ScheduledDates,
    blocks_for_weekday,
    find_overlapping_blocks,
    parse_schedule_blocks,
    valid_dates_in_range,
    weekday_of,
)
from roomdesk.scheduling.slots import (
    SlotGroup,
    derive_end_time,
    generate_day_grid,
    generate_slot_groups,
    generate_slots,
    step_for_service,
)
from roomdesk.scheduling.types import (
    Booking,
    Occupancy,
    Resource,
    ScheduleBlock,
    Service,
    Slot,
    SlotStatus,
    Weekday,
)
from roomdesk.scheduling.validator import BookingRequest, ValidationOutcome, validate_booking_request

__all__ = [
    "Booking",
    "BookingFlow",
    "BookingRequest",
    "BookingState",
    "BookingWindow",
    "Occupancy",
    "Resource",
    "ScheduleBlock",
    "ScheduledDates",
    "Service",
    "Slot",
    "SlotGroup",
    "SlotStatus",
    "ValidationOutcome",
    "Weekday",
    "blocks_for_weekday",
    "classify_slots",
    "derive_end_time",
    "find_conflict",
    "find_overlapping_blocks",
    "generate_day_grid",
    "generate_slot_groups",
    "generate_slots",
    "parse_schedule_blocks",
    "step_for_service",
    "valid_dates_in_range",
    "validate_booking_request",
    "weekday_of",
    "windows_for_date",
]
