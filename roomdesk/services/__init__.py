from roomdesk.services.availability_service import AvailabilityService, DayAvailability, SlotView
from roomdesk.services.booking_service import (
    BookingService,
    BookingSubmission,
    Customer,
    HistoryEntry,
    HistoryStatus,
)
from roomdesk.services.cache import ResourceDataCache

__all__ = [
    "AvailabilityService",
    "BookingService",
    "BookingSubmission",
    "Customer",
    "DayAvailability",
    "HistoryEntry",
    "HistoryStatus",
    "ResourceDataCache",
    "SlotView",
]
