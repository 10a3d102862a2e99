"""Booking API client and wire schemas."""
from roomdesk.clients.booking_api.client import BookingApiClient
from roomdesk.clients.booking_api.schemas import (
    BookingRecord,
    CreateBookingPayload,
    ResourceRecord,
    ServiceRecord,
    UpdateBookingPayload,
)

__all__ = [
    "BookingApiClient",
    "BookingRecord",
    "CreateBookingPayload",
    "ResourceRecord",
    "ServiceRecord",
    "UpdateBookingPayload",
]
