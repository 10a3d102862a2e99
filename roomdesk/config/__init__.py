"""
roomdesk config: load from env with load_booking_api_config().
"""
from roomdesk.config.booking_api import BookingApiConfig, load_booking_api_config

__all__ = [
    "BookingApiConfig",
    "load_booking_api_config",
]
