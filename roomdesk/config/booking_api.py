"""
roomdesk.config.booking_api – remote booking API and site policy config.

Env vars: BOOKING_API_BASE_URL, BOOKING_API_TIMEOUT, BOOKING_TIMEZONE,
BOOKING_UTC_OFFSET, BOOKING_LOCATION_ID, BOOKING_DEFAULT_STEP_MINUTES,
BOOKING_CACHE_TTL_SECONDS, BOOKING_VALID_DATES_HORIZON_DAYS.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_OFFSET_RE = re.compile(r"^[+-](?:[01]\d|2[0-3]):[0-5]\d$")


def _validate_base_url(url: str) -> str:
    url = (url or "").strip().rstrip("/")
    if not url:
        raise ValueError("BOOKING_API_BASE_URL is required and must be non-empty")
    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValueError("BOOKING_API_BASE_URL must start with http:// or https://")
    return url


def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"BOOKING_TIMEZONE is not a known IANA zone: {name!r}") from exc
    return name


def _validate_positive(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return value


@dataclass(frozen=True)
class BookingApiConfig:
    """
    Booking API connection and site-wide booking policy.

    All fields are validated on construction. Use load_booking_api_config()
    to build from environment variables.
    """

    base_url: str = "http://localhost:8080/booking_system"
    """Root of the remote booking API (no trailing slash)."""

    timeout_seconds: float = 10.0
    """Per-request timeout; also bounds a whole availability load."""

    timezone: str = "Asia/Hong_Kong"
    """IANA zone of the site; slots and weekdays are computed in it."""

    utc_offset: Optional[str] = None
    """Explicit offset for wire timestamps (e.g. "+08:00"). None = derive from timezone per date."""

    location_id: str = ""
    """Location attached to every created booking."""

    default_step_minutes: int = 15
    """Slot step when a service has no bookable interval."""

    cache_ttl_seconds: int = 300
    """How long fetched schedules/services/bookings stay fresh."""

    valid_dates_horizon_days: int = 365
    """How far ahead valid booking dates are offered."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", _validate_base_url(self.base_url))
        _validate_timezone(self.timezone)
        _validate_positive(self.timeout_seconds, "timeout_seconds")
        _validate_positive(self.default_step_minutes, "default_step_minutes")
        _validate_positive(self.cache_ttl_seconds, "cache_ttl_seconds")
        _validate_positive(self.valid_dates_horizon_days, "valid_dates_horizon_days")
        if self.utc_offset is not None and not _OFFSET_RE.match(self.utc_offset):
            raise ValueError(f"utc_offset must look like +08:00, got {self.utc_offset!r}")

    @classmethod
    def from_env(cls, **overrides: object) -> BookingApiConfig:
        """
        Build config from environment variables.

        Env:
            BOOKING_API_BASE_URL               – default http://localhost:8080/booking_system
            BOOKING_API_TIMEOUT                – default 10 (seconds)
            BOOKING_TIMEZONE                   – default Asia/Hong_Kong
            BOOKING_UTC_OFFSET                 – optional, e.g. +08:00
            BOOKING_LOCATION_ID                – default ""
            BOOKING_DEFAULT_STEP_MINUTES       – default 15
            BOOKING_CACHE_TTL_SECONDS          – default 300
            BOOKING_VALID_DATES_HORIZON_DAYS   – default 365

        Overrides (keyword args) take precedence over env.
        """

        def _get(attr: str, var: str, default: str) -> str:
            v = overrides.get(attr)
            if v is not None:
                return str(v)
            return os.environ.get(var, default)

        raw_offset = overrides.get("utc_offset") or os.environ.get("BOOKING_UTC_OFFSET") or None
        return cls(
            base_url=_get("base_url", "BOOKING_API_BASE_URL", cls.base_url),
            timeout_seconds=float(_get("timeout_seconds", "BOOKING_API_TIMEOUT", "10")),
            timezone=_get("timezone", "BOOKING_TIMEZONE", cls.timezone),
            utc_offset=str(raw_offset) if raw_offset else None,
            location_id=_get("location_id", "BOOKING_LOCATION_ID", ""),
            default_step_minutes=int(_get("default_step_minutes", "BOOKING_DEFAULT_STEP_MINUTES", "15")),
            cache_ttl_seconds=int(_get("cache_ttl_seconds", "BOOKING_CACHE_TTL_SECONDS", "300")),
            valid_dates_horizon_days=int(
                _get("valid_dates_horizon_days", "BOOKING_VALID_DATES_HORIZON_DAYS", "365")
            ),
        )


def load_booking_api_config(**overrides: object) -> BookingApiConfig:
    """
    Load and validate booking API config from environment (with optional overrides).

    Returns:
        Validated BookingApiConfig. Raises ValueError on invalid env/values.
    """
    return BookingApiConfig.from_env(**overrides)
