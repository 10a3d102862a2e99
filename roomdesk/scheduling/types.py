"""Core data structures for the availability/slot engine."""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from roomdesk.core.exceptions import ParseError

DEFAULT_STEP_MINUTES = 15
DEFAULT_DURATION_MINUTES = 60


class Weekday(str, Enum):
    """Lowercase canonical weekday names, in ``date.weekday()`` order."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def parse(cls, value: Any) -> "Weekday":
        if isinstance(value, Weekday):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ParseError(f"Unknown weekday: {value!r}", details={"weekday": value}) from None

    @classmethod
    def of(cls, day: _dt.date) -> "Weekday":
        return list(cls)[day.weekday()]


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ScheduleBlock:
    """One contiguous availability window for a resource on a weekday. Never spans midnight."""

    weekday: Weekday
    start_time: _dt.time
    end_time: _dt.time

    def __post_init__(self) -> None:
        object.__setattr__(self, "weekday", Weekday.parse(self.weekday))
        if self.start_time >= self.end_time:
            raise ValueError(
                f"ScheduleBlock start {self.start_time} must be before end {self.end_time}"
            )

    @property
    def start_minute(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute

    @property
    def end_minute(self) -> int:
        return self.end_time.hour * 60 + self.end_time.minute

    def contains(self, start_minute: int, end_minute: int) -> bool:
        """True if [start_minute, end_minute) lies fully inside this block."""
        return self.start_minute <= start_minute and end_minute <= self.end_minute


@dataclass(frozen=True)
class Occupancy:
    count: int
    capacity: int

    @property
    def available_count(self) -> int:
        return max(0, self.capacity - self.count)


@dataclass(frozen=True)
class Slot:
    """
    One offerable unit of time, in minutes since local midnight.

    ``status`` and ``occupancy`` stay None until the slot is classified
    against bookings; classification returns new Slot objects.
    """

    start_minute: int
    end_minute: int
    in_schedule: bool = True
    status: Optional[SlotStatus] = None
    occupancy: Optional[Occupancy] = None
    booking_ids: Tuple[str, ...] = ()

    @property
    def start_time(self) -> _dt.time:
        return _dt.time(self.start_minute // 60, self.start_minute % 60)

    @property
    def end_time(self) -> _dt.time:
        # A slot ending at midnight reports 00:00
        m = self.end_minute % 1440
        return _dt.time(m // 60, m % 60)

    @property
    def label(self) -> str:
        return f"{self.start_minute // 60:02d}:{self.start_minute % 60:02d}"

    @property
    def available_count(self) -> int:
        return self.occupancy.available_count if self.occupancy else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.label,
            "end": self.end_time.strftime("%H:%M"),
            "start_minute": self.start_minute,
            "end_minute": self.end_minute,
            "in_schedule": self.in_schedule,
            "status": self.status.value if self.status else None,
            "booked_count": self.occupancy.count if self.occupancy else 0,
            "available_count": self.available_count,
            "booking_ids": list(self.booking_ids),
        }


@dataclass(frozen=True)
class Booking:
    """A reservation owned by the remote booking API."""

    id: str
    resource_id: str
    starts_at: _dt.datetime
    ends_at: _dt.datetime
    service_id: Optional[str] = None
    location_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    is_canceled: bool = False
    price: Optional[str] = None

    def __post_init__(self) -> None:
        if self.starts_at.tzinfo is None or self.ends_at.tzinfo is None:
            raise ValueError(f"Booking {self.id} timestamps must carry a UTC offset")
        if self.starts_at >= self.ends_at:
            raise ValueError(f"Booking {self.id} must start before it ends")


@dataclass(frozen=True)
class Service:
    """
    Booking policy attached to a resource.

    ``bookable_interval_minutes`` is the slot step shown to users and
    ``duration_minutes`` the length of a booking; the two are independent.
    """

    id: Optional[str] = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    bookable_interval_minutes: Optional[int] = None

    @property
    def step_minutes(self) -> int:
        return self.bookable_interval_minutes or DEFAULT_STEP_MINUTES


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    capacity: int = 1
    max_simultaneous_bookings: Optional[int] = None
    service_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def effective_capacity(self) -> int:
        """How many bookings may overlap before a slot counts as booked."""
        return max(1, self.max_simultaneous_bookings or self.capacity or 1)
