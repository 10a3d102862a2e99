"""Pydantic schemas for the bookings API."""
from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from roomdesk.core.exceptions import ParseError
from roomdesk.scheduling.timeutils import parse_time_of_day


def _time_of_day(v: Any) -> Any:
    if v is None or isinstance(v, _dt.time):
        return v
    try:
        return parse_time_of_day(v)
    except ParseError as exc:
        raise ValueError(exc.message) from exc


class BookingCreateRequest(BaseModel):
    """Create a booking. Omit end_time to use the service's duration."""
    resource_id: str = Field(..., min_length=1)
    date: Optional[_dt.date] = None
    start_time: _dt.time
    end_time: Optional[_dt.time] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, v: Any) -> Any:
        return _time_of_day(v)


class BookingUpdateRequest(BaseModel):
    date: Optional[_dt.date] = None
    start_time: _dt.time
    end_time: _dt.time

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, v: Any) -> Any:
        return _time_of_day(v)


class BookingSubmissionResponse(BaseModel):
    ok: bool
    state: str
    booking_id: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    duration_minutes: Optional[int] = None
    error: Optional[Dict[str, Any]] = None


class BookingResponse(BaseModel):
    booking_id: str
    resource_id: str
    resource_name: Optional[str] = None
    starts_at: str
    ends_at: str
    status: str
    date: str
    time: str


class BookingCancelResponse(BaseModel):
    booking_id: Optional[str]
    state: str
