"""Pydantic schemas for the resources and availability API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ResourceResponse(BaseModel):
    id: str
    name: str
    capacity: int
    service_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SlotResponse(BaseModel):
    start: str
    end: str
    start_minute: int
    end_minute: int
    in_schedule: bool = True
    status: Optional[str] = None
    booked_count: int = 0
    available_count: Optional[int] = None
    booking_ids: List[str] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    resource_id: str
    resource_name: str
    date: str
    weekday: str
    timezone: str
    step_minutes: int
    duration_minutes: Optional[int] = None
    capacity: int
    blocks: List[str]
    slots: List[SlotResponse]


class ValidDatesResponse(BaseModel):
    resource_id: str
    start: str
    end: str
    dates: List[str]
