"""Pydantic models for booking API wire records, with conversion to domain types."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roomdesk.core.exceptions import ParseError
from roomdesk.scheduling.timeutils import parse_iso_duration, parse_iso_interval, to_zoned_datetime
from roomdesk.scheduling.types import Booking, Resource, Service


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BookingMetadata(_WireModel):
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


class BookingRecord(_WireModel):
    id: str
    resource_id: str
    starts_at: datetime
    ends_at: datetime
    service_id: Optional[str] = None
    location_id: Optional[str] = None
    is_canceled: bool = False
    price: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: BookingMetadata = Field(default_factory=BookingMetadata)

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def _aware(cls, v: Any) -> datetime:
        # Timestamps without an offset are taken as UTC.
        if isinstance(v, datetime):
            return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
        try:
            return to_zoned_datetime(str(v), "UTC")
        except ParseError as exc:
            raise ValueError(exc.message) from exc

    @field_validator("id", "resource_id", "service_id", "location_id", "price", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    def to_domain(self) -> Booking:
        return Booking(
            id=self.id,
            resource_id=self.resource_id,
            starts_at=self.starts_at,
            ends_at=self.ends_at,
            service_id=self.service_id,
            location_id=self.location_id,
            customer_id=self.metadata.customer_id or self.customer_id,
            customer_name=self.metadata.customer_name,
            is_canceled=self.is_canceled,
            price=self.price,
        )


class ServiceRecord(_WireModel):
    id: Optional[str] = None
    duration: Optional[str] = None
    bookable_interval: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            duration_minutes=parse_iso_duration(self.duration),
            bookable_interval_minutes=parse_iso_interval(self.bookable_interval),
        )


class ResourceRecord(_WireModel):
    id: str
    name: str
    capacity: Optional[int] = None
    max_simultaneous_bookings: Optional[int] = None
    service_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "service_id", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, v: Any) -> Dict[str, Any]:
        return v if isinstance(v, dict) else {}

    def to_domain(self) -> Resource:
        capacity = self.capacity or self.metadata.get("capacity") or 1
        try:
            capacity = int(capacity)
        except (TypeError, ValueError):
            capacity = 1
        return Resource(
            id=self.id,
            name=self.name,
            capacity=capacity,
            max_simultaneous_bookings=self.max_simultaneous_bookings,
            service_id=self.service_id,
            metadata=self.metadata,
        )


class CreateBookingPayload(_WireModel):
    resource_id: str
    service_id: str
    location_id: str
    starts_at: str
    ends_at: str
    customer_id: str
    customer_name: str
    price: str = "0.000"


class UpdateBookingPayload(_WireModel):
    starts_at: str
    ends_at: str


def unwrap(payload: Any) -> Any:
    """The API wraps most responses as ``{"data": ...}``; some endpoints don't."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def schedule_blocks_from(payload: Any) -> List[Dict[str, Any]]:
    body = payload
    if isinstance(body, dict):
        for key in ("schedule_blocks", "blocks", "data"):
            if key in body:
                body = body[key]
                break
    if isinstance(body, dict):
        body = body.get("schedule_blocks") or body.get("blocks") or []
    return [b for b in body if isinstance(b, dict)] if isinstance(body, list) else []
