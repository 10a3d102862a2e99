"""FastAPI dependency providers."""
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request

from roomdesk.services import AvailabilityService, BookingService, Customer


def get_availability_service(request: Request) -> AvailabilityService:
    return request.app.state.availability_service


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_customer(
    x_customer_id: Optional[str] = Header(None),
    x_customer_name: Optional[str] = Header(None),
) -> Customer:
    """Identity is established upstream; the caller forwards it in headers."""
    if not x_customer_id or not x_customer_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Customer-Id header")
    return Customer(customer_id=x_customer_id.strip(), customer_name=(x_customer_name or "").strip())
