"""Bookings API: create, move and cancel bookings, and list the caller's own."""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from roomdesk.api.dependencies import get_booking_service, get_customer
from roomdesk.api.schemas.bookings import (
    BookingCancelResponse,
    BookingCreateRequest,
    BookingResponse,
    BookingSubmissionResponse,
    BookingUpdateRequest,
)
from roomdesk.services import BookingService, Customer, HistoryStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingSubmissionResponse, status_code=201)
async def create_booking(
    body: BookingCreateRequest,
    customer: Customer = Depends(get_customer),
    service: BookingService = Depends(get_booking_service),
):
    submission = await service.create_booking(
        body.resource_id,
        body.date,
        body.start_time,
        body.end_time,
        customer=customer,
    )
    submission.outcome.raise_for_error()
    return submission.to_dict()


@router.patch("/{booking_id}", response_model=BookingSubmissionResponse)
async def update_booking(
    booking_id: str,
    body: BookingUpdateRequest,
    customer: Customer = Depends(get_customer),
    service: BookingService = Depends(get_booking_service),
):
    submission = await service.update_booking(
        booking_id, body.date, body.start_time, body.end_time, customer=customer
    )
    submission.outcome.raise_for_error()
    logger.info("API: booking %s moved by %s", booking_id, customer.customer_id,
                extra={"booking_id": booking_id})
    return submission.to_dict()


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking(
    booking_id: str,
    customer: Customer = Depends(get_customer),
    service: BookingService = Depends(get_booking_service),
):
    flow = await service.cancel_booking(booking_id, customer=customer)
    logger.info("API: booking %s canceled by %s", booking_id, customer.customer_id,
                extra={"booking_id": booking_id})
    return BookingCancelResponse(booking_id=flow.booking_id, state=flow.state.value)


@router.get("/mine", response_model=List[BookingResponse])
async def my_bookings(
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[HistoryStatus] = None,
    customer: Customer = Depends(get_customer),
    service: BookingService = Depends(get_booking_service),
):
    entries = await service.booking_history(customer.customer_id, start=start, end=end, status=status)
    return [e.to_dict() for e in entries]
