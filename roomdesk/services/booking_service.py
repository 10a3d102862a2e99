"""BookingService: validate and submit create/edit/cancel requests, and list a customer's bookings."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from roomdesk.clients.booking_api import BookingApiClient, CreateBookingPayload, UpdateBookingPayload
from roomdesk.config import BookingApiConfig
from roomdesk.core.exceptions import ConfigurationError, NotFoundError, RoomdeskError
from roomdesk.scheduling.lifecycle import BookingFlow, BookingState
from roomdesk.scheduling.overlap import windows_for_date
from roomdesk.scheduling.slots import derive_end_time
from roomdesk.scheduling.timeutils import format_date, format_time, get_zone, utc_offset_for
from roomdesk.scheduling.types import Booking, Resource
from roomdesk.scheduling.validator import BookingRequest, ValidationOutcome, validate_booking_request
from roomdesk.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Customer:
    """Identity of the person booking; supplied by the caller's auth layer."""

    customer_id: str
    customer_name: str = ""


@dataclass
class BookingSubmission:
    """Result of a create or edit attempt.

    A rejected request carries the validator's outcome and never reaches the
    API; ``booking`` is only set when the API echoed the created booking.
    """

    outcome: ValidationOutcome
    flow: BookingFlow
    booking: Optional[Booking] = None
    booking_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "state": self.flow.state.value,
            "booking_id": self.booking_id,
            "starts_at": self.outcome.starts_at,
            "ends_at": self.outcome.ends_at,
            "duration_minutes": self.outcome.duration_minutes,
            "error": self.outcome.error.to_dict() if self.outcome.error else None,
        }


class HistoryStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class HistoryEntry:
    booking: Booking
    status: HistoryStatus
    date_label: str
    time_label: str
    resource_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking.id,
            "resource_id": self.booking.resource_id,
            "resource_name": self.resource_name,
            "starts_at": self.booking.starts_at.isoformat(),
            "ends_at": self.booking.ends_at.isoformat(),
            "status": self.status.value,
            "date": self.date_label,
            "time": self.time_label,
        }


def history_status(booking: Booking, now: _dt.datetime) -> HistoryStatus:
    if booking.is_canceled:
        return HistoryStatus.CANCELED
    if booking.ends_at <= now:
        return HistoryStatus.COMPLETED
    if booking.starts_at <= now:
        return HistoryStatus.ONGOING
    return HistoryStatus.UPCOMING


def price_for(resource: Resource) -> str:
    """First listed rate from the resource metadata, formatted ``0.000``."""
    rates = resource.metadata.get("rates") if isinstance(resource.metadata, dict) else None
    if isinstance(rates, list) and rates and isinstance(rates[0], dict):
        try:
            return f"{float(rates[0].get('price') or 0):.3f}"
        except (TypeError, ValueError):
            logger.warning("BookingService: unreadable rate on resource %s", resource.id,
                           extra={"resource_id": resource.id})
    return "0.000"


class BookingService:
    def __init__(
        self,
        client: BookingApiClient,
        availability: AvailabilityService,
        config: BookingApiConfig,
    ) -> None:
        self._client = client
        self._availability = availability
        self.config = config

    def _utc_offset(self, day: _dt.date) -> str:
        return self.config.utc_offset or utc_offset_for(self.config.timezone, day)

    async def _validate(
        self,
        resource: Resource,
        day: Optional[_dt.date],
        start_time: _dt.time,
        end_time: _dt.time,
        *,
        now: Optional[_dt.datetime],
        exclude_booking_id: Optional[str] = None,
    ) -> ValidationOutcome:
        tz = self.config.timezone
        blocks = await self._availability.get_schedule(resource)
        # Always check conflicts against fresh bookings, never the cached list.
        bookings = await self._availability.get_bookings(resource, refresh=True)
        now = now.astimezone(get_zone(tz)) if now else self._availability.now()
        valid_dates = await self._availability.valid_dates(resource, now.date())
        windows = windows_for_date(bookings, day, tz, exclude_booking_id=exclude_booking_id) if day else []
        return validate_booking_request(
            BookingRequest(date=day, start_time=start_time, end_time=end_time),
            schedule_blocks=blocks,
            existing_bookings=windows,
            now=now,
            utc_offset=self._utc_offset(day or now.date()),
            capacity=resource.effective_capacity,
            valid_dates=valid_dates,
        )

    async def create_booking(
        self,
        resource_id: str,
        day: Optional[_dt.date],
        start_time: _dt.time,
        end_time: Optional[_dt.time] = None,
        *,
        customer: Customer,
        now: Optional[_dt.datetime] = None,
    ) -> BookingSubmission:
        """Validate and create a booking.

        When *end_time* is omitted it is derived from the service duration.
        Validation failures come back as a rejected submission; upstream
        failures raise.
        """
        resource = await self._availability.get_resource(resource_id)
        service = await self._availability.get_service(resource)
        if service is None or not service.id:
            raise ConfigurationError(
                f"Resource {resource.name} has no bookable service",
                details={"resource_id": resource.id},
            )
        if end_time is None:
            end_time = derive_end_time(start_time, service.duration_minutes)

        flow = BookingFlow().submit()
        outcome = await self._validate(resource, day, start_time, end_time, now=now)
        if not outcome.ok:
            flow.reject(outcome.error)
            return BookingSubmission(outcome=outcome, flow=flow)

        payload = CreateBookingPayload(
            resource_id=resource.id,
            service_id=service.id,
            location_id=self.config.location_id,
            starts_at=outcome.starts_at,
            ends_at=outcome.ends_at,
            customer_id=customer.customer_id,
            customer_name=customer.customer_name,
            price=price_for(resource),
        )
        try:
            created = await self._client.create_booking(payload)
        finally:
            self._availability.invalidate(resource.id)
        booking_id = created.id if created else None
        flow.confirm(booking_id)
        logger.info(
            "BookingService: booked %s %s-%s for %s",
            resource.name, outcome.starts_at, outcome.ends_at, customer.customer_id,
            extra={"resource_id": resource.id, "booking_id": booking_id, "date": day.isoformat()},
        )
        return BookingSubmission(outcome=outcome, flow=flow, booking=created, booking_id=booking_id)

    async def _owned_booking(self, booking_id: str, customer: Customer) -> Tuple[Booking, BookingFlow]:
        """Fetch a booking the customer owns, with a flow in its current state.

        Someone else's booking is reported as not found.
        """
        existing = await self._client.view_booking(booking_id)
        if existing.customer_id != customer.customer_id:
            logger.warning(
                "BookingService: %s tried to act on booking %s owned by %s",
                customer.customer_id, booking_id, existing.customer_id,
                extra={"booking_id": booking_id},
            )
            raise NotFoundError(f"Booking {booking_id} not found", details={"booking_id": booking_id})
        state = BookingState.CANCELED if existing.is_canceled else BookingState.CONFIRMED
        return existing, BookingFlow(state=state, booking_id=booking_id)

    async def update_booking(
        self,
        booking_id: str,
        day: Optional[_dt.date],
        start_time: _dt.time,
        end_time: _dt.time,
        *,
        customer: Customer,
        now: Optional[_dt.datetime] = None,
    ) -> BookingSubmission:
        """Move one of the customer's bookings; its own window is ignored in the conflict check."""
        existing, flow = await self._owned_booking(booking_id, customer)
        flow.edit().submit()
        resource = await self._availability.get_resource(existing.resource_id)

        outcome = await self._validate(
            resource, day, start_time, end_time, now=now, exclude_booking_id=booking_id
        )
        if not outcome.ok:
            flow.reject(outcome.error)
            return BookingSubmission(outcome=outcome, flow=flow, booking_id=booking_id)

        try:
            await self._client.update_booking(
                booking_id, UpdateBookingPayload(starts_at=outcome.starts_at, ends_at=outcome.ends_at)
            )
        finally:
            self._availability.invalidate(resource.id)
        flow.confirm()
        return BookingSubmission(outcome=outcome, flow=flow, booking_id=booking_id)

    async def cancel_booking(self, booking_id: str, *, customer: Customer) -> BookingFlow:
        existing, flow = await self._owned_booking(booking_id, customer)
        flow.cancel()
        await self._client.delete_booking(booking_id)
        self._availability.invalidate(existing.resource_id)
        return flow

    async def my_bookings(self, customer_id: str) -> List[Booking]:
        bookings = await self._client.view_all_bookings()
        mine = [b for b in bookings if b.customer_id == customer_id]
        return sorted(mine, key=lambda b: b.starts_at)

    async def booking_history(
        self,
        customer_id: str,
        *,
        start: Optional[_dt.date] = None,
        end: Optional[_dt.date] = None,
        status: Optional[HistoryStatus] = None,
        now: Optional[_dt.datetime] = None,
    ) -> List[HistoryEntry]:
        """A customer's bookings labelled upcoming/ongoing/completed/canceled.

        *start* and *end* bound the local booking date (inclusive); *status*
        of None keeps every entry.
        """
        tz = get_zone(self.config.timezone)
        now = now or self._availability.now()
        names: Dict[str, str] = {}
        try:
            names = {r.id: r.name for r in await self._availability.list_resources()}
        except RoomdeskError as exc:
            logger.warning("BookingService: could not load resource names: %s", exc)

        entries: List[HistoryEntry] = []
        for booking in await self.my_bookings(customer_id):
            local_day = booking.starts_at.astimezone(tz).date()
            if start and local_day < start:
                continue
            if end and local_day > end:
                continue
            entry_status = history_status(booking, now)
            if status is not None and entry_status is not status:
                continue
            entries.append(
                HistoryEntry(
                    booking=booking,
                    status=entry_status,
                    date_label=format_date(booking.starts_at, tz),
                    time_label=f"{format_time(booking.starts_at, tz)} - {format_time(booking.ends_at, tz)}",
                    resource_name=names.get(booking.resource_id),
                )
            )
        return entries
