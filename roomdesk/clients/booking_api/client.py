"""Remote booking API client (plain HTTP + JSON)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from roomdesk.clients.booking_api.schemas import (
    BookingRecord,
    CreateBookingPayload,
    ResourceRecord,
    ServiceRecord,
    UpdateBookingPayload,
    schedule_blocks_from,
    unwrap,
)
from roomdesk.config import BookingApiConfig
from roomdesk.core.exceptions import NotFoundError, UpstreamRequestError
from roomdesk.scheduling.schedule import parse_schedule_blocks
from roomdesk.scheduling.types import Booking, Resource, ScheduleBlock, Service, Weekday

logger = logging.getLogger(__name__)

_BOOKING_FILTERS = ("resource_id", "location_id", "service_id")
_MAX_ERROR_BODY_CHARS = 500


class BookingApiClient:
    """Thin async wrapper over the booking API endpoints.

    Every failure (transport error, non-2xx, undecodable body) surfaces as
    UpstreamRequestError; nothing is retried.
    """

    def __init__(
        self,
        config: BookingApiConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout_seconds,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            ) as client:
                resp = await client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("BookingApiClient: %s %s failed: %s", method, endpoint, exc)
            raise UpstreamRequestError(
                f"Booking API request failed: {method} {endpoint}",
                details={"endpoint": endpoint},
                cause=exc,
            ) from exc

        if resp.status_code == 404:
            raise NotFoundError(f"Not found: {endpoint}", details={"endpoint": endpoint})
        if resp.status_code >= 300:
            message = _error_message(resp) or f"Booking API request failed: {resp.status_code}"
            logger.warning(
                "BookingApiClient: %s %s -> %s: %s",
                method, endpoint, resp.status_code, resp.text[:_MAX_ERROR_BODY_CHARS],
                extra={"status_code": resp.status_code},
            )
            raise UpstreamRequestError(
                message,
                details={"endpoint": endpoint, "status_code": resp.status_code},
            )
        return resp

    async def _json(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        resp = await self._request(method, endpoint, **kwargs)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamRequestError(
                f"Booking API returned non-JSON body for {endpoint}",
                details={"endpoint": endpoint},
                cause=exc,
            ) from exc

    # ── Bookings ──────────────────────────────────────────────────────────────

    async def view_all_bookings(self) -> List[Booking]:
        return _bookings(unwrap(await self._json("GET", "/viewAllBookings")))

    async def view_filtered_bookings(self, **filters: Optional[str]) -> List[Booking]:
        """Only resource_id, location_id and service_id are understood by the API."""
        params = {k: str(v) for k, v in filters.items() if k in _BOOKING_FILTERS and v not in (None, "")}
        return _bookings(unwrap(await self._json("GET", "/viewFilteredBookings", params=params)))

    async def view_booking(self, booking_id: str) -> Booking:
        data = unwrap(await self._json("GET", f"/viewBooking/{quote(str(booking_id), safe='')}"))
        if not data:
            raise NotFoundError(f"Booking {booking_id} not found", details={"booking_id": booking_id})
        return _booking(data)

    async def create_booking(self, payload: CreateBookingPayload) -> Optional[Booking]:
        """POST /createBookings. Returns the created booking when the API echoes it back."""
        data = unwrap(await self._json("POST", "/createBookings", json=payload.model_dump()))
        logger.info("BookingApiClient: created booking for resource %s", payload.resource_id,
                    extra={"resource_id": payload.resource_id})
        if isinstance(data, dict) and "id" in data:
            return _booking(data)
        return None

    async def update_booking(self, booking_id: str, payload: UpdateBookingPayload) -> None:
        await self._request(
            "PATCH", f"/updateBooking/{quote(str(booking_id), safe='')}", json=payload.model_dump()
        )
        logger.info("BookingApiClient: updated booking %s", booking_id, extra={"booking_id": booking_id})

    async def delete_booking(self, booking_id: str) -> None:
        await self._request("DELETE", f"/deleteBooking/{quote(str(booking_id), safe='')}")
        logger.info("BookingApiClient: deleted booking %s", booking_id, extra={"booking_id": booking_id})

    # ── Resources, schedules, services ───────────────────────────────────────

    async def view_all_resources(self) -> List[Resource]:
        data = unwrap(await self._json("GET", "/viewAllresources")) or []
        return [_decode(ResourceRecord, r).to_domain() for r in data]

    async def get_resource_schedule_blocks(
        self,
        resource_name: str,
        weekday: Optional[Weekday] = None,
    ) -> List[ScheduleBlock]:
        params = {"weekday": Weekday.parse(weekday).value} if weekday else None
        payload = await self._json(
            "GET", f"/getResourceScheduleInfo/{quote(resource_name, safe='')}", params=params
        )
        return parse_schedule_blocks(schedule_blocks_from(payload))

    async def get_service(self, service_id: str) -> Service:
        data = unwrap(await self._json("GET", f"/getService/{quote(str(service_id), safe='')}"))
        record = _decode(ServiceRecord, data or {})
        if record.id is None:
            record = record.model_copy(update={"id": str(service_id)})
        return record.to_domain()

    async def get_service_id_by_resource_id(self, resource_id: str) -> Optional[str]:
        """The endpoint answers with the bare id as text (sometimes JSON-quoted)."""
        resp = await self._request("POST", "/getServiceIdbyResourceId", json={"resource_id": resource_id})
        text = resp.text.strip().strip('"')
        if text.startswith("{"):
            data = unwrap(resp.json())
            text = str(data.get("service_id") or data.get("id") or "") if isinstance(data, dict) else str(data or "")
        return text or None


def _error_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip()[:_MAX_ERROR_BODY_CHARS] or None
    if isinstance(body, dict):
        return body.get("message") or body.get("error")
    return None


def _decode(model: type, data: Any):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise UpstreamRequestError(
            f"Booking API returned an unexpected {model.__name__}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
            cause=exc,
        ) from exc


def _booking(data: Any) -> Booking:
    record = _decode(BookingRecord, data)
    try:
        return record.to_domain()
    except ValueError as exc:
        raise UpstreamRequestError(f"Booking API returned an invalid booking: {exc}", cause=exc) from exc


def _bookings(data: Any) -> List[Booking]:
    out: List[Booking] = []
    for raw in data or []:
        try:
            out.append(BookingRecord.model_validate(raw).to_domain())
        except (ValidationError, ValueError) as exc:
            bid = raw.get("id") if isinstance(raw, dict) else raw
            logger.warning("BookingApiClient: skipping malformed booking %r: %s", bid, exc)
    return out
