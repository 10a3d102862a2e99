"""AvailabilityService: fetch a resource's schedule, service and bookings, and build its slot grid."""
from __future__ import annotations

import asyncio
import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from roomdesk.clients.booking_api import BookingApiClient
from roomdesk.config import BookingApiConfig
from roomdesk.core.exceptions import NotFoundError, RoomdeskError, UpstreamRequestError
from roomdesk.scheduling.overlap import BookingWindow, classify_slots, windows_for_date
from roomdesk.scheduling.schedule import (
    ScheduledDates,
    blocks_for_weekday,
    find_overlapping_blocks,
    valid_dates_in_range,
)
from roomdesk.scheduling.slots import generate_day_grid, generate_slots, step_for_service
from roomdesk.scheduling.timeutils import is_past_relative_to, now_in_timezone, today_in_timezone
from roomdesk.scheduling.types import Booking, Resource, ScheduleBlock, Service, Slot, SlotStatus, Weekday
from roomdesk.services.cache import ResourceDataCache

logger = logging.getLogger(__name__)

ResourceRef = Union[str, Resource]


@dataclass(frozen=True)
class DayAvailability:
    """Classified slot grid for one resource on one local date."""

    resource: Resource
    date: _dt.date
    timezone: str
    service: Optional[Service]
    step_minutes: int
    blocks: Tuple[ScheduleBlock, ...]
    bookings: Tuple[BookingWindow, ...]
    slots: Tuple[Slot, ...]

    @property
    def key(self) -> Tuple[str, _dt.date]:
        return (self.resource.id, self.date)

    @property
    def is_scheduled(self) -> bool:
        return bool(self.blocks)

    def bookable_slots(self, now: _dt.datetime) -> List[Slot]:
        """Available slots whose start has not passed yet."""
        return [
            s for s in self.slots
            if s.status is SlotStatus.AVAILABLE and not is_past_relative_to(self.date, s.start_time, now)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_id": self.resource.id,
            "resource_name": self.resource.name,
            "date": self.date.isoformat(),
            "weekday": Weekday.of(self.date).value,
            "timezone": self.timezone,
            "step_minutes": self.step_minutes,
            "duration_minutes": self.service.duration_minutes if self.service else None,
            "capacity": self.resource.effective_capacity,
            "blocks": [f"{b.start_time:%H:%M}-{b.end_time:%H:%M}" for b in self.blocks],
            "slots": [s.to_dict() for s in self.slots],
        }


class AvailabilityService:
    def __init__(
        self,
        client: BookingApiClient,
        config: BookingApiConfig,
        cache: Optional[ResourceDataCache] = None,
    ) -> None:
        self._client = client
        self.config = config
        self._cache = cache or ResourceDataCache(ttl_seconds=config.cache_ttl_seconds)

    @property
    def cache(self) -> ResourceDataCache:
        return self._cache

    # ── upstream data (cached) ───────────────────────────────────────────────

    async def list_resources(self) -> List[Resource]:
        resources = self._cache.get("resources", "*")
        if resources is None:
            resources = await self._client.view_all_resources()
            self._cache.put("resources", "*", resources)
        return resources

    async def get_resource(self, resource: ResourceRef) -> Resource:
        if isinstance(resource, Resource):
            return resource
        for r in await self.list_resources():
            if r.id == resource:
                return r
        raise NotFoundError(f"Resource {resource} not found", details={"resource_id": resource})

    async def get_schedule(self, resource: Resource) -> List[ScheduleBlock]:
        blocks = self._cache.get("schedule", resource.id)
        if blocks is None:
            blocks = await self._client.get_resource_schedule_blocks(resource.name)
            overlapping = find_overlapping_blocks(blocks)
            if overlapping:
                logger.warning(
                    "AvailabilityService: %d overlapping schedule block pair(s) for %s; slots are additive",
                    len(overlapping), resource.name, extra={"resource_id": resource.id},
                )
            self._cache.put("schedule", resource.id, blocks)
        return blocks

    async def get_service(self, resource: Resource) -> Optional[Service]:
        service = self._cache.get("service", resource.id)
        if service is not None:
            return service
        service_id = resource.service_id or await self._client.get_service_id_by_resource_id(resource.id)
        if not service_id:
            logger.info("AvailabilityService: no service for resource %s", resource.id,
                        extra={"resource_id": resource.id})
            return None
        service = await self._client.get_service(service_id)
        self._cache.put("service", resource.id, service)
        return service

    async def get_bookings(self, resource: Resource, *, refresh: bool = False) -> List[Booking]:
        bookings = None if refresh else self._cache.get("bookings", resource.id)
        if bookings is None:
            bookings = await self._client.view_filtered_bookings(resource_id=resource.id)
            self._cache.put("bookings", resource.id, bookings)
        return bookings

    # ── computed views ───────────────────────────────────────────────────────

    async def load_day(
        self,
        resource: ResourceRef,
        day: _dt.date,
        *,
        full_day_grid: bool = False,
    ) -> DayAvailability:
        """Fetch everything needed for *day* and return its classified slots."""
        res = await self.get_resource(resource)
        blocks, service, bookings = await asyncio.gather(
            self.get_schedule(res),
            self.get_service(res),
            self.get_bookings(res),
        )
        tz = self.config.timezone
        step = step_for_service(service, self.config.default_step_minutes)
        if full_day_grid:
            slots = generate_day_grid(blocks, day, step)
        else:
            slots = generate_slots(blocks, day, step)
        windows = windows_for_date(bookings, day, tz)
        classified = classify_slots(slots, windows, res.effective_capacity)
        logger.debug(
            "AvailabilityService: %d slots, %d bookings for %s on %s",
            len(classified), len(windows), res.name, day,
            extra={"resource_id": res.id, "date": day.isoformat()},
        )
        return DayAvailability(
            resource=res,
            date=day,
            timezone=tz,
            service=service,
            step_minutes=step,
            blocks=tuple(blocks_for_weekday(blocks, Weekday.of(day))),
            bookings=tuple(windows),
            slots=tuple(classified),
        )

    async def valid_dates(
        self,
        resource: ResourceRef,
        start: Optional[_dt.date] = None,
        end: Optional[_dt.date] = None,
    ) -> ScheduledDates:
        """Dates with at least one schedule block, from today up to the configured horizon by default."""
        res = await self.get_resource(resource)
        blocks = await self.get_schedule(res)
        start = start or today_in_timezone(self.config.timezone)
        end = end or start + _dt.timedelta(days=self.config.valid_dates_horizon_days)
        return valid_dates_in_range(blocks, start, end)

    def invalidate(self, resource_id: Optional[str] = None) -> None:
        self._cache.invalidate(resource_id)

    def now(self) -> _dt.datetime:
        return now_in_timezone(self.config.timezone)


class SlotView:
    """Holds the slot grid for whatever (resource, date) a user is looking at.

    Each ``select`` supersedes the previous one: the older in-flight load is
    cancelled and, should it still finish, its result is dropped. Only the
    latest selection ever updates ``current``.
    """

    def __init__(self, service: AvailabilityService, timeout_seconds: Optional[float] = None) -> None:
        self._service = service
        self._timeout = timeout_seconds or service.config.timeout_seconds
        self._token = 0
        self._inflight: Optional[asyncio.Task] = None
        self.current: Optional[DayAvailability] = None
        self.error: Optional[RoomdeskError] = None

    @property
    def token(self) -> int:
        return self._token

    async def select(self, resource_id: str, day: _dt.date, **kwargs: Any) -> Optional[DayAvailability]:
        """Load (resource_id, day). Returns None if a newer selection superseded this one."""
        self._token += 1
        token = self._token
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        task = asyncio.ensure_future(
            asyncio.wait_for(self._service.load_day(resource_id, day, **kwargs), self._timeout)
        )
        self._inflight = task
        log_extra = {"resource_id": resource_id, "date": day.isoformat(), "request_token": token}

        try:
            result = await task
        except asyncio.CancelledError:
            if token != self._token:
                logger.debug("SlotView: load superseded", extra=log_extra)
                return None
            raise
        except asyncio.TimeoutError as exc:
            if token != self._token:
                return None
            self.error = UpstreamRequestError(
                f"Loading availability timed out after {self._timeout:g}s",
                details={"resource_id": resource_id, "date": day.isoformat()},
                cause=exc,
            )
            raise self.error from exc
        except RoomdeskError as exc:
            if token != self._token:
                logger.debug("SlotView: dropping error from superseded load: %s", exc, extra=log_extra)
                return None
            self.error = exc
            raise

        if token != self._token:
            logger.debug("SlotView: discarding stale response", extra=log_extra)
            return None
        self.current = result
        self.error = None
        return result

    def cancel(self) -> None:
        """Forget the current selection (e.g. the user navigated away)."""
        self._token += 1
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
