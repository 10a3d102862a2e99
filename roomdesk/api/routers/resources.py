"""Resources API: list bookable resources, their slot grid for a date, and their open dates."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from roomdesk.api.dependencies import get_availability_service
from roomdesk.api.schemas.resources import AvailabilityResponse, ResourceResponse, ValidDatesResponse
from roomdesk.services import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])

# Cap for one valid-dates request; the UI pages through months.
_MAX_RANGE_DAYS = 366


@router.get("", response_model=List[ResourceResponse])
async def list_resources(service: AvailabilityService = Depends(get_availability_service)):
    resources = await service.list_resources()
    return [
        ResourceResponse(
            id=r.id,
            name=r.name,
            capacity=r.effective_capacity,
            service_id=r.service_id,
            metadata=r.metadata,
        )
        for r in resources
    ]


@router.get("/{resource_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    resource_id: str,
    date: date,
    full_day: bool = False,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Slot grid for one local date. full_day=true also returns out-of-schedule cells."""
    day = await service.load_day(resource_id, date, full_day_grid=full_day)
    return day.to_dict()


@router.get("/{resource_id}/valid-dates", response_model=ValidDatesResponse)
async def get_valid_dates(
    resource_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    if start and end:
        if end < start:
            raise HTTPException(status_code=422, detail="end must not be before start")
        if end - start > timedelta(days=_MAX_RANGE_DAYS):
            raise HTTPException(status_code=422, detail=f"Range is limited to {_MAX_RANGE_DAYS} days")
    dates = await service.valid_dates(resource_id, start, end)
    return ValidDatesResponse(
        resource_id=resource_id,
        start=dates.start.isoformat(),
        end=dates.end.isoformat(),
        dates=[d.isoformat() for d in dates],
    )
