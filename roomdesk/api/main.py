"""roomdesk FastAPI application: entry point.

Start with:
    uvicorn roomdesk.api.main:app --reload --host 0.0.0.0 --port 8000

The booking API itself is remote (BOOKING_API_BASE_URL); this app computes
availability and validates requests in front of it.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roomdesk.clients.booking_api import BookingApiClient
from roomdesk.config import load_booking_api_config
from roomdesk.core.exceptions import RoomdeskError
from roomdesk.core.logger import configure, get_logger
from roomdesk.services import AvailabilityService, BookingService, ResourceDataCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure()

    config = load_booking_api_config()
    client = BookingApiClient(config)
    cache = ResourceDataCache(ttl_seconds=config.cache_ttl_seconds)
    availability = AvailabilityService(client, config, cache)

    app.state.booking_api_config = config
    app.state.availability_service = availability
    app.state.booking_service = BookingService(client, availability, config)
    get_logger(__name__).info("API: booking API at %s (timezone %s)", config.base_url, config.timezone)

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    cache.clear()
    logger.info("API: shut down")


app = FastAPI(
    title="roomdesk API",
    version="0.1.0",
    description="Availability and booking validation in front of the remote booking API.",
    lifespan=lifespan,
)


async def roomdesk_error_handler(request: Request, exc: RoomdeskError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning("API: %s %s failed: %s", request.method, request.url.path, exc)
    detail = exc.to_dict()
    detail.pop("cause_traceback", None)
    return JSONResponse(status_code=exc.http_status, content={"detail": detail})


app.add_exception_handler(RoomdeskError, roomdesk_error_handler)

# CORS: allow the web client dev server and any configured origin
_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Routers ───────────────────────────────────────────────────────
from roomdesk.api.routers import bookings, resources  # noqa: E402

app.include_router(resources.router, prefix="/api/v1")
app.include_router(bookings.router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
