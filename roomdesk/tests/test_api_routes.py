"""HTTP tests for the resources and bookings routers."""
from __future__ import annotations

import datetime as _dt
import logging
import os
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.testclient import TestClient

from roomdesk.api.main import roomdesk_error_handler
from roomdesk.api.routers import bookings, resources
from roomdesk.config import BookingApiConfig
from roomdesk.core.exceptions import ConflictError, NotFoundError, RoomdeskError, UpstreamRequestError
from roomdesk.scheduling.lifecycle import BookingFlow, BookingState
from roomdesk.scheduling.overlap import classify_slots
from roomdesk.scheduling.schedule import valid_dates_in_range
from roomdesk.scheduling.slots import generate_slots
from roomdesk.scheduling.types import Booking, Resource, ScheduleBlock, Service
from roomdesk.scheduling.validator import ValidationOutcome
from roomdesk.services import AvailabilityService, BookingService, BookingSubmission, DayAvailability

HK = ZoneInfo("Asia/Hong_Kong")
TUESDAY = _dt.date(2025, 11, 4)
BLOCK = ScheduleBlock("tuesday", _dt.time(9), _dt.time(10))
ROOM = Resource(id="r1", name="Room A")
HEADERS = {"X-Customer-Id": "c-1", "X-Customer-Name": "Sam"}


def _app(availability=None, booking=None):
    app = FastAPI()
    app.add_exception_handler(RoomdeskError, roomdesk_error_handler)
    app.include_router(resources.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.state.availability_service = availability or SimpleNamespace()
    app.state.booking_service = booking or SimpleNamespace()
    return TestClient(app)


def _day():
    return DayAvailability(
        resource=ROOM,
        date=TUESDAY,
        timezone="Asia/Hong_Kong",
        service=Service(id="s1", duration_minutes=60, bookable_interval_minutes=30),
        step_minutes=30,
        blocks=(BLOCK,),
        bookings=(),
        slots=tuple(classify_slots(generate_slots([BLOCK], TUESDAY, 30), [])),
    )


class TestResourcesRouter(unittest.TestCase):
    def test_list_resources(self):
        availability = SimpleNamespace(list_resources=AsyncMock(return_value=[
            Resource(id="r1", name="Room A", capacity=4),
        ]))
        resp = _app(availability).get("/api/v1/resources")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]["capacity"], 4)

    def test_availability(self):
        availability = SimpleNamespace(load_day=AsyncMock(return_value=_day()))
        resp = _app(availability).get("/api/v1/resources/r1/availability", params={"date": "2025-11-04"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["weekday"], "tuesday")
        self.assertEqual([s["start"] for s in body["slots"]], ["09:00", "09:30"])
        self.assertEqual(body["slots"][0]["status"], "available")
        availability.load_day.assert_awaited_once_with("r1", TUESDAY, full_day_grid=False)

    def test_availability_requires_valid_date(self):
        resp = _app(SimpleNamespace(load_day=AsyncMock())).get(
            "/api/v1/resources/r1/availability", params={"date": "tuesday"}
        )
        self.assertEqual(resp.status_code, 422)

    def test_unknown_resource_is_404(self):
        availability = SimpleNamespace(load_day=AsyncMock(side_effect=NotFoundError("Resource x not found")))
        resp = _app(availability).get("/api/v1/resources/x/availability", params={"date": "2025-11-04"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"]["code"], "NOT_FOUND")

    def test_upstream_failure_is_502(self):
        availability = SimpleNamespace(
            load_day=AsyncMock(side_effect=UpstreamRequestError("down", cause=OSError("refused")))
        )
        resp = _app(availability).get("/api/v1/resources/r1/availability", params={"date": "2025-11-04"})
        self.assertEqual(resp.status_code, 502)
        self.assertNotIn("cause_traceback", resp.json()["detail"])

    def test_valid_dates(self):
        dates = valid_dates_in_range([BLOCK], TUESDAY, TUESDAY + _dt.timedelta(days=7))
        availability = SimpleNamespace(valid_dates=AsyncMock(return_value=dates))
        resp = _app(availability).get(
            "/api/v1/resources/r1/valid-dates", params={"start": "2025-11-04", "end": "2025-11-11"}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["dates"], ["2025-11-04", "2025-11-11"])

    def test_valid_dates_rejects_inverted_range(self):
        resp = _app(SimpleNamespace(valid_dates=AsyncMock())).get(
            "/api/v1/resources/r1/valid-dates", params={"start": "2025-11-11", "end": "2025-11-04"}
        )
        self.assertEqual(resp.status_code, 422)


class TestBookingsRouter(unittest.TestCase):
    def _submission(self, error=None):
        flow = BookingFlow().submit()
        if error is None:
            flow.confirm("b9")
            outcome = ValidationOutcome(
                starts_at="2025-11-04T09:00:00+08:00", ends_at="2025-11-04T10:00:00+08:00", duration_minutes=60
            )
            return BookingSubmission(outcome=outcome, flow=flow, booking_id="b9")
        flow.reject(error)
        return BookingSubmission(outcome=ValidationOutcome(error=error), flow=flow)

    def test_create(self):
        booking = SimpleNamespace(create_booking=AsyncMock(return_value=self._submission()))
        resp = _app(booking=booking).post(
            "/api/v1/bookings",
            json={"resource_id": "r1", "date": "2025-11-04", "start_time": "09:00"},
            headers=HEADERS,
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["booking_id"], "b9")
        self.assertEqual(resp.json()["state"], "confirmed")
        args = booking.create_booking.await_args
        self.assertEqual(args.args, ("r1", TUESDAY, _dt.time(9, 0), None))
        self.assertEqual(args.kwargs["customer"].customer_name, "Sam")

    def test_create_conflict_is_409(self):
        booking = SimpleNamespace(create_booking=AsyncMock(return_value=self._submission(ConflictError())))
        resp = _app(booking=booking).post(
            "/api/v1/bookings",
            json={"resource_id": "r1", "date": "2025-11-04", "start_time": "10:30", "end_time": "11:30"},
            headers=HEADERS,
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["detail"]["message"], ConflictError.default_message)

    def test_create_requires_customer(self):
        booking = SimpleNamespace(create_booking=AsyncMock())
        resp = _app(booking=booking).post(
            "/api/v1/bookings", json={"resource_id": "r1", "date": "2025-11-04", "start_time": "09:00"}
        )
        self.assertEqual(resp.status_code, 401)
        booking.create_booking.assert_not_awaited()

    def test_create_rejects_bad_time(self):
        resp = _app(booking=SimpleNamespace(create_booking=AsyncMock())).post(
            "/api/v1/bookings",
            json={"resource_id": "r1", "date": "2025-11-04", "start_time": "9am"},
            headers=HEADERS,
        )
        self.assertEqual(resp.status_code, 422)

    def test_update(self):
        booking = SimpleNamespace(update_booking=AsyncMock(return_value=self._submission()))
        resp = _app(booking=booking).patch(
            "/api/v1/bookings/b9",
            json={"date": "2025-11-04", "start_time": "09:00", "end_time": "10:00"},
            headers=HEADERS,
        )
        self.assertEqual(resp.status_code, 200)
        args = booking.update_booking.await_args
        self.assertEqual(args.args, ("b9", TUESDAY, _dt.time(9, 0), _dt.time(10, 0)))
        self.assertEqual(args.kwargs["customer"].customer_id, "c-1")

    def test_cancel(self):
        flow = BookingFlow(state=BookingState.CONFIRMED, booking_id="b9").cancel()
        booking = SimpleNamespace(cancel_booking=AsyncMock(return_value=flow))
        resp = _app(booking=booking).delete("/api/v1/bookings/b9", headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"booking_id": "b9", "state": "canceled"})
        self.assertEqual(booking.cancel_booking.await_args.kwargs["customer"].customer_id, "c-1")

    def test_mine(self):
        entry = SimpleNamespace(to_dict=lambda: {
            "booking_id": "b9", "resource_id": "r1", "resource_name": "Room A",
            "starts_at": "2025-11-04T09:00:00+08:00", "ends_at": "2025-11-04T10:00:00+08:00",
            "status": "upcoming", "date": "Tue, 4 Nov 2025", "time": "09:00 AM - 10:00 AM",
        })
        booking = SimpleNamespace(booking_history=AsyncMock(return_value=[entry]))
        resp = _app(booking=booking).get("/api/v1/bookings/mine", params={"status": "upcoming"}, headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]["status"], "upcoming")
        kwargs = booking.booking_history.await_args.kwargs
        self.assertEqual(kwargs["status"].value, "upcoming")
        self.assertEqual(booking.booking_history.await_args.args, ("c-1",))


class TestBookingOwnership(unittest.TestCase):
    """Routes wired to a real BookingService over a fake upstream client."""

    def setUp(self):
        owned = Booking(
            id="b1", resource_id="r1",
            starts_at=_dt.datetime(2025, 11, 4, 10, tzinfo=HK),
            ends_at=_dt.datetime(2025, 11, 4, 11, tzinfo=HK),
            customer_id="c-2", customer_name="Alex",
        )
        self.upstream = SimpleNamespace(
            view_booking=AsyncMock(return_value=owned),
            update_booking=AsyncMock(return_value=None),
            delete_booking=AsyncMock(return_value=None),
        )
        cfg = BookingApiConfig()
        availability = AvailabilityService(self.upstream, cfg)
        self.client = _app(availability, BookingService(self.upstream, availability, cfg))

    def test_patch_foreign_booking_is_404(self):
        resp = self.client.patch(
            "/api/v1/bookings/b1",
            json={"date": "2025-11-04", "start_time": "09:00", "end_time": "10:00"},
            headers=HEADERS,
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"]["code"], "NOT_FOUND")
        self.upstream.update_booking.assert_not_awaited()

    def test_delete_foreign_booking_is_404(self):
        resp = self.client.delete("/api/v1/bookings/b1", headers=HEADERS)
        self.assertEqual(resp.status_code, 404)
        self.upstream.delete_booking.assert_not_awaited()

    def test_owner_can_delete(self):
        resp = self.client.delete("/api/v1/bookings/b1", headers={"X-Customer-Id": "c-2"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"booking_id": "b1", "state": "canceled"})
        self.upstream.delete_booking.assert_awaited_once_with("b1")


class TestHealth(unittest.TestCase):
    def test_health(self):
        from roomdesk.api.main import app

        resp = TestClient(app).get("/health")
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_lifespan_wires_services(self):
        from roomdesk.api.main import app

        env = {"LOG_CONSOLE": "false", "BOOKING_TIMEZONE": "Europe/London"}
        try:
            with patch.dict(os.environ, env, clear=True):
                with self.assertLogs("roomdesk.api.main", level="INFO") as logs:
                    with TestClient(app):
                        self.assertIsInstance(app.state.booking_service, BookingService)
                        self.assertEqual(app.state.booking_api_config.timezone, "Europe/London")
        finally:
            root = logging.getLogger("roomdesk")
            root.handlers.clear()
            root.setLevel(logging.NOTSET)
            root.propagate = True
        self.assertIn("Europe/London", logs.output[0])


if __name__ == "__main__":
    unittest.main()
