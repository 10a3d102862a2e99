"""Unit tests for booking overlap resolution."""
from __future__ import annotations

import datetime as _dt
import itertools
import unittest
from zoneinfo import ZoneInfo

from roomdesk.scheduling.overlap import (
    BookingWindow,
    classify_slots,
    find_conflict,
    overlaps,
    peak_occupancy,
    windows_for_date,
)
from roomdesk.scheduling.slots import generate_day_grid, generate_slots
from roomdesk.scheduling.types import Booking, ScheduleBlock, Slot, SlotStatus

HK = ZoneInfo("Asia/Hong_Kong")
TUESDAY = _dt.date(2025, 11, 4)


def _m(hh, mm=0):
    return hh * 60 + mm


def _window(bid, start, end):
    return BookingWindow(booking_id=bid, start_minute=_m(*start), end_minute=_m(*end))


def _booking(bid, start, end, **kwargs):
    return Booking(id=bid, resource_id="r1", starts_at=start, ends_at=end, **kwargs)


class TestOverlaps(unittest.TestCase):
    def test_half_open(self):
        self.assertFalse(overlaps(_m(10), _m(11), _m(9), _m(10)))
        self.assertFalse(overlaps(_m(9), _m(10), _m(10), _m(11)))
        self.assertTrue(overlaps(_m(9, 59), _m(11), _m(9), _m(10)))

    def test_back_to_back_is_not_a_conflict(self):
        self.assertFalse(find_conflict(_m(10), _m(11), [_window("b1", (9, 0), (10, 0))]))


class TestClassifySlots(unittest.TestCase):
    def setUp(self):
        self.slots = generate_slots([ScheduleBlock("tuesday", _dt.time(9), _dt.time(12))], TUESDAY, 30)
        self.windows = [_window("b1", (10, 0), (11, 0))]

    def test_booking_marks_covered_slots(self):
        classified = classify_slots(self.slots, self.windows)
        status = {s.label: s.status for s in classified}
        self.assertEqual(status["10:00"], SlotStatus.BOOKED)
        self.assertEqual(status["10:30"], SlotStatus.BOOKED)
        for label in ("09:00", "09:30", "11:00", "11:30"):
            self.assertEqual(status[label], SlotStatus.AVAILABLE, label)
        booked = [s for s in classified if s.status is SlotStatus.BOOKED]
        self.assertEqual(booked[0].booking_ids, ("b1",))

    def test_input_slots_untouched(self):
        classify_slots(self.slots, self.windows)
        self.assertTrue(all(s.status is None for s in self.slots))

    def test_idempotent(self):
        first = classify_slots(self.slots, self.windows)
        second = classify_slots(self.slots, self.windows)
        self.assertEqual(first, second)
        self.assertEqual([s.to_dict() for s in first], [s.to_dict() for s in second])

    def test_capacity_leaves_headroom(self):
        windows = [_window("b1", (10, 0), (11, 0)), _window("b2", (10, 30), (11, 30))]
        classified = {s.label: s for s in classify_slots(self.slots, windows, capacity=2)}
        self.assertEqual(classified["10:00"].status, SlotStatus.AVAILABLE)
        self.assertEqual(classified["10:00"].available_count, 1)
        self.assertEqual(classified["10:30"].status, SlotStatus.BOOKED)
        self.assertEqual(classified["10:30"].available_count, 0)
        self.assertEqual(classified["09:00"].available_count, 2)

    def test_out_of_schedule_cells_unavailable(self):
        grid = generate_day_grid(
            [ScheduleBlock("tuesday", _dt.time(9), _dt.time(10))], TUESDAY, 30,
            open_minute=_m(8), close_minute=_m(10),
        )
        status = [s.status for s in classify_slots(grid, [_window("b1", (8, 0), (8, 30))])]
        self.assertEqual(
            status,
            [SlotStatus.BOOKED, SlotStatus.UNAVAILABLE, SlotStatus.AVAILABLE, SlotStatus.AVAILABLE],
        )


class TestFindConflictAgreesWithClassification(unittest.TestCase):
    def test_agreement_over_many_booking_sets(self):
        slots = [Slot(start, start + 30) for start in range(_m(8), _m(13), 30)]
        candidates = [
            _window("a", (9, 0), (10, 0)),
            _window("b", (9, 45), (10, 15)),
            _window("c", (10, 0), (10, 30)),
            _window("d", (11, 10), (11, 20)),
            _window("e", (12, 30), (14, 0)),
        ]
        for size in range(len(candidates) + 1):
            for subset in itertools.combinations(candidates, size):
                for capacity in (1, 2, 3):
                    for slot in classify_slots(slots, subset, capacity):
                        self.assertEqual(
                            slot.status is SlotStatus.BOOKED,
                            find_conflict(slot.start_minute, slot.end_minute, subset, capacity),
                            (slot.label, [w.booking_id for w in subset], capacity),
                        )

    def test_scenario_conflict(self):
        self.assertTrue(find_conflict(_m(10, 30), _m(11, 30), [_window("b1", (10, 0), (11, 0))]))

    def test_disjoint_bookings_do_not_add_up(self):
        windows = [_window("b1", (9, 0), (10, 0)), _window("b2", (11, 0), (12, 0))]
        slots = generate_slots([ScheduleBlock("tuesday", _dt.time(9), _dt.time(12))], TUESDAY, 30)
        classified = classify_slots(slots, windows, capacity=2)
        self.assertTrue(all(s.status is SlotStatus.AVAILABLE for s in classified))
        self.assertFalse(find_conflict(_m(9), _m(12), windows, capacity=2))
        self.assertTrue(find_conflict(_m(9), _m(12), windows, capacity=1))

    def test_agreement_for_windows_spanning_slots(self):
        slots = [Slot(start, start + 30) for start in range(_m(9), _m(12), 30)]
        windows = [
            _window("a", (9, 0), (10, 0)),
            _window("b", (9, 30), (10, 30)),
            _window("c", (11, 0), (11, 30)),
        ]
        for capacity in (1, 2, 3):
            classified = classify_slots(slots, windows, capacity)
            for i, j in itertools.combinations(range(len(slots) + 1), 2):
                span = classified[i:j]
                self.assertEqual(
                    any(s.status is SlotStatus.BOOKED for s in span),
                    find_conflict(span[0].start_minute, span[-1].end_minute, windows, capacity),
                    (span[0].label, span[-1].label, capacity),
                )


class TestPeakOccupancy(unittest.TestCase):
    def test_counts_simultaneous_bookings_only(self):
        windows = [
            _window("a", (9, 0), (10, 0)),
            _window("b", (9, 30), (10, 30)),
            _window("c", (10, 0), (11, 0)),
        ]
        self.assertEqual(peak_occupancy(_m(9), _m(11), windows), 2)
        self.assertEqual(peak_occupancy(_m(9), _m(9, 30), windows), 1)
        self.assertEqual(peak_occupancy(_m(12), _m(13), windows), 0)

    def test_back_to_back_counts_once(self):
        windows = [_window("a", (9, 0), (10, 0)), _window("b", (10, 0), (11, 0))]
        self.assertEqual(peak_occupancy(_m(9), _m(11), windows), 1)

    def test_slot_occupancy_uses_peak(self):
        slot = Slot(_m(9), _m(10))
        windows = [_window("a", (9, 0), (9, 20)), _window("b", (9, 30), (9, 50))]
        (classified,) = classify_slots([slot], windows, capacity=2)
        self.assertEqual(classified.booking_ids, ("a", "b"))
        self.assertEqual(classified.occupancy.count, 1)
        self.assertEqual(classified.available_count, 1)
        self.assertIs(classified.status, SlotStatus.AVAILABLE)


class TestWindowsForDate(unittest.TestCase):
    def test_drops_canceled_excluded_and_other_days(self):
        bookings = [
            _booking("keep", _dt.datetime(2025, 11, 4, 10, tzinfo=HK), _dt.datetime(2025, 11, 4, 11, tzinfo=HK)),
            _booking("gone", _dt.datetime(2025, 11, 4, 12, tzinfo=HK), _dt.datetime(2025, 11, 4, 13, tzinfo=HK),
                     is_canceled=True),
            _booking("edit", _dt.datetime(2025, 11, 4, 14, tzinfo=HK), _dt.datetime(2025, 11, 4, 15, tzinfo=HK)),
            _booking("next", _dt.datetime(2025, 11, 5, 10, tzinfo=HK), _dt.datetime(2025, 11, 5, 11, tzinfo=HK)),
        ]
        windows = windows_for_date(bookings, TUESDAY, "Asia/Hong_Kong", exclude_booking_id="edit")
        self.assertEqual([w.booking_id for w in windows], ["keep"])
        self.assertEqual((windows[0].start_minute, windows[0].end_minute), (_m(10), _m(11)))

    def test_uses_local_date_not_utc(self):
        # 01:00-02:00 Wednesday in Hong Kong is still Tuesday in UTC.
        utc = _dt.timezone.utc
        b = _booking("late", _dt.datetime(2025, 11, 4, 17, tzinfo=utc), _dt.datetime(2025, 11, 4, 18, tzinfo=utc))
        self.assertEqual(windows_for_date([b], TUESDAY, "Asia/Hong_Kong"), [])
        windows = windows_for_date([b], TUESDAY + _dt.timedelta(days=1), "Asia/Hong_Kong")
        self.assertEqual((windows[0].start_minute, windows[0].end_minute), (_m(1), _m(2)))

    def test_clips_bookings_spanning_midnight(self):
        b = _booking("night", _dt.datetime(2025, 11, 4, 23, tzinfo=HK), _dt.datetime(2025, 11, 5, 1, tzinfo=HK))
        (tue,) = windows_for_date([b], TUESDAY, HK)
        (wed,) = windows_for_date([b], TUESDAY + _dt.timedelta(days=1), HK)
        self.assertEqual((tue.start_minute, tue.end_minute), (_m(23), 1440))
        self.assertEqual((wed.start_minute, wed.end_minute), (0, _m(1)))


if __name__ == "__main__":
    unittest.main()
