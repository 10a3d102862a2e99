"""Recurring weekly schedule: per-weekday blocks and the dates they cover."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Iterable, Iterator, List, Mapping, Tuple, Union

from roomdesk.core.exceptions import ParseError
from roomdesk.scheduling.timeutils import get_zone, parse_time_of_day, to_zoned_datetime
from roomdesk.scheduling.types import ScheduleBlock, Weekday

logger = logging.getLogger(__name__)


def blocks_for_weekday(
    blocks: Iterable[ScheduleBlock],
    weekday: Union[Weekday, str],
) -> List[ScheduleBlock]:
    """Blocks whose weekday matches exactly, ordered by start time."""
    wanted = Weekday.parse(weekday)
    return sorted(
        (b for b in blocks if b.weekday is wanted),
        key=lambda b: (b.start_time, b.end_time),
    )


def weekday_of(
    value: Union[str, _dt.datetime, _dt.date],
    timezone: Union[str, _dt.tzinfo] = "UTC",
) -> Weekday:
    """Weekday of *value* as seen in *timezone*.

    Timestamps are converted first, so 23:50 local on a Tuesday stays a
    Tuesday even when the UTC date has rolled over. Plain dates are taken
    as local calendar dates.
    """
    if isinstance(value, str):
        return Weekday.of(to_zoned_datetime(value, timezone).date())
    if isinstance(value, _dt.datetime):
        local = value.astimezone(get_zone(timezone)) if value.tzinfo else value
        return Weekday.of(local.date())
    return Weekday.of(value)


class ScheduledDates:
    """Dates in [start, end] whose weekday has at least one block.

    Iterating is lazy and restartable: every ``iter()`` walks the range again
    from the inputs, nothing is cached.
    """

    def __init__(self, blocks: Iterable[ScheduleBlock], start: _dt.date, end: _dt.date) -> None:
        self._weekdays = frozenset(b.weekday for b in blocks)
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[_dt.date]:
        if not self._weekdays:
            return
        day = self.start
        one = _dt.timedelta(days=1)
        while day <= self.end:
            if Weekday.of(day) in self._weekdays:
                yield day
            day += one

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, _dt.date):
            return False
        if isinstance(day, _dt.datetime):
            day = day.date()
        return self.start <= day <= self.end and Weekday.of(day) in self._weekdays

    def __repr__(self) -> str:
        days = ",".join(sorted(w.value[:3] for w in self._weekdays))
        return f"ScheduledDates({self.start}..{self.end}, {days})"


def valid_dates_in_range(
    blocks: Iterable[ScheduleBlock],
    range_start: _dt.date,
    range_end: _dt.date,
) -> ScheduledDates:
    return ScheduledDates(blocks, range_start, range_end)


def find_overlapping_blocks(blocks: Iterable[ScheduleBlock]) -> List[Tuple[ScheduleBlock, ScheduleBlock]]:
    """Pairs of same-weekday blocks that overlap. Overlapping blocks are treated as additive."""
    pairs: List[Tuple[ScheduleBlock, ScheduleBlock]] = []
    by_day: dict[Weekday, List[ScheduleBlock]] = {}
    for b in blocks:
        by_day.setdefault(b.weekday, []).append(b)
    for day_blocks in by_day.values():
        ordered = sorted(day_blocks, key=lambda b: (b.start_minute, b.end_minute))
        for i, a in enumerate(ordered):
            for b in ordered[i + 1:]:
                if b.start_minute >= a.end_minute:
                    break
                pairs.append((a, b))
    return pairs


def parse_schedule_blocks(raw_blocks: Iterable[Mapping[str, Any]]) -> List[ScheduleBlock]:
    """Build blocks from wire dicts ``{weekday, start_time, end_time}``.

    Malformed entries are skipped with a warning.
    """
    blocks: List[ScheduleBlock] = []
    for raw in raw_blocks or []:
        try:
            blocks.append(
                ScheduleBlock(
                    weekday=Weekday.parse(raw.get("weekday")),
                    start_time=parse_time_of_day(raw.get("start_time", "")),
                    end_time=parse_time_of_day(raw.get("end_time", "")),
                )
            )
        except (ParseError, ValueError, AttributeError) as exc:
            logger.warning("Skipping malformed schedule block %r: %s", raw, exc)
    return blocks
