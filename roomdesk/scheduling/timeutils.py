"""Timezone-aware time helpers for slot generation and booking validation.

Everything here is pure: no I/O and no module state. Wall-clock "now" is
only read by ``now_in_timezone``/``today_in_timezone``, which callers use to
build the ``now`` argument they pass into the pure functions.
"""
from __future__ import annotations

import datetime as _dt
import re
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from roomdesk.core.exceptions import ParseError
from roomdesk.scheduling.types import DEFAULT_DURATION_MINUTES

_DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?$")
_MINUTES_PER_DAY = 24 * 60


def get_zone(timezone: Union[str, _dt.tzinfo]) -> _dt.tzinfo:
    if isinstance(timezone, _dt.tzinfo):
        return timezone
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ParseError(f"Unknown timezone: {timezone!r}", details={"timezone": timezone}) from None


def to_zoned_datetime(iso_string: str, timezone: Union[str, _dt.tzinfo]) -> _dt.datetime:
    """Parse an ISO-8601 timestamp and express it in *timezone*.

    A timestamp without an offset is taken to be wall time in *timezone*.
    """
    tz = get_zone(timezone)
    if not isinstance(iso_string, str) or not iso_string.strip():
        raise ParseError("Timestamp is empty", details={"value": iso_string})
    raw = iso_string.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        dt = _dt.datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ParseError(f"Malformed timestamp: {iso_string!r}", details={"value": iso_string}, cause=exc) from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def minutes_since_midnight(dt: Union[_dt.datetime, _dt.time]) -> int:
    return dt.hour * 60 + dt.minute


time_to_minutes = minutes_since_midnight


def minutes_to_time(minutes: int) -> _dt.time:
    m = minutes % _MINUTES_PER_DAY
    return _dt.time(m // 60, m % 60)


def parse_iso_duration(value: Optional[str]) -> int:
    """Parse ``PTnHnM`` into minutes.

    Missing, unparseable or zero-length durations fall back to 60 minutes.
    """
    return parse_iso_interval(value) or DEFAULT_DURATION_MINUTES


def parse_iso_interval(value: Optional[str]) -> Optional[int]:
    """Parse ``PTnHnM`` into minutes, or None if missing, unparseable or zero.

    Used for the slot step, which has its own default.
    """
    if not value or not isinstance(value, str):
        return None
    match = _DURATION_RE.match(value.strip().upper())
    if not match:
        return None
    hours, minutes = match.groups()
    return int(hours or 0) * 60 + int(minutes or 0) or None


def add_minutes(time_of_day: _dt.time, minutes: int) -> _dt.time:
    """Add *minutes* to a wall time, wrapping around midnight."""
    return minutes_to_time(time_to_minutes(time_of_day) + minutes)


def is_past_relative_to(day: _dt.date, time_of_day: _dt.time, now: _dt.datetime) -> bool:
    """True if *day* is before today, or is today and *time_of_day* is at or before now's minute.

    *now* must already be expressed in the resource's timezone.
    """
    today = now.date()
    if day < today:
        return True
    if day > today:
        return False
    return time_to_minutes(time_of_day) <= minutes_since_midnight(now)


def parse_time_of_day(value: Union[str, _dt.time]) -> _dt.time:
    """Parse ``HH:MM`` or ``HH:MM:SS``; seconds are dropped."""
    if isinstance(value, _dt.time):
        return value.replace(second=0, microsecond=0)
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return _dt.datetime.strptime(str(value).strip(), fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ParseError(f"Malformed time of day: {value!r}", details={"value": value})


def parse_date(value: Union[str, _dt.date]) -> _dt.date:
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    try:
        return _dt.date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ParseError(f"Malformed date: {value!r}", details={"value": value}, cause=exc) from exc


def now_in_timezone(timezone: Union[str, _dt.tzinfo]) -> _dt.datetime:
    return _dt.datetime.now(get_zone(timezone))


def today_in_timezone(timezone: Union[str, _dt.tzinfo]) -> _dt.date:
    return now_in_timezone(timezone).date()


def utc_offset_for(timezone: Union[str, _dt.tzinfo], on_date: _dt.date) -> str:
    """Offset of *timezone* at local noon on *on_date*, formatted ``+HH:MM``."""
    local_noon = _dt.datetime.combine(on_date, _dt.time(12, 0), tzinfo=get_zone(timezone))
    offset = local_noon.utcoffset() or _dt.timedelta(0)
    sign = "-" if offset < _dt.timedelta(0) else "+"
    total = abs(int(offset.total_seconds())) // 60
    return f"{sign}{total // 60:02d}:{total % 60:02d}"


def combine_with_offset(day: _dt.date, time_of_day: _dt.time, utc_offset: str) -> str:
    """Build a wire timestamp such as ``2025-11-04T09:30:00+08:00``."""
    return f"{day.isoformat()}T{time_of_day.strftime('%H:%M')}:00{utc_offset}"


def format_time(value: Union[str, _dt.datetime], timezone: Union[str, _dt.tzinfo] = "UTC") -> str:
    """``09:30 AM`` style display time."""
    dt = to_zoned_datetime(value, timezone) if isinstance(value, str) else value.astimezone(get_zone(timezone))
    return dt.strftime("%I:%M %p")


def format_date(value: Union[str, _dt.datetime], timezone: Union[str, _dt.tzinfo] = "UTC") -> str:
    """``Tue, 4 Nov 2025`` style display date."""
    dt = to_zoned_datetime(value, timezone) if isinstance(value, str) else value.astimezone(get_zone(timezone))
    return f"{dt:%a}, {dt.day} {dt:%b %Y}"
