"""Slot generation: expand schedule blocks for a date into fixed-width slots."""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from roomdesk.scheduling.schedule import blocks_for_weekday
from roomdesk.scheduling.timeutils import add_minutes
from roomdesk.scheduling.types import DEFAULT_STEP_MINUTES, ScheduleBlock, Service, Slot, Weekday

_MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SlotGroup:
    """Slots of a single schedule block, for rendering one bar per block."""
    block: ScheduleBlock
    slots: Tuple[Slot, ...]

    @property
    def label(self) -> str:
        return f"{self.block.start_time:%H:%M}-{self.block.end_time:%H:%M}"


def _check_step(step_minutes: int) -> int:
    if not isinstance(step_minutes, int) or step_minutes <= 0:
        raise ValueError(f"step_minutes must be a positive integer, got {step_minutes!r}")
    return step_minutes


def _split_block(block: ScheduleBlock, step_minutes: int) -> Tuple[Slot, ...]:
    # A trailing remainder shorter than one step is dropped.
    return tuple(
        Slot(start_minute=start, end_minute=start + step_minutes)
        for start in range(block.start_minute, block.end_minute - step_minutes + 1, step_minutes)
    )


def generate_slot_groups(
    blocks: Iterable[ScheduleBlock],
    day: _dt.date,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> List[SlotGroup]:
    _check_step(step_minutes)
    return [
        SlotGroup(block=b, slots=_split_block(b, step_minutes))
        for b in blocks_for_weekday(blocks, Weekday.of(day))
    ]


def generate_slots(
    blocks: Iterable[ScheduleBlock],
    day: _dt.date,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> List[Slot]:
    """Slots for *day*, block by block in start-time order.

    Only blocks for the day's weekday are used. Slots never straddle a block
    boundary. Overlapping blocks contribute their slots independently.
    """
    return [s for group in generate_slot_groups(blocks, day, step_minutes) for s in group.slots]


def generate_day_grid(
    blocks: Iterable[ScheduleBlock],
    day: _dt.date,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    *,
    open_minute: int = 0,
    close_minute: int = _MINUTES_PER_DAY,
) -> List[Slot]:
    """A continuous display grid from *open_minute* to *close_minute*.

    Cells lying fully inside a block for the day are ``in_schedule``; the
    rest are later classified unavailable.
    """
    _check_step(step_minutes)
    if not 0 <= open_minute < close_minute <= _MINUTES_PER_DAY:
        raise ValueError(f"invalid grid window {open_minute}..{close_minute}")
    day_blocks = blocks_for_weekday(blocks, Weekday.of(day))
    return [
        Slot(
            start_minute=start,
            end_minute=start + step_minutes,
            in_schedule=any(b.contains(start, start + step_minutes) for b in day_blocks),
        )
        for start in range(open_minute, close_minute - step_minutes + 1, step_minutes)
    ]


def step_for_service(service: Optional[Service], default: int = DEFAULT_STEP_MINUTES) -> int:
    """Display step: the service's bookable interval, else *default*."""
    if service is None or not service.bookable_interval_minutes:
        return default
    return service.bookable_interval_minutes


def derive_end_time(start_time: _dt.time, duration_minutes: int) -> _dt.time:
    """End of a booking that starts at *start_time* and lasts *duration_minutes*."""
    return add_minutes(start_time, duration_minutes)
