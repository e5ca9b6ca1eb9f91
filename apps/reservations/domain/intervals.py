"""
Interval arithmetic for a single calendar day.

Pure functions over ``TimeSlot`` values:
- clip_to_day: project an absolute busy range onto one local day
- merge: union overlapping busy slots
- busy_minutes: total length of the merged busy slots
- free_slots: gaps left in an operating window
- drop_elapsed: remove or shorten slots that are already in the past
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, List, Optional

from shared.domain.value_objects import TimeSlot

END_OF_DAY = time.max.replace(microsecond=0)


def clip_to_day(start: datetime, end: datetime, day: date) -> Optional[TimeSlot]:
    """
    Project a local ``[start, end)`` range onto ``day``.

    Ranges that began on an earlier day start at 00:00:00, ranges that run
    past the day end at 23:59:59. Returns None when nothing of the range
    falls on the day.
    """
    if start.date() > day or end.date() < day:
        return None
    slot_start = start.time() if start.date() == day else time.min
    slot_end = end.time() if end.date() == day else END_OF_DAY
    return TimeSlot.build(slot_start, slot_end)


def merge(slots: Iterable[TimeSlot]) -> List[TimeSlot]:
    """
    Union overlapping slots.

    Sorted by start; the next slot extends the current merge when it starts
    before the current merge ends.
    """
    merged: List[TimeSlot] = []
    for slot in sorted(slots):
        if merged and slot.start < merged[-1].end:
            last = merged[-1]
            if slot.end > last.end:
                merged[-1] = TimeSlot(last.start, slot.end)
            continue
        merged.append(slot)
    return merged


def busy_minutes(slots: Iterable[TimeSlot]) -> int:
    return sum(slot.minutes for slot in merge(slots))


def free_slots(window: TimeSlot, busy: Iterable[TimeSlot]) -> List[TimeSlot]:
    """
    Free gaps of ``window`` around the busy slots.

    Sweeps a cursor from the window start: a gap is emitted whenever the
    cursor is before the next busy start, then the cursor jumps to the busy
    end. Busy slots outside the window only move the cursor.
    """
    result: List[TimeSlot] = []
    cursor = window.start
    for slot in sorted(busy):
        if slot.start >= window.end:
            break
        if cursor < slot.start:
            gap = TimeSlot.build(cursor, min(slot.start, window.end))
            if gap:
                result.append(gap)
        if slot.end > cursor:
            cursor = slot.end
    if cursor < window.end:
        result.append(TimeSlot(cursor, window.end))
    return result


def drop_elapsed(slots: Iterable[TimeSlot], now: time) -> List[TimeSlot]:
    """Keep the parts of ``slots`` that end after ``now``; straddling slots start at ``now``."""
    now = now.replace(microsecond=0, tzinfo=None)
    remaining: List[TimeSlot] = []
    for slot in slots:
        if slot.end <= now:
            continue
        if slot.start < now:
            clipped = TimeSlot.build(now, slot.end)
            if clipped:
                remaining.append(clipped)
            continue
        remaining.append(slot)
    return remaining
