"""Availability calculator.

Answers "which days of a month" and "which times of a day" a space can still
be booked. Reads are unlocked: the result reflects committed state only and
the conflict guard re-validates at booking time.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta

from apps.spaces.services import ScheduleConfig, load_schedule_config
from shared.api.exceptions import InvalidInput
from shared.clock import day_bounds, local_now, to_local
from shared.domain.value_objects import TimeSlot

from .domain import intervals
from .repositories import BusyRange, fetch_busy_ranges

logger = logging.getLogger(__name__)

NOT_BOOKABLE_MESSAGE = "선택하신 날짜는 운영일이 아니거나 휴무일입니다."


def _invalid_date(year, month, day) -> InvalidInput:
    return InvalidInput(f"유효하지 않은 날짜입니다: {year}-{month}-{day}")


def make_date(year: int, month: int, day: int = 1) -> date:
    try:
        return date(int(year), int(month), int(day))
    except (TypeError, ValueError) as exc:
        raise _invalid_date(year, month, day) from exc


def busy_slots_by_day(ranges: list[BusyRange], first_day: date, last_day: date) -> dict[date, list[TimeSlot]]:
    """Split busy ranges into per-day slots (local time), clipped to each day."""

    slots: dict[date, list[TimeSlot]] = defaultdict(list)
    for busy in ranges:
        start = to_local(busy.start)
        end = to_local(busy.end)
        day = max(start.date(), first_day)
        while day <= min(end.date(), last_day):
            slot = intervals.clip_to_day(start, end, day)
            if slot:
                slots[day].append(slot)
            day += timedelta(days=1)
    return slots


def is_fully_booked(config: ScheduleConfig, day: date, busy: list[TimeSlot]) -> bool:
    """Busy minutes of the whole day reach the length of its operating window."""

    window = config.window_for(day).as_slot()
    if window is None:
        return True
    return intervals.busy_minutes(busy) >= window.minutes


def _open_days_of_month(
    space_id: int, year: int, month: int, now: datetime | None
) -> tuple[list[date], dict[date, list[TimeSlot]], ScheduleConfig]:
    """Open, unclosed, not-yet-past days of the month with their busy slots."""

    first_day = make_date(year, month, 1)
    last_day = first_day.replace(day=calendar.monthrange(first_day.year, first_day.month)[1])
    config = load_schedule_config(space_id, start=first_day, end=last_day)
    today = to_local(now).date() if now else local_now().date()
    if last_day < today:
        return [], {}, config

    open_weekdays = config.open_weekdays()
    candidates = [
        first_day + timedelta(days=offset)
        for offset in range((last_day - first_day).days + 1)
    ]
    candidates = [
        day for day in candidates
        if day >= today and day.isoweekday() in open_weekdays and not config.is_closed_on(day)
    ]
    if not candidates:
        return [], {}, config

    range_start = day_bounds(candidates[0])[0]
    range_end = day_bounds(candidates[-1])[1]
    busy = busy_slots_by_day(fetch_busy_ranges(space_id, range_start, range_end), candidates[0], candidates[-1])
    return candidates, busy, config


def get_available_days(space_id: int, year: int, month: int, *, now: datetime | None = None) -> list[int]:
    """Bookable days of ``year``-``month``, ascending."""

    candidates, busy, config = _open_days_of_month(space_id, year, month, now)
    available = [day.day for day in candidates if not is_fully_booked(config, day, busy.get(day, []))]
    logger.debug("Space %s has %s available days in %s-%s", space_id, len(available), year, month)
    return available


def get_fully_available_days(space_id: int, year: int, month: int, *, now: datetime | None = None) -> list[int]:
    """Days of ``year``-``month`` without any active reservation or previsit, ascending."""

    candidates, busy, _ = _open_days_of_month(space_id, year, month, now)
    return [day.day for day in candidates if not busy.get(day)]


def get_available_times(space_id: int, target: date, *, now: datetime | None = None) -> list[TimeSlot]:
    """Free slots of ``target`` inside the operating window, in time order."""

    config = load_schedule_config(space_id, start=target, end=target)
    if not config.is_bookable_on(target):
        raise InvalidInput(NOT_BOOKABLE_MESSAGE)

    current = to_local(now) if now else local_now()
    if target < current.date():
        return []

    window = config.window_for(target).as_slot()
    start, end = day_bounds(target)
    busy = busy_slots_by_day(fetch_busy_ranges(space_id, start, end), target, target).get(target, [])
    slots = intervals.free_slots(window, busy)  # type: ignore[arg-type]

    if target == current.date():
        slots = intervals.drop_elapsed(slots, current.time())
    return slots


def get_available_times_for(space_id: int, year: int, month: int, day: int, *, now: datetime | None = None) -> list[TimeSlot]:
    return get_available_times(space_id, make_date(year, month, day), now=now)
