"""Business-day arithmetic (Mon–Fri), used by the emergency classifier."""

from __future__ import annotations

from datetime import date, timedelta

SATURDAY = 6


def is_business_day(day: date) -> bool:
    return day.isoweekday() < SATURDAY


def business_days_between_excl_incl(start: date, end: date) -> int:
    """
    Count weekdays in ``(start, end]``.

    The start day is excluded and the end day included. Reversed arguments
    give the negated count; equal dates give 0.

        Fri -> Sat == 0
        Fri -> Mon == 1
        Mon -> Fri == 4
    """
    if start == end:
        return 0
    if end < start:
        return -business_days_between_excl_incl(end, start)

    count = 0
    day = start + timedelta(days=1)
    while day <= end:
        if is_business_day(day):
            count += 1
        day += timedelta(days=1)
    return count


def business_days_until(today: date, target: date) -> int:
    """Business days left from today until the target date (negative when past)."""
    return business_days_between_excl_incl(today, target)


def business_days_elapsed(started_on: date, today: date) -> int:
    """Business days that have passed since ``started_on``."""
    return business_days_between_excl_incl(started_on, today)
