"""Reservation clock.

Calendar days, "today" and "now" are always evaluated in the configured
``RESERVATION_TIME_ZONE`` rather than the server's local zone.
"""

from __future__ import annotations

from datetime import date, datetime, time
from functools import lru_cache
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def reservation_zone() -> ZoneInfo:
    return _zone(getattr(settings, "RESERVATION_TIME_ZONE", "Asia/Seoul"))


def to_local(value: datetime) -> datetime:
    """Convert an aware datetime to the reservation zone; naive values are assumed local."""
    zone = reservation_zone()
    if timezone.is_naive(value):
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def local_now() -> datetime:
    return timezone.now().astimezone(reservation_zone())


def local_today() -> date:
    return local_now().date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Aware ``[start, end)`` of a calendar day in the reservation zone."""
    zone = reservation_zone()
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(date.fromordinal(day.toordinal() + 1), time.min, tzinfo=zone)
    return start, end
