"""Shared builders for reservation tests."""

from __future__ import annotations

from datetime import datetime, time
from zoneinfo import ZoneInfo

from apps.reservations.models import Reservation, generate_order_id
from apps.spaces.models import Space
from apps.spaces.services import OperatingWindow, replace_weekly_operations
from apps.users.models import Region, User

SEOUL = ZoneInfo("Asia/Seoul")

# January 2030 starts on a Tuesday.
TUESDAY = (2030, 1, 8)
WEDNESDAY = (2030, 1, 9)
SATURDAY = (2030, 1, 5)
JANUARY_2030_WEEKDAYS = [1, 2, 3, 4, 7, 8, 9, 10, 11, 14, 15, 16, 17, 18, 21, 22, 23, 24, 25, 28, 29, 30, 31]


def at(day: tuple[int, int, int], hour: int, minute: int = 0) -> datetime:
    return datetime(*day, hour, minute, tzinfo=SEOUL)


def make_user(email: str, role: str, region: Region | None = None, **extra) -> User:
    return User.objects.create_user(
        email=email,
        password="Pass12345",
        username=email.split("@")[0],
        role=role,
        region=region,
        **extra,
    )


def make_space(
    region: Region,
    name: str = "대회의실",
    capacity: int = 30,
    opens: time = time(9, 0),
    closes: time = time(18, 0),
    open_weekdays: tuple[int, ...] = (1, 2, 3, 4, 5),
) -> Space:
    space = Space.objects.create(name=name, region=region, capacity=capacity)
    replace_weekly_operations(
        space,
        [
            OperatingWindow(weekday=weekday, is_open=True, opens=opens, closes=closes)
            if weekday in open_weekdays
            else OperatingWindow(weekday=weekday, is_open=False)
            for weekday in range(1, 8)
        ],
    )
    return space


def make_reservation(
    space: Space,
    requester: User,
    start: datetime,
    end: datetime,
    status: str = Reservation.Status.FIRST_PENDING,
    headcount: int = 10,
) -> Reservation:
    return Reservation.objects.create(
        space=space,
        requester=requester,
        order_id=generate_order_id(space.name),
        reservation_from=start,
        reservation_to=end,
        headcount=headcount,
        purpose="정기 회의",
        status=status,
    )
