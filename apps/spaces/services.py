"""Schedule configuration for spaces.

``load_schedule_config`` reads a space's weekly operating windows and the
closed periods that touch a date range into flat, immutable structs, so the
availability calculator never walks ORM relations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable

from django.core.exceptions import ValidationError  # type: ignore
from django.db import transaction  # type: ignore

from shared.api.exceptions import InvalidInput, NotFound
from shared.clock import day_bounds, to_local
from shared.domain.value_objects import TimeSlot

from .models import Space, SpaceClosedDay, SpaceOperation

logger = logging.getLogger(__name__)

WEEKDAYS = tuple(range(1, 8))


@dataclass(frozen=True)
class OperatingWindow:
    """Operating hours of one weekday (1=Mon .. 7=Sun)."""

    weekday: int
    is_open: bool
    opens: time | None = None
    closes: time | None = None

    @property
    def spans_midnight(self) -> bool:
        return bool(self.is_open and self.opens and self.closes and self.opens > self.closes)

    @property
    def is_bookable(self) -> bool:
        # Windows that wrap past midnight are kept in storage but not offered.
        return bool(self.is_open and self.opens is not None and self.closes is not None and self.opens < self.closes)

    def as_slot(self) -> TimeSlot | None:
        if not self.is_bookable:
            return None
        return TimeSlot(self.opens, self.closes)  # type: ignore[arg-type]

    @property
    def minutes(self) -> int:
        slot = self.as_slot()
        return slot.minutes if slot else 0


@dataclass(frozen=True)
class ClosedPeriod:
    """Inclusive ``[starts, ends]`` closure, compared by local calendar date."""

    starts: datetime
    ends: datetime

    @property
    def first_day(self) -> date:
        return to_local(self.starts).date()

    @property
    def last_day(self) -> date:
        return to_local(self.ends).date()

    def covers(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day


@dataclass(frozen=True)
class ScheduleConfig:
    space_id: int
    space_name: str
    region_id: int
    capacity: int
    windows: dict[int, OperatingWindow]
    closed_periods: tuple[ClosedPeriod, ...] = ()

    def window_for(self, day: date) -> OperatingWindow:
        weekday = day.isoweekday()
        return self.windows.get(weekday, OperatingWindow(weekday=weekday, is_open=False))

    def open_weekdays(self) -> set[int]:
        return {weekday for weekday, window in self.windows.items() if window.is_bookable}

    def is_closed_on(self, day: date) -> bool:
        return any(period.covers(day) for period in self.closed_periods)

    def is_bookable_on(self, day: date) -> bool:
        return self.window_for(day).is_bookable and not self.is_closed_on(day)


def load_schedule_config(space_id: int, *, start: date | None = None, end: date | None = None) -> ScheduleConfig:
    """
    Load the weekly windows and closed periods of a space.

    When ``start``/``end`` (inclusive days) are given, only closed periods
    touching that range are loaded.
    """

    space = (
        Space.objects.filter(pk=space_id)
        .values("id", "name", "region_id", "capacity")
        .first()
    )
    if space is None:
        raise NotFound("해당 공간을 찾을 수 없습니다.")

    windows: dict[int, OperatingWindow] = {}
    for row in SpaceOperation.objects.filter(space_id=space_id).values(
        "weekday", "is_open", "operation_from", "operation_to"
    ):
        window = OperatingWindow(
            weekday=row["weekday"],
            is_open=row["is_open"],
            opens=row["operation_from"],
            closes=row["operation_to"],
        )
        if window.spans_midnight:
            logger.warning(
                "Space %s has a midnight-spanning window on weekday %s; treating it as closed",
                space_id,
                window.weekday,
            )
        windows[window.weekday] = window

    closed_qs = SpaceClosedDay.objects.filter(space_id=space_id)
    if start is not None:
        closed_qs = closed_qs.filter(closed_to__gte=day_bounds(start)[0])
    if end is not None:
        closed_qs = closed_qs.filter(closed_from__lt=day_bounds(end)[1])

    closed_periods = tuple(
        ClosedPeriod(starts=row["closed_from"], ends=row["closed_to"])
        for row in closed_qs.order_by("closed_from").values("closed_from", "closed_to")
    )

    return ScheduleConfig(
        space_id=space["id"],
        space_name=space["name"],
        region_id=space["region_id"],
        capacity=space["capacity"],
        windows=windows,
        closed_periods=closed_periods,
    )


@transaction.atomic
def replace_weekly_operations(space: Space, windows: Iterable[OperatingWindow]) -> list[SpaceOperation]:
    """
    Replace the full weekly schedule of a space.

    Exactly one window per weekday 1..7 is required.
    """

    windows = list(windows)
    weekdays = [window.weekday for window in windows]
    if sorted(weekdays) != list(WEEKDAYS):
        raise InvalidInput("운영 시간은 월요일부터 일요일까지 요일별로 정확히 하나씩 지정해야 합니다.")

    rows = []
    for window in windows:
        operation = SpaceOperation(
            space=space,
            weekday=window.weekday,
            is_open=window.is_open,
            operation_from=window.opens if window.is_open else None,
            operation_to=window.closes if window.is_open else None,
        )
        try:
            operation.clean()
        except ValidationError as exc:
            raise InvalidInput(f"{window.weekday}: {'; '.join(exc.messages)}") from exc
        rows.append(operation)

    SpaceOperation.objects.filter(space=space).delete()
    created = SpaceOperation.objects.bulk_create(rows)
    logger.info("Replaced weekly schedule of space %s", space.pk)
    return created
