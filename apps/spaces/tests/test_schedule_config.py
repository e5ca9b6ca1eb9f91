"""Tests for the schedule configuration reader and weekly schedule replacement."""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from apps.spaces.models import Space, SpaceClosedDay, SpaceOperation
from apps.spaces.services import OperatingWindow, load_schedule_config, replace_weekly_operations
from apps.users.models import Region
from shared.api.exceptions import InvalidInput, NotFound
from shared.domain.value_objects import TimeSlot

SEOUL = ZoneInfo("Asia/Seoul")


def week(opens=time(9, 0), closes=time(18, 0), open_weekdays=(1, 2, 3, 4, 5)):
    return [
        OperatingWindow(weekday=day, is_open=True, opens=opens, closes=closes)
        if day in open_weekdays
        else OperatingWindow(weekday=day, is_open=False)
        for day in range(1, 8)
    ]


@pytest.fixture
def space(db):
    region = Region.objects.create(name="서울")
    space = Space.objects.create(name="강당", region=region, capacity=100)
    replace_weekly_operations(space, week())
    return space


@pytest.mark.django_db
def test_config_exposes_weekly_windows(space):
    config = load_schedule_config(space.id)

    assert config.space_name == "강당"
    assert config.open_weekdays() == {1, 2, 3, 4, 5}
    assert config.window_for(date(2030, 1, 8)).as_slot() == TimeSlot(time(9, 0), time(18, 0))
    assert config.window_for(date(2030, 1, 8)).minutes == 540
    assert not config.is_bookable_on(date(2030, 1, 5))


@pytest.mark.django_db
def test_closed_periods_are_inclusive_by_local_date(space):
    SpaceClosedDay.objects.create(
        space=space,
        closed_from=datetime(2030, 1, 8, 15, 0, tzinfo=SEOUL),
        closed_to=datetime(2030, 1, 9, 10, 0, tzinfo=SEOUL),
    )

    config = load_schedule_config(space.id, start=date(2030, 1, 1), end=date(2030, 1, 31))

    assert config.is_closed_on(date(2030, 1, 8))
    assert config.is_closed_on(date(2030, 1, 9))
    assert not config.is_closed_on(date(2030, 1, 10))
    assert not config.is_bookable_on(date(2030, 1, 8))


@pytest.mark.django_db
def test_closed_periods_outside_range_are_not_loaded(space):
    SpaceClosedDay.objects.create(
        space=space,
        closed_from=datetime(2030, 3, 1, 0, 0, tzinfo=SEOUL),
        closed_to=datetime(2030, 3, 2, 0, 0, tzinfo=SEOUL),
    )

    config = load_schedule_config(space.id, start=date(2030, 1, 1), end=date(2030, 1, 31))

    assert config.closed_periods == ()


@pytest.mark.django_db
def test_midnight_spanning_window_is_not_bookable(space):
    SpaceOperation.objects.filter(space=space, weekday=6).update(
        is_open=True,
        operation_from=time(22, 0),
        operation_to=time(2, 0),
    )

    config = load_schedule_config(space.id)

    assert config.window_for(date(2030, 1, 5)).spans_midnight
    assert 6 not in config.open_weekdays()
    assert not config.is_bookable_on(date(2030, 1, 5))


@pytest.mark.django_db
def test_unknown_space_is_not_found():
    with pytest.raises(NotFound):
        load_schedule_config(424242)


@pytest.mark.django_db
def test_replace_requires_every_weekday_once(space):
    with pytest.raises(InvalidInput):
        replace_weekly_operations(space, week()[:6])

    duplicated = week()[:6] + [OperatingWindow(weekday=1, is_open=False)]
    with pytest.raises(InvalidInput):
        replace_weekly_operations(space, duplicated)

    assert SpaceOperation.objects.filter(space=space).count() == 7


@pytest.mark.django_db
def test_replace_rejects_open_day_without_hours(space):
    windows = week()
    windows[0] = OperatingWindow(weekday=1, is_open=True, opens=time(9, 0), closes=time(9, 0))

    with pytest.raises(InvalidInput):
        replace_weekly_operations(space, windows)

    assert load_schedule_config(space.id).window_for(date(2030, 1, 7)).opens == time(9, 0)
    assert load_schedule_config(space.id).window_for(date(2030, 1, 7)).closes == time(18, 0)


@pytest.mark.django_db
def test_replace_swaps_the_whole_week(space):
    replace_weekly_operations(space, week(opens=time(10, 0), closes=time(20, 0), open_weekdays=(6, 7)))

    config = load_schedule_config(space.id)

    assert config.open_weekdays() == {6, 7}
    assert config.window_for(date(2030, 1, 5)).as_slot() == TimeSlot(time(10, 0), time(20, 0))
