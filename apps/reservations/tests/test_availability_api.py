"""Integration tests for the availability endpoints."""

from __future__ import annotations

from datetime import date, datetime, time, timezone as dt_timezone

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.reservations.models import PrevisitReservation, Reservation
from apps.reservations.schedule import (
    NOT_BOOKABLE_MESSAGE,
    get_available_days,
    get_available_times,
    get_fully_available_days,
)
from apps.spaces.models import SpaceClosedDay
from apps.users.models import Region, User
from shared.domain.value_objects import TimeSlot

from .helpers import (
    JANUARY_2030_WEEKDAYS,
    SATURDAY,
    SEOUL,
    TUESDAY,
    WEDNESDAY,
    at,
    make_reservation,
    make_space,
    make_user,
)


class AvailabilityAPITests(APITestCase):
    """Available days of a month and free slots of a day."""

    def setUp(self) -> None:
        self.region = Region.objects.create(name="서울")
        self.space = make_space(self.region)
        self.requester = make_user("requester@example.com", User.RoleChoices.REQUESTER)
        self.client.force_authenticate(self.requester)
        self.dates_url = reverse("reservation-available-dates")
        self.times_url = reverse("reservation-available-times")

    def _days(self, year: int = 2030, month: int = 1):
        return self.client.get(self.dates_url, {"space_id": self.space.id, "year": year, "month": month})

    def _times(self, day: tuple[int, int, int]):
        year, month, dom = day
        return self.client.get(
            self.times_url,
            {"space_id": self.space.id, "year": year, "month": month, "day": dom},
        )

    def test_month_without_bookings_lists_every_weekday(self) -> None:
        response = self._days()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["available_days"], JANUARY_2030_WEEKDAYS)

    def test_fully_booked_day_is_excluded(self) -> None:
        make_reservation(self.space, self.requester, at(WEDNESDAY, 9), at(WEDNESDAY, 18))

        response = self._days()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertNotIn(9, response.data["available_days"])
        self.assertIn(8, response.data["available_days"])
        self.assertIn(10, response.data["available_days"])

    def test_busy_time_outside_opening_hours_counts_towards_a_full_day(self) -> None:
        make_reservation(self.space, self.requester, at(WEDNESDAY, 0), at(WEDNESDAY, 9))
        make_reservation(self.space, self.requester, at(WEDNESDAY, 18), at((2030, 1, 10), 0))

        days = self._days().data["available_days"]

        self.assertNotIn(9, days)
        self.assertIn(10, days)

    def test_day_filled_by_several_bookings_and_previsit_is_excluded(self) -> None:
        make_reservation(self.space, self.requester, at(WEDNESDAY, 8), at(WEDNESDAY, 12))
        other = make_reservation(
            self.space,
            self.requester,
            at(WEDNESDAY, 14),
            at(WEDNESDAY, 19),
            status=Reservation.Status.FINAL_APPROVED,
        )
        PrevisitReservation.objects.create(
            reservation=other,
            previsit_from=at(WEDNESDAY, 11),
            previsit_to=at(WEDNESDAY, 14),
        )

        self.assertNotIn(9, self._days().data["available_days"])

    def test_inactive_bookings_do_not_block_the_day(self) -> None:
        for state in (Reservation.Status.CANCELED, Reservation.Status.REJECTED, Reservation.Status.COMPLETED):
            make_reservation(self.space, self.requester, at(WEDNESDAY, 9), at(WEDNESDAY, 18), status=state)

        self.assertIn(9, self._days().data["available_days"])
        self.assertEqual(
            self._times(WEDNESDAY).data["available_times"],
            [{"start_time": "09:00:00", "end_time": "18:00:00"}],
        )

    def test_closed_period_is_excluded(self) -> None:
        SpaceClosedDay.objects.create(
            space=self.space,
            closed_from=at((2030, 1, 10), 0),
            closed_to=at((2030, 1, 11), 23, 59),
            reason="시설 점검",
        )

        days = self._days().data["available_days"]

        self.assertNotIn(10, days)
        self.assertNotIn(11, days)
        self.assertIn(14, days)

        response = self._times((2030, 1, 11))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["message"], NOT_BOOKABLE_MESSAGE)

    def test_times_around_a_single_booking(self) -> None:
        make_reservation(self.space, self.requester, at(TUESDAY, 11), at(TUESDAY, 13))

        response = self._times(TUESDAY)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(
            response.data["available_times"],
            [
                {"start_time": "09:00:00", "end_time": "11:00:00"},
                {"start_time": "13:00:00", "end_time": "18:00:00"},
            ],
        )

    def test_times_of_closed_weekday_fail(self) -> None:
        response = self._times(SATURDAY)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["message"], NOT_BOOKABLE_MESSAGE)
        self.assertEqual(response.data["status"], 400)
        self.assertIn("timestamp", response.data)

    def test_invalid_calendar_date_fails(self) -> None:
        response = self._times((2030, 2, 30))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_unknown_space_is_not_found(self) -> None:
        response = self.client.get(self.dates_url, {"space_id": 9999, "year": 2030, "month": 1})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["message"], "해당 공간을 찾을 수 없습니다.")

    def test_unknown_space_of_past_month_is_not_found(self) -> None:
        response = self.client.get(self.dates_url, {"space_id": 9999, "year": 2020, "month": 1})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_missing_query_parameter_fails(self) -> None:
        response = self.client.get(self.dates_url, {"space_id": self.space.id, "year": 2030})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("month", response.data["message"])

    def test_repeated_queries_return_identical_results(self) -> None:
        make_reservation(self.space, self.requester, at(TUESDAY, 11), at(TUESDAY, 13))

        self.assertEqual(self._days().data, self._days().data)
        self.assertEqual(self._times(TUESDAY).data, self._times(TUESDAY).data)

    def test_anonymous_user_is_rejected(self) -> None:
        self.client.force_authenticate(None)

        response = self._days()

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, response.data)


class AvailabilityClockTests(APITestCase):
    """Past days and elapsed slots, evaluated against an explicit clock."""

    def setUp(self) -> None:
        self.region = Region.objects.create(name="부산")
        self.space = make_space(self.region, name="소회의실")

    def test_days_before_today_are_not_listed(self) -> None:
        now = datetime(2030, 1, 15, 10, 0, tzinfo=SEOUL)

        days = get_available_days(self.space.id, 2030, 1, now=now)

        self.assertEqual(days, [15, 16, 17, 18, 21, 22, 23, 24, 25, 28, 29, 30, 31])
        self.assertEqual(get_available_days(self.space.id, 2029, 12, now=now), [])

    def test_today_drops_elapsed_slots(self) -> None:
        now = datetime(2030, 1, 15, 14, 30, tzinfo=SEOUL)

        slots = get_available_times(self.space.id, date(2030, 1, 15), now=now)

        self.assertEqual(slots, [TimeSlot(time(14, 30), time(18, 0))])

    def test_past_day_has_no_slots(self) -> None:
        now = datetime(2030, 1, 15, 9, 0, tzinfo=SEOUL)

        self.assertEqual(get_available_times(self.space.id, date(2030, 1, 14), now=now), [])

    def test_utc_clock_is_read_in_reservation_zone(self) -> None:
        # 2030-01-14 20:00 UTC is already Tuesday the 15th in Seoul.
        now = datetime(2030, 1, 14, 20, 0, tzinfo=dt_timezone.utc)

        days = get_available_days(self.space.id, 2030, 1, now=now)

        self.assertEqual(days[0], 15)


class FullyAvailableDatesAPITests(APITestCase):
    """Days with no active reservation or previsit at all."""

    def setUp(self) -> None:
        self.region = Region.objects.create(name="서울")
        self.space = make_space(self.region)
        self.requester = make_user("requester@example.com", User.RoleChoices.REQUESTER)
        self.client.force_authenticate(self.requester)
        self.url = reverse("reservation-fully-available-dates")

    def _days(self, year: int = 2030, month: int = 1, space_id: int | None = None):
        return self.client.get(self.url, {"space_id": space_id or self.space.id, "year": year, "month": month})

    def test_month_without_bookings_lists_every_weekday(self) -> None:
        response = self._days()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["available_days"], JANUARY_2030_WEEKDAYS)

    def test_any_booking_or_previsit_removes_the_day(self) -> None:
        booking = make_reservation(self.space, self.requester, at(TUESDAY, 11), at(TUESDAY, 12))
        PrevisitReservation.objects.create(
            reservation=booking,
            previsit_from=at((2030, 1, 10), 16),
            previsit_to=at((2030, 1, 10), 17),
        )

        days = self._days().data["available_days"]
        bookable = get_available_days(self.space.id, 2030, 1)

        self.assertNotIn(8, days)
        self.assertNotIn(10, days)
        self.assertIn(9, days)
        # Partly booked days stay bookable.
        self.assertIn(8, bookable)
        self.assertIn(10, bookable)

    def test_inactive_bookings_are_ignored(self) -> None:
        make_reservation(self.space, self.requester, at(TUESDAY, 11), at(TUESDAY, 12), status=Reservation.Status.CANCELED)

        self.assertIn(8, self._days().data["available_days"])

    def test_closed_period_and_past_days_are_excluded(self) -> None:
        SpaceClosedDay.objects.create(
            space=self.space,
            closed_from=at(WEDNESDAY, 0),
            closed_to=at(WEDNESDAY, 23, 59),
        )
        now = datetime(2030, 1, 8, 12, 0, tzinfo=SEOUL)

        days = get_fully_available_days(self.space.id, 2030, 1, now=now)

        self.assertEqual(days[:3], [8, 10, 11])

    def test_unknown_space_is_not_found(self) -> None:
        for year in (2020, 2030):
            response = self._days(year=year, space_id=9999)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
