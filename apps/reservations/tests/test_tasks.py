"""Tests for the periodic completion task."""

from __future__ import annotations

import pytest

from apps.reservations.models import Reservation, ReservationLog
from apps.reservations.tasks import complete_finished_reservations
from apps.users.models import Region, User

from .helpers import TUESDAY, at, make_reservation, make_space, make_user

PAST_DAY = (2021, 3, 2)


@pytest.fixture
def space(db):
    return make_space(Region.objects.create(name="서울"))


@pytest.fixture
def requester(db):
    return make_user("requester@example.com", User.RoleChoices.REQUESTER)


@pytest.mark.django_db
def test_finished_final_approved_reservations_are_completed(space, requester):
    finished = make_reservation(
        space, requester, at(PAST_DAY, 9), at(PAST_DAY, 10), status=Reservation.Status.FINAL_APPROVED
    )
    upcoming = make_reservation(
        space, requester, at(TUESDAY, 9), at(TUESDAY, 10), status=Reservation.Status.FINAL_APPROVED
    )
    pending = make_reservation(space, requester, at(PAST_DAY, 11), at(PAST_DAY, 12))

    result = complete_finished_reservations()

    assert result == {"completed": 1, "failed": 0}
    finished.refresh_from_db()
    upcoming.refresh_from_db()
    pending.refresh_from_db()
    assert finished.status == Reservation.Status.COMPLETED
    assert upcoming.status == Reservation.Status.FINAL_APPROVED
    assert pending.status == Reservation.Status.FIRST_PENDING

    log = ReservationLog.objects.get(reservation=finished)
    assert log.actor is None
    assert log.from_status == Reservation.Status.FINAL_APPROVED


@pytest.mark.django_db
def test_task_is_a_noop_without_candidates(space, requester):
    assert complete_finished_reservations() == {"completed": 0, "failed": 0}
