"""Repository functions for reservations.

Everything here returns flat structs or plain dicts; related names are
batch-loaded by id set instead of walking relations row by row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore

from apps.spaces.models import Space
from shared.api.exceptions import NotFound

from .domain.entities import ReservationRecord
from .domain.status import ACTIVE_STATUSES, ReservationStatus
from .models import PrevisitReservation, Reservation, ReservationLog

logger = logging.getLogger(__name__)

RESERVATION_NOT_FOUND = "해당 예약을 찾을 수 없습니다."


@dataclass(frozen=True)
class BusyRange:
    """An occupied ``[start, end)`` window on a space."""

    start: datetime
    end: datetime
    source: str
    reservation_id: int


def lock_queryset(queryset, **kwargs):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset
    return queryset.select_for_update(**kwargs)


def fetch_busy_ranges(
    space_id: int,
    start: datetime,
    end: datetime,
    statuses: Iterable[str] = ACTIVE_STATUSES,
) -> list[BusyRange]:
    """Reservations and previsits of ``space_id`` overlapping ``[start, end)``."""

    statuses = list(statuses)
    reservations = (
        Reservation.objects.filter(space_id=space_id, status__in=statuses)
        .overlapping(start, end)
        .values_list("id", "reservation_from", "reservation_to")
    )
    previsits = (
        PrevisitReservation.objects.filter(
            reservation__space_id=space_id,
            reservation__status__in=statuses,
        )
        .overlapping(start, end)
        .values_list("reservation_id", "previsit_from", "previsit_to")
    )
    ranges = [BusyRange(begin, finish, "reservation", pk) for pk, begin, finish in reservations]
    ranges.extend(BusyRange(begin, finish, "previsit", pk) for pk, begin, finish in previsits)
    ranges.sort(key=lambda item: (item.start, item.end))
    return ranges


def fetch_space_names(space_ids: Iterable[int]) -> dict[int, str]:
    ids = set(space_ids)
    if not ids:
        return {}
    return dict(Space.objects.filter(pk__in=ids).values_list("id", "name"))


def fetch_space_regions(space_ids: Iterable[int]) -> dict[int, int]:
    ids = set(space_ids)
    if not ids:
        return {}
    return dict(Space.objects.filter(pk__in=ids).values_list("id", "region_id"))


def fetch_user_names(user_ids: Iterable[int]) -> dict[int, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    names = {}
    for pk, username, first_name, last_name, email in get_user_model().objects.filter(pk__in=ids).values_list(
        "id", "username", "first_name", "last_name", "email"
    ):
        full_name = f"{first_name} {last_name}".strip()
        names[pk] = username or full_name or email
    return names


def fetch_previsits(reservation_ids: Iterable[int]) -> dict[int, PrevisitReservation]:
    ids = set(reservation_ids)
    if not ids:
        return {}
    return {previsit.reservation_id: previsit for previsit in PrevisitReservation.objects.filter(reservation_id__in=ids)}


def latest_rejection_memo(reservation_id: int) -> str | None:
    return (
        ReservationLog.objects.filter(reservation_id=reservation_id, to_status=ReservationStatus.REJECTED)
        .order_by("-created_at", "-id")
        .values_list("memo", flat=True)
        .first()
    )


class ReservationRepository:
    """Loads and stores ``ReservationRecord`` aggregates."""

    fields = (
        "id",
        "space_id",
        "space__region_id",
        "requester_id",
        "status",
        "reservation_from",
        "reservation_to",
    )

    def _to_record(self, row: dict) -> ReservationRecord:
        return ReservationRecord(
            id=row["id"],
            space_id=row["space_id"],
            space_region_id=row["space__region_id"],
            requester_id=row["requester_id"],
            status=row["status"],
            reservation_from=row["reservation_from"],
            reservation_to=row["reservation_to"],
        )

    def get(self, reservation_id: int) -> ReservationRecord:
        row = Reservation.objects.filter(pk=reservation_id).values(*self.fields).first()
        if row is None:
            raise NotFound(RESERVATION_NOT_FOUND)
        return self._to_record(row)

    def get_for_update(self, reservation_id: int) -> ReservationRecord:
        """Read the reservation row under ``SELECT ... FOR UPDATE``; call inside a transaction."""

        queryset = lock_queryset(Reservation.objects.filter(pk=reservation_id), of=("self",))
        row = queryset.values(*self.fields).first()
        if row is None:
            raise NotFound(RESERVATION_NOT_FOUND)
        return self._to_record(row)

    def save(self, record: ReservationRecord, **extra_fields) -> None:
        """Persist the status (and any extra columns) and log the transition."""

        values = {
            "status": record.status,
            "space_id": record.space_id,
            "reservation_from": record.reservation_from,
            "reservation_to": record.reservation_to,
            **extra_fields,
        }
        reservation = Reservation.objects.get(pk=record.id)
        for name, value in values.items():
            setattr(reservation, name, value)
        reservation.save(update_fields=[*values.keys(), "updated_at"])

        if record.previous_status is not None:
            ReservationLog.objects.create(
                reservation_id=record.id,
                actor_id=record.actor_id,
                from_status=record.previous_status,
                to_status=record.status,
                memo=record.memo,
            )
            logger.info(
                "Reservation %s moved %s -> %s by %s",
                record.id,
                record.previous_status,
                record.status,
                record.actor_id or "system",
            )
