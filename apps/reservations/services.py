"""Conflict guard for reservation and previsit windows.

Only one of any number of concurrent requests for overlapping windows on a
space may win. Each booking operation below runs the guard and the write
inside one ``transaction.atomic()`` block:

1. lock the space row (``SELECT ... FOR UPDATE``), so every writer that
   can add an occupant to the space queues behind the others, even when
   no overlapping row exists yet;
2. re-check the overlap ``a1 < b2 AND b1 < a2`` against committed rows;
3. insert or move the row.

The space row is the only lock the guard takes, and callers that also lock
a reservation row take the space lock first, so two writers never wait on
each other in opposite orders. A second transaction blocks on step 1 until
the first commits, then sees the new row at step 2 and fails with
``ReservationConflict``. Lock timeouts are not retried; they surface to the
caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from django.db import transaction  # type: ignore
from django.db.transaction import TransactionManagementError  # type: ignore

from apps.spaces.models import Space
from shared.api.exceptions import InvalidInput, NotFound, ReservationConflict

from .domain.status import ACTIVE_STATUSES, ReservationStatus
from .models import PrevisitReservation, Reservation, generate_order_id
from .repositories import lock_queryset

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "해당 시간에는 확정된 예약 또는 사전 답사가 존재하여 예약할 수 없습니다."
UPDATE_CONFLICT_MESSAGE = "변경하려는 시간에는 이미 다른 확정된 예약 또는 사전 답사가 존재합니다."
PREVISIT_CONFLICT_MESSAGE = "사전 답사 시간에 이미 다른 확정된 예약 또는 사전 답사가 존재하여 다시 신청할 수 없습니다."


def lock_space(space_id: int) -> Space:
    """Load the space row under a write lock."""

    space = lock_queryset(Space.objects.filter(pk=space_id)).first()
    if space is None:
        raise NotFound("해당 공간을 찾을 수 없습니다.")
    return space


def has_overlap(
    space_id: int,
    start: datetime,
    end: datetime,
    statuses: Iterable[str] = ACTIVE_STATUSES,
    *,
    exclude_reservation_id: int | None = None,
    exclude_previsit_id: int | None = None,
) -> bool:
    """Whether any reservation or previsit in ``statuses`` overlaps ``[start, end)``."""

    statuses = list(statuses)
    reservations = Reservation.objects.filter(space_id=space_id, status__in=statuses).overlapping(start, end)
    previsits = PrevisitReservation.objects.filter(
        reservation__space_id=space_id,
        reservation__status__in=statuses,
    ).overlapping(start, end)

    if exclude_reservation_id is not None:
        reservations = reservations.exclude(pk=exclude_reservation_id)
        previsits = previsits.exclude(reservation_id=exclude_reservation_id)
    if exclude_previsit_id is not None:
        previsits = previsits.exclude(pk=exclude_previsit_id)

    return reservations.exists() or previsits.exists()


def try_reserve(
    space_id: int,
    start: datetime,
    end: datetime,
    statuses: Iterable[str] = ACTIVE_STATUSES,
    *,
    exclude_reservation_id: int | None = None,
    exclude_previsit_id: int | None = None,
    message: str = CONFLICT_MESSAGE,
) -> Space:
    """
    Claim ``[start, end)`` on a space for the current transaction.

    Must run inside ``transaction.atomic()``; the caller inserts its row in
    the same block. Returns the locked space.
    """

    if not transaction.get_connection().in_atomic_block:
        raise TransactionManagementError("try_reserve() must run inside transaction.atomic().")
    if start >= end:
        raise InvalidInput("시작 시간은 종료 시간보다 이전이어야 합니다.")

    space = lock_space(space_id)
    if has_overlap(
        space_id,
        start,
        end,
        statuses,
        exclude_reservation_id=exclude_reservation_id,
        exclude_previsit_id=exclude_previsit_id,
    ):
        logger.info("Rejected overlapping window %s - %s on space %s", start, end, space_id)
        raise ReservationConflict(message)
    return space


@transaction.atomic
def book_reservation(
    *,
    space_id: int,
    requester_id: int,
    reservation_from: datetime,
    reservation_to: datetime,
    headcount: int,
    purpose: str,
    attachments: list[str] | None = None,
) -> Reservation:
    """Guarded insert of a new FIRST_PENDING reservation."""

    space = try_reserve(space_id, reservation_from, reservation_to)
    if not space.is_active:
        raise InvalidInput("현재 예약을 받지 않는 공간입니다.")
    if headcount > space.capacity:
        raise InvalidInput(f"예약 인원은 공간 수용 인원({space.capacity}명)을 초과할 수 없습니다.")

    reservation = Reservation.objects.create(
        space=space,
        requester_id=requester_id,
        order_id=generate_order_id(space.name),
        reservation_from=reservation_from,
        reservation_to=reservation_to,
        headcount=headcount,
        purpose=purpose,
        attachments=list(attachments or []),
        status=ReservationStatus.FIRST_PENDING,
    )
    logger.info("Created reservation %s on space %s", reservation.pk, space_id)
    return reservation


@transaction.atomic
def claim_reservation_window(
    *,
    reservation_id: int,
    space_id: int,
    reservation_from: datetime,
    reservation_to: datetime,
) -> Space:
    """Guard for moving an existing reservation to a new window; its own rows never conflict."""

    return try_reserve(
        space_id,
        reservation_from,
        reservation_to,
        exclude_reservation_id=reservation_id,
        message=UPDATE_CONFLICT_MESSAGE,
    )


@transaction.atomic
def book_previsit(
    *,
    reservation: Reservation,
    previsit_from: datetime,
    previsit_to: datetime,
) -> PrevisitReservation:
    """Guarded insert of the previsit of ``reservation``."""

    try_reserve(reservation.space_id, previsit_from, previsit_to)
    previsit = PrevisitReservation.objects.create(
        reservation=reservation,
        previsit_from=previsit_from,
        previsit_to=previsit_to,
    )
    logger.info("Created previsit %s for reservation %s", previsit.pk, reservation.pk)
    return previsit


@transaction.atomic
def claim_previsit_window(*, reservation_id: int, space_id: int) -> PrevisitReservation | None:
    """
    Re-guard the previsit of a reservation that becomes active again.

    A rejected or canceled reservation's previsit occupies nothing; once
    the reservation is resubmitted it does, so its window must still be
    free on ``space_id``. Returns the previsit, or None when there is none.
    """

    previsit = PrevisitReservation.objects.filter(reservation_id=reservation_id).first()
    if previsit is None:
        return None
    try_reserve(
        space_id,
        previsit.previsit_from,
        previsit.previsit_to,
        exclude_reservation_id=reservation_id,
        message=PREVISIT_CONFLICT_MESSAGE,
    )
    return previsit


@transaction.atomic
def reschedule_previsit(
    *,
    previsit: PrevisitReservation,
    space_id: int,
    previsit_from: datetime,
    previsit_to: datetime,
) -> PrevisitReservation:
    """Guarded move of ``previsit`` to a new window; only the previsit itself is ignored."""

    try_reserve(space_id, previsit_from, previsit_to, exclude_previsit_id=previsit.pk)
    previsit.previsit_from = previsit_from
    previsit.previsit_to = previsit_to
    previsit.save(update_fields=["previsit_from", "previsit_to"])
    logger.info("Moved previsit %s of reservation %s", previsit.pk, previsit.reservation_id)
    return previsit
