"""Celery tasks for the reservation domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import CompleteReservationCommand
from .domain.status import ReservationStatus
from .models import Reservation

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (Celery Beat)
# ============================================================================

@shared_task(name="reservations.complete_finished_reservations")
def complete_finished_reservations() -> dict[str, int]:
    """
    이용 시간이 지난 최종 승인 예약을 이용 완료로 전환한다.

    Each reservation is moved in its own transaction; a failure on one row
    is logged and does not stop the batch.

    Returns:
        dict: {"completed": 전환된 건수, "failed": 실패 건수}
    """
    now = timezone.now()
    completed = 0
    failed = 0

    reservation_ids = list(
        Reservation.objects.filter(
            status=ReservationStatus.FINAL_APPROVED,
            reservation_to__lte=now,
        ).values_list("id", flat=True)
    )

    for reservation_id in reservation_ids:
        try:
            if message_bus.handle_command(CompleteReservationCommand(reservation_id=reservation_id, now=now)):
                completed += 1
        except Exception as e:
            failed += 1
            logger.error(f"Failed to complete reservation {reservation_id}: {e}", exc_info=True)

    if completed or failed:
        logger.info(f"Completed {completed} finished reservations ({failed} failed)")
    return {"completed": completed, "failed": failed}
