"""
Reservation Event Handlers

Subscribers for reservation domain events. They run after commit and
only emit structured notification records; delivery (mail, SMS) is
left to whatever consumes the log stream.
"""

import structlog

from apps.reservations.domain.events import (
    PrevisitCreated,
    PrevisitRescheduled,
    ReservationCreated,
    ReservationResubmitted,
    ReservationStatusChanged,
)
from apps.reservations.domain.status import status_label

logger = structlog.get_logger(__name__)


def notify_approvers_on_created(event: ReservationCreated):
    logger.info("reservation.created", **event.to_dict())


def notify_approvers_on_resubmitted(event: ReservationResubmitted):
    logger.info("reservation.resubmitted", **event.to_dict())


def notify_requester_on_status_changed(event: ReservationStatusChanged):
    logger.info(
        "reservation.status_changed",
        reservation_id=event.reservation_id,
        requester_id=event.requester_id,
        from_status=event.from_status,
        to_status=event.to_status,
        to_label=status_label(event.to_status),
        actor_id=event.actor_id,
        memo=event.memo or None,
    )


def record_previsit_created(event: PrevisitCreated):
    logger.info("previsit.created", **event.to_dict())


def record_previsit_rescheduled(event: PrevisitRescheduled):
    logger.info("previsit.rescheduled", **event.to_dict())


EVENT_HANDLERS = {
    ReservationCreated: [notify_approvers_on_created],
    ReservationResubmitted: [notify_approvers_on_resubmitted],
    ReservationStatusChanged: [notify_requester_on_status_changed],
    PrevisitCreated: [record_previsit_created],
    PrevisitRescheduled: [record_previsit_rescheduled],
}
