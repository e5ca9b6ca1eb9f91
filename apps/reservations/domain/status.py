"""예약 상태.

Statuses form a closed enum; the Korean labels are the names shown to
users and returned by the API.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ReservationStatus(models.TextChoices):
    FIRST_PENDING = "first_pending", _("1차 승인 대기")
    SECOND_PENDING = "second_pending", _("2차 승인 대기")
    FINAL_APPROVED = "final_approved", _("최종 승인 완료")
    REJECTED = "rejected", _("반려")
    COMPLETED = "completed", _("이용 완료")
    CANCELED = "canceled", _("예약 취소")


# Statuses whose reservation (and previsit) still occupies the space.
ACTIVE_STATUSES = frozenset(
    {
        ReservationStatus.FIRST_PENDING,
        ReservationStatus.SECOND_PENDING,
        ReservationStatus.FINAL_APPROVED,
    }
)

PENDING_STATUSES = frozenset({ReservationStatus.FIRST_PENDING, ReservationStatus.SECOND_PENDING})

CANCELABLE_STATUSES = frozenset(
    {
        ReservationStatus.FIRST_PENDING,
        ReservationStatus.SECOND_PENDING,
        ReservationStatus.FINAL_APPROVED,
        ReservationStatus.REJECTED,
    }
)

EDITABLE_STATUSES = frozenset({ReservationStatus.REJECTED, ReservationStatus.CANCELED})

# Requester-facing list filters.
STATUS_GROUPS: dict[str, frozenset[str]] = {
    "in_progress": PENDING_STATUSES,
    "approved": frozenset({ReservationStatus.FINAL_APPROVED}),
    "completed": frozenset({ReservationStatus.COMPLETED}),
    "canceled": frozenset({ReservationStatus.REJECTED, ReservationStatus.CANCELED}),
}


def status_label(value: str) -> str:
    """Display label for a stored status value."""
    try:
        return str(ReservationStatus(value).label)
    except ValueError:
        return "UNKNOWN"
