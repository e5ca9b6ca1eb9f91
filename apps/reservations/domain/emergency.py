"""Emergency classification for pending reservations.

A pending reservation needs urgent attention when its event starts within
``threshold`` business days, or when it has waited ``threshold`` business
days or more since submission.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from django.conf import settings  # type: ignore

from shared.clock import local_today, to_local

from .business_days import business_days_elapsed, business_days_until
from .status import PENDING_STATUSES

DEFAULT_THRESHOLD_DAYS = 5


@dataclass(frozen=True)
class EmergencyClassifier:
    today: date
    threshold: int = DEFAULT_THRESHOLD_DAYS

    def is_due_soon(self, event_date: date) -> bool:
        return 0 <= business_days_until(self.today, event_date) <= self.threshold

    def is_waiting_long(self, submitted_on: date) -> bool:
        return business_days_elapsed(submitted_on, self.today) >= self.threshold

    def classify(self, status: str, event_date: date, submitted_on: date) -> bool:
        if status not in PENDING_STATUSES:
            return False
        return self.is_due_soon(event_date) or self.is_waiting_long(submitted_on)


def is_emergency(
    reservation,
    status: str | None = None,
    *,
    today: date | None = None,
    threshold: int | None = None,
) -> bool:
    """
    Classify a reservation row.

    ``reservation`` needs ``status``, ``reservation_from`` and ``created_at``
    attributes; datetimes are read in the reservation time zone.
    """
    classifier = EmergencyClassifier(
        today=today or local_today(),
        threshold=threshold if threshold is not None else getattr(
            settings, "EMERGENCY_THRESHOLD_DAYS", DEFAULT_THRESHOLD_DAYS
        ),
    )
    return classifier.classify(
        status or reservation.status,
        _as_local_date(reservation.reservation_from),
        _as_local_date(reservation.created_at),
    )


def _as_local_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return to_local(value).date()
    return value
