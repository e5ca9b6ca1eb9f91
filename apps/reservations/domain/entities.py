"""
Reservation Domain Entities

- ReservationRecord: flat aggregate of a reservation row with the space
  region it belongs to, loaded under a row lock for status transitions
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shared.domain.base import Aggregate

from .approval import ApprovalAction, check_transition
from .events import ReservationResubmitted, ReservationStatusChanged
from .status import CANCELABLE_STATUSES, EDITABLE_STATUSES, ReservationStatus


class StatusChangeRefused(ValueError):
    """A requester-side transition is not allowed from the current status."""

    def __init__(self, status: str, message: str):
        self.status = status
        super().__init__(message)


@dataclass(eq=False, kw_only=True)
class ReservationRecord(Aggregate):
    """
    Reservation Aggregate Root

    State transitions:
    - FIRST_PENDING -> SECOND_PENDING (first-tier approval)
    - FIRST_PENDING | SECOND_PENDING -> FINAL_APPROVED (second-tier approval)
    - FIRST_PENDING | SECOND_PENDING -> REJECTED (approver)
    - FIRST_PENDING | SECOND_PENDING | FINAL_APPROVED | REJECTED -> CANCELED (requester)
    - REJECTED | CANCELED -> FIRST_PENDING (requester edits and resubmits)
    - FINAL_APPROVED -> COMPLETED (after the reserved window has ended)
    """

    space_id: int
    space_region_id: Optional[int]
    requester_id: int
    status: str
    reservation_from: datetime
    reservation_to: datetime
    previous_status: Optional[str] = None
    memo: str = ''
    actor_id: Optional[int] = None

    def _move_to(self, target: str, *, actor_id: Optional[int], memo: str = ''):
        self.previous_status = self.status
        self.status = target
        self.actor_id = actor_id
        self.memo = memo
        self.add_event(
            ReservationStatusChanged(
                aggregate_id=self.id,
                reservation_id=self.id,
                requester_id=self.requester_id,
                from_status=self.previous_status,
                to_status=target,
                actor_id=actor_id,
                memo=memo,
            )
        )

    def apply_approval(
        self,
        action: ApprovalAction,
        *,
        actor_id: int,
        actor_role: str,
        actor_region_id: Optional[int],
        memo: str = '',
    ) -> str:
        """Run an approver action through the policy and switch status. Returns the new status."""
        target = check_transition(
            action,
            role=actor_role,
            status=self.status,
            actor_region_id=actor_region_id,
            space_region_id=self.space_region_id,
        )
        self._move_to(target, actor_id=actor_id, memo=memo)
        return target

    def cancel(self, *, actor_id: int):
        if self.status not in CANCELABLE_STATUSES:
            raise StatusChangeRefused(
                self.status,
                "이미 취소되었거나 이용 완료된 예약은 취소할 수 없습니다.",
            )
        self._move_to(ReservationStatus.CANCELED, actor_id=actor_id)

    def resubmit(self, *, actor_id: int, space_id: int, space_region_id: Optional[int],
                 reservation_from: datetime, reservation_to: datetime):
        if self.status not in EDITABLE_STATUSES:
            raise StatusChangeRefused(self.status, "반려 또는 취소된 예약만 수정할 수 있습니다.")
        from_status = self.status
        self.space_id = space_id
        self.space_region_id = space_region_id
        self.reservation_from = reservation_from
        self.reservation_to = reservation_to
        self._move_to(ReservationStatus.FIRST_PENDING, actor_id=actor_id)
        self.add_event(
            ReservationResubmitted(
                aggregate_id=self.id,
                reservation_id=self.id,
                space_id=space_id,
                requester_id=self.requester_id,
                from_status=from_status,
            )
        )

    def complete(self, *, now: datetime):
        if self.status != ReservationStatus.FINAL_APPROVED:
            raise StatusChangeRefused(self.status, "최종 승인된 예약만 이용 완료 처리할 수 있습니다.")
        if self.reservation_to > now:
            raise StatusChangeRefused(self.status, "이용 시간이 끝나지 않은 예약입니다.")
        self._move_to(ReservationStatus.COMPLETED, actor_id=None)
