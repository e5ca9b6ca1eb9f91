"""
Reservation Command Handlers

The use cases of the reservation domain. Each handler runs in one
``DjangoUnitOfWork`` (one transaction); domain events are published after
commit.

Commands:
- CreateReservationCommand: requester submits a reservation
- UpdateReservationCommand: requester edits a rejected/canceled reservation
- CancelReservationCommand: requester cancels
- DeleteReservationCommand: requester deletes (previsit goes with it)
- CreatePrevisitCommand / UpdatePrevisitCommand / DeletePrevisitCommand: requester manages the previsit
- ApproveReservationCommand: first- or second-tier approval
- RejectReservationCommand: approver rejects with a reason
- CompleteReservationCommand: batch moves a finished reservation to COMPLETED
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import logging

from django.contrib.auth import get_user_model
from django.utils import timezone

from shared.api.exceptions import Forbidden, InvalidInput, NotFound, PreconditionFailed, ReservationConflict
from shared.application.uow import DjangoUnitOfWork
from apps.reservations import services
from apps.reservations.domain.approval import ApprovalAction, ApprovalNotPermitted, SourceStateMismatch
from apps.reservations.domain.entities import ReservationRecord, StatusChangeRefused
from apps.reservations.domain.events import PrevisitCreated, PrevisitRescheduled, ReservationCreated
from apps.reservations.domain.status import ACTIVE_STATUSES, EDITABLE_STATUSES, ReservationStatus, status_label
from apps.reservations.models import PrevisitReservation, Reservation
from apps.reservations.repositories import ReservationRepository, latest_rejection_memo

logger = logging.getLogger(__name__)

ACCESS_DENIED = "해당 예약에 대한 접근 권한이 없습니다."
PREVISIT_NOT_FOUND = "해당 사전 답사를 찾을 수 없습니다."
PREVISIT_WINDOW_MESSAGE = "사전답사 시작 시간은 종료 시간보다 이전이어야 합니다."
PREVISIT_INACTIVE_MESSAGE = "진행 중인 예약에만 사전 답사를 신청할 수 있습니다."


# ===== Commands =====

@dataclass
class CreateReservationCommand:
    requester_id: int
    space_id: int
    headcount: int
    reservation_from: datetime
    reservation_to: datetime
    purpose: str
    attachments: List[str] = field(default_factory=list)


@dataclass
class UpdateReservationCommand:
    requester_id: int
    reservation_id: int
    space_id: int
    headcount: int
    reservation_from: datetime
    reservation_to: datetime
    purpose: str
    attachments: List[str] = field(default_factory=list)


@dataclass
class CancelReservationCommand:
    requester_id: int
    reservation_id: int


@dataclass
class DeleteReservationCommand:
    requester_id: int
    reservation_id: int


@dataclass
class CreatePrevisitCommand:
    requester_id: int
    reservation_id: int
    previsit_from: datetime
    previsit_to: datetime


@dataclass
class UpdatePrevisitCommand:
    requester_id: int
    reservation_id: int
    previsit_from: datetime
    previsit_to: datetime


@dataclass
class DeletePrevisitCommand:
    requester_id: int
    reservation_id: int


@dataclass
class ApproveReservationCommand:
    actor_id: int
    reservation_id: int
    action: ApprovalAction


@dataclass
class RejectReservationCommand:
    actor_id: int
    reservation_id: int
    reason: str


@dataclass
class CompleteReservationCommand:
    reservation_id: int
    now: Optional[datetime] = None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a status transition, shaped for the API response."""
    reservation_id: int
    from_status: str
    to_status: str
    changed_at: datetime
    message: str
    rejection_reason: Optional[str] = None

    @property
    def from_label(self) -> str:
        return status_label(self.from_status)

    @property
    def to_label(self) -> str:
        return status_label(self.to_status)


# ===== Helpers =====

def _load_user(user_id: int):
    user = get_user_model().objects.filter(pk=user_id).select_related("region").first()
    if user is None:
        raise NotFound("해당 사용자를 찾을 수 없습니다.")
    return user


def _require_requester(user, message: str = "일반 사용자만 접근 가능한 기능입니다."):
    if not user.is_requester():
        raise Forbidden(message)


def _require_owner(record: ReservationRecord, user_id: int):
    if record.requester_id != user_id:
        raise Forbidden(ACCESS_DENIED)


def _validate_window(start: datetime, end: datetime, *, now: datetime, message: str):
    if start >= end:
        raise InvalidInput(message)
    if start < now:
        raise InvalidInput("지난 시간으로는 예약할 수 없습니다.")


def _validate_headcount(headcount: int):
    if headcount < 1:
        raise InvalidInput("예약 인원은 1명 이상이어야 합니다.")


# ===== Requester Handlers =====

class CreateReservationHandler:
    """
    Handler for CreateReservation command

    The overlap check and the insert run in one transaction behind the
    conflict guard, so concurrent identical requests yield one winner.
    """

    def handle(self, command: CreateReservationCommand) -> Reservation:
        logger.info(
            f"Creating reservation on space {command.space_id} for user {command.requester_id}, "
            f"{command.reservation_from} - {command.reservation_to}"
        )
        user = _load_user(command.requester_id)
        _require_requester(user, "예약을 생성할 권한이 없습니다.")
        _validate_window(
            command.reservation_from,
            command.reservation_to,
            now=timezone.now(),
            message="예약 시작 시간은 종료 시간보다 이전이어야 합니다.",
        )
        _validate_headcount(command.headcount)

        with DjangoUnitOfWork() as uow:
            reservation = services.book_reservation(
                space_id=command.space_id,
                requester_id=user.pk,
                reservation_from=command.reservation_from,
                reservation_to=command.reservation_to,
                headcount=command.headcount,
                purpose=command.purpose,
                attachments=command.attachments,
            )
            uow.add_event(
                ReservationCreated(
                    aggregate_id=reservation.pk,
                    reservation_id=reservation.pk,
                    space_id=reservation.space_id,
                    requester_id=user.pk,
                    reservation_from=reservation.reservation_from,
                    reservation_to=reservation.reservation_to,
                )
            )
        return reservation


class UpdateReservationHandler:
    """Edit a rejected or canceled reservation and send it back to FIRST_PENDING."""

    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: UpdateReservationCommand) -> Reservation:
        _validate_window(
            command.reservation_from,
            command.reservation_to,
            now=timezone.now(),
            message="예약 시작 시간은 종료 시간보다 이전이어야 합니다.",
        )
        _validate_headcount(command.headcount)

        _require_owner(self.repository.get(command.reservation_id), command.requester_id)

        with DjangoUnitOfWork() as uow:
            # Space row before reservation row, the order every booking path locks in.
            services.lock_space(command.space_id)
            record = self.repository.get_for_update(command.reservation_id)
            if record.status not in EDITABLE_STATUSES:
                raise PreconditionFailed("반려 또는 취소된 예약만 수정할 수 있습니다.")

            space = services.claim_reservation_window(
                reservation_id=record.id,
                space_id=command.space_id,
                reservation_from=command.reservation_from,
                reservation_to=command.reservation_to,
            )
            if command.headcount > space.capacity:
                raise InvalidInput(f"예약 인원은 공간 수용 인원({space.capacity}명)을 초과할 수 없습니다.")
            services.claim_previsit_window(reservation_id=record.id, space_id=space.pk)

            record.resubmit(
                actor_id=command.requester_id,
                space_id=space.pk,
                space_region_id=space.region_id,
                reservation_from=command.reservation_from,
                reservation_to=command.reservation_to,
            )
            self.repository.save(
                record,
                headcount=command.headcount,
                purpose=command.purpose,
                attachments=list(command.attachments),
            )
            uow.collect_events(record)

        logger.info(f"Reservation {command.reservation_id} resubmitted by {command.requester_id}")
        return Reservation.objects.select_related("space").get(pk=command.reservation_id)


class CancelReservationHandler:
    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: CancelReservationCommand) -> TransitionResult:
        with DjangoUnitOfWork() as uow:
            record = self.repository.get_for_update(command.reservation_id)
            _require_owner(record, command.requester_id)
            from_status = record.status
            try:
                record.cancel(actor_id=command.requester_id)
            except StatusChangeRefused as exc:
                raise PreconditionFailed(str(exc)) from exc
            self.repository.save(record)
            uow.collect_events(record)

        return TransitionResult(
            reservation_id=record.id,
            from_status=from_status,
            to_status=record.status,
            changed_at=timezone.now(),
            message="예약 상태 변경 성공",
        )


class DeleteReservationHandler:
    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: DeleteReservationCommand) -> None:
        with DjangoUnitOfWork():
            record = self.repository.get_for_update(command.reservation_id)
            _require_owner(record, command.requester_id)
            Reservation.objects.filter(pk=record.id).delete()
        logger.info(f"Reservation {command.reservation_id} deleted by {command.requester_id}")


class CreatePrevisitHandler:
    """One previsit per reservation, guarded like a reservation."""

    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: CreatePrevisitCommand) -> PrevisitReservation:
        _validate_window(
            command.previsit_from,
            command.previsit_to,
            now=timezone.now(),
            message=PREVISIT_WINDOW_MESSAGE,
        )
        owned = self.repository.get(command.reservation_id)
        _require_owner(owned, command.requester_id)

        with DjangoUnitOfWork() as uow:
            services.lock_space(owned.space_id)
            record = self.repository.get_for_update(command.reservation_id)
            if record.status not in ACTIVE_STATUSES:
                raise PreconditionFailed(PREVISIT_INACTIVE_MESSAGE)
            if PrevisitReservation.objects.filter(reservation_id=record.id).exists():
                raise ReservationConflict("이미 사전 답사가 등록된 예약입니다.")

            reservation = Reservation.objects.get(pk=record.id)
            previsit = services.book_previsit(
                reservation=reservation,
                previsit_from=command.previsit_from,
                previsit_to=command.previsit_to,
            )
            uow.add_event(
                PrevisitCreated(
                    aggregate_id=record.id,
                    reservation_id=record.id,
                    previsit_id=previsit.pk,
                    space_id=record.space_id,
                    previsit_from=previsit.previsit_from,
                    previsit_to=previsit.previsit_to,
                )
            )
        return previsit


class UpdatePrevisitHandler:
    """Move the previsit of an active reservation to another window."""

    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: UpdatePrevisitCommand) -> PrevisitReservation:
        _validate_window(
            command.previsit_from,
            command.previsit_to,
            now=timezone.now(),
            message=PREVISIT_WINDOW_MESSAGE,
        )
        owned = self.repository.get(command.reservation_id)
        _require_owner(owned, command.requester_id)

        with DjangoUnitOfWork() as uow:
            services.lock_space(owned.space_id)
            record = self.repository.get_for_update(command.reservation_id)
            previsit = PrevisitReservation.objects.filter(reservation_id=record.id).first()
            if previsit is None:
                raise NotFound(PREVISIT_NOT_FOUND)
            if record.status not in ACTIVE_STATUSES:
                raise PreconditionFailed(PREVISIT_INACTIVE_MESSAGE)

            previsit = services.reschedule_previsit(
                previsit=previsit,
                space_id=record.space_id,
                previsit_from=command.previsit_from,
                previsit_to=command.previsit_to,
            )
            uow.add_event(
                PrevisitRescheduled(
                    aggregate_id=record.id,
                    reservation_id=record.id,
                    previsit_id=previsit.pk,
                    space_id=record.space_id,
                    previsit_from=previsit.previsit_from,
                    previsit_to=previsit.previsit_to,
                )
            )
        logger.info(f"Previsit of reservation {command.reservation_id} moved by {command.requester_id}")
        return previsit


class DeletePrevisitHandler:
    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: DeletePrevisitCommand) -> None:
        with DjangoUnitOfWork():
            record = self.repository.get_for_update(command.reservation_id)
            _require_owner(record, command.requester_id)
            deleted, _ = PrevisitReservation.objects.filter(reservation_id=record.id).delete()
            if not deleted:
                raise NotFound(PREVISIT_NOT_FOUND)


# ===== Approver Handlers =====

APPROVAL_MESSAGES = {
    ApprovalAction.APPROVE_FIRST: ("1차 승인 완료", "1차 승인 불가", "승인 권한이 없습니다."),
    ApprovalAction.APPROVE_SECOND: ("2차 승인 완료", "2차 승인 불가", "승인 권한이 없습니다."),
    ApprovalAction.REJECT: ("반려 완료", "반려 불가", "반려 권한이 없습니다."),
}


class _TransitionHandler:
    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def _apply(self, action: ApprovalAction, actor_id: int, reservation_id: int, memo: str = '') -> TransitionResult:
        done_message, refused_message, forbidden_message = APPROVAL_MESSAGES[action]
        actor = _load_user(actor_id)

        with DjangoUnitOfWork() as uow:
            record = self.repository.get_for_update(reservation_id)
            from_status = record.status
            try:
                record.apply_approval(
                    action,
                    actor_id=actor.pk,
                    actor_role=actor.role,
                    actor_region_id=actor.region_id,
                    memo=memo,
                )
            except SourceStateMismatch as exc:
                raise PreconditionFailed(
                    f"{refused_message}(이미 처리 완료된 대상인지 확인하세요): {status_label(exc.status)}"
                ) from exc
            except ApprovalNotPermitted as exc:
                logger.info(f"Actor {actor.pk} refused {action.value} on {reservation_id}: {exc.reason}")
                raise Forbidden(forbidden_message) from exc
            self.repository.save(record)
            uow.collect_events(record)

        return TransitionResult(
            reservation_id=record.id,
            from_status=from_status,
            to_status=record.status,
            changed_at=timezone.now(),
            message=done_message,
            rejection_reason=memo or None,
        )


class ApproveReservationHandler(_TransitionHandler):
    def handle(self, command: ApproveReservationCommand) -> TransitionResult:
        if command.action == ApprovalAction.REJECT:
            raise ValueError("Use RejectReservationCommand to reject a reservation")
        logger.info(f"Actor {command.actor_id} requests {command.action.value} on {command.reservation_id}")
        return self._apply(command.action, command.actor_id, command.reservation_id)


class RejectReservationHandler(_TransitionHandler):
    def handle(self, command: RejectReservationCommand) -> TransitionResult:
        reason = (command.reason or '').strip()
        if not reason:
            raise InvalidInput("반려 사유를 입력해주세요.")
        logger.info(f"Actor {command.actor_id} rejects reservation {command.reservation_id}")
        return self._apply(ApprovalAction.REJECT, command.actor_id, command.reservation_id, memo=reason)


class CompleteReservationHandler:
    """FINAL_APPROVED -> COMPLETED once the reserved window has ended."""

    def __init__(self, repository: Optional[ReservationRepository] = None):
        self.repository = repository or ReservationRepository()

    def handle(self, command: CompleteReservationCommand) -> bool:
        now = command.now or timezone.now()
        with DjangoUnitOfWork() as uow:
            record = self.repository.get_for_update(command.reservation_id)
            try:
                record.complete(now=now)
            except StatusChangeRefused:
                return False
            self.repository.save(record)
            uow.collect_events(record)
        return True


# ===== Queries =====

def get_rejection_reason(requester_id: int, reservation_id: int) -> str:
    record = ReservationRepository().get(reservation_id)
    _require_owner(record, requester_id)
    if record.status != ReservationStatus.REJECTED:
        raise PreconditionFailed("반려된 예약이 아닙니다.")
    memo = latest_rejection_memo(reservation_id)
    if memo is None:
        raise NotFound("반려 사유를 찾을 수 없습니다.")
    return memo

