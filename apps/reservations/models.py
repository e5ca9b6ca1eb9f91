"""Reservation domain models.

예약(Reservation)은 공간과 신청자를 참조하고 ``[reservation_from,
reservation_to)`` 반개구간을 차지한다. 사전 답사(PrevisitReservation)는
예약당 최대 1건이며 자체 상태 없이 상위 예약의 상태를 따른다. 상태 전이는
모두 ReservationLog 에 기록된다.
"""

from __future__ import annotations

import hashlib

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.clock import local_now

from .domain.status import ACTIVE_STATUSES, ReservationStatus, status_label


def space_code(space_name: str) -> str:
    """First three hex digits of the SHA-256 of the space name, upper-cased."""
    return hashlib.sha256(space_name.encode("utf-8")).hexdigest()[:3].upper()


def generate_order_id(space_name: str, moment=None) -> str:
    moment = moment or local_now()
    return f"{space_code(space_name)}-{moment:%y%m%d%H%M%S}"


class ReservationQuerySet(models.QuerySet):
    def overlapping(self, start, end):
        return self.filter(reservation_from__lt=end, reservation_to__gt=start)


class Reservation(models.Model):
    """공간 예약."""

    Status = ReservationStatus

    space = models.ForeignKey(
        "spaces.Space",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    order_id = models.CharField(_("예약 번호"), max_length=50, editable=False, db_index=True)
    reservation_from = models.DateTimeField(_("이용 시작"))
    reservation_to = models.DateTimeField(_("이용 종료"))
    headcount = models.PositiveIntegerField(_("인원"))
    purpose = models.TextField(_("이용 목적"))
    attachments = models.JSONField(_("첨부 파일"), default=list, blank=True)
    status = models.CharField(
        _("상태"),
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.FIRST_PENDING,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _("예약")
        verbose_name_plural = _("예약")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(reservation_to__gt=models.F("reservation_from")),
                name="reservation_valid_range",
            ),
        ]
        indexes = [
            models.Index(fields=["space", "reservation_from", "reservation_to"], name="reservation_space_range_idx"),
            models.Index(fields=["status"], name="reservation_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.order_id} ({self.space_id})"

    def clean(self) -> None:
        if self.reservation_from and self.reservation_to and self.reservation_from >= self.reservation_to:
            raise ValidationError(_("예약 종료 시간은 시작 시간 이후여야 합니다."))

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class PrevisitQuerySet(models.QuerySet):
    def overlapping(self, start, end):
        return self.filter(previsit_from__lt=end, previsit_to__gt=start)


class PrevisitReservation(models.Model):
    """사전 답사. 상위 예약이 삭제되면 함께 삭제된다."""

    reservation = models.OneToOneField(
        Reservation,
        on_delete=models.CASCADE,
        related_name="previsit",
    )
    previsit_from = models.DateTimeField(_("답사 시작"))
    previsit_to = models.DateTimeField(_("답사 종료"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PrevisitQuerySet.as_manager()

    class Meta:
        verbose_name = _("사전 답사")
        verbose_name_plural = _("사전 답사")
        ordering = ["previsit_from"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(previsit_to__gt=models.F("previsit_from")),
                name="previsit_valid_range",
            ),
        ]
        indexes = [
            models.Index(fields=["previsit_from", "previsit_to"], name="previsit_range_idx"),
        ]

    def __str__(self) -> str:
        return f"Previsit for {self.reservation_id}"


class ReservationLog(models.Model):
    """예약 상태 변경 이력. 반려 사유는 memo 에 저장된다."""

    reservation = models.ForeignKey(Reservation, on_delete=models.CASCADE, related_name="logs")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservation_logs",
    )
    from_status = models.CharField(max_length=20, choices=ReservationStatus.choices, blank=True)
    to_status = models.CharField(max_length=20, choices=ReservationStatus.choices)
    memo = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("예약 이력")
        verbose_name_plural = _("예약 이력")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["reservation", "to_status"], name="reservation_log_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.reservation_id}: {self.from_status or '-'} -> {self.to_status}"
