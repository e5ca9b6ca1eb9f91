"""Space domain models.

공간은 요일별 운영 시간(SpaceOperation, 요일당 정확히 1건)과 휴무 기간
(SpaceClosedDay, 양 끝 포함)을 가진다. 예약 가능 일/시간 계산은
``apps.spaces.services.load_schedule_config`` 로 읽어 들인 값을 사용한다.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Space(models.Model):
    """대여 공간."""

    name = models.CharField(_("공간명"), max_length=100, unique=True)
    region = models.ForeignKey(
        "users.Region",
        on_delete=models.PROTECT,
        related_name="spaces",
    )
    capacity = models.PositiveIntegerField(_("수용 인원"), validators=[MinValueValidator(1)])
    location = models.CharField(_("위치"), max_length=255, blank=True)
    description = models.TextField(_("설명"), blank=True)
    is_active = models.BooleanField(_("예약 가능 여부"), default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("공간")
        verbose_name_plural = _("공간")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class SpaceOperation(models.Model):
    """요일별 운영 시간. 요일은 1(월)~7(일)."""

    class Weekday(models.IntegerChoices):
        MONDAY = 1, _("월")
        TUESDAY = 2, _("화")
        WEDNESDAY = 3, _("수")
        THURSDAY = 4, _("목")
        FRIDAY = 5, _("금")
        SATURDAY = 6, _("토")
        SUNDAY = 7, _("일")

    space = models.ForeignKey(Space, on_delete=models.CASCADE, related_name="operations")
    weekday = models.PositiveSmallIntegerField(
        _("요일"),
        choices=Weekday.choices,
        validators=[MinValueValidator(1), MaxValueValidator(7)],
    )
    is_open = models.BooleanField(_("운영 여부"), default=False)
    operation_from = models.TimeField(_("운영 시작"), null=True, blank=True)
    operation_to = models.TimeField(_("운영 종료"), null=True, blank=True)

    class Meta:
        verbose_name = _("운영 시간")
        verbose_name_plural = _("운영 시간")
        ordering = ["space_id", "weekday"]
        constraints = [
            models.UniqueConstraint(fields=["space", "weekday"], name="space_operation_unique_weekday"),
            models.CheckConstraint(
                condition=models.Q(weekday__gte=1) & models.Q(weekday__lte=7),
                name="space_operation_weekday_range",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(is_open=False)
                    | (
                        models.Q(operation_from__isnull=False)
                        & models.Q(operation_to__isnull=False)
                        & ~models.Q(operation_from=models.F("operation_to"))
                    )
                ),
                name="space_operation_open_window",
            ),
        ]

    def __str__(self) -> str:
        if not self.is_open:
            return f"{self.space_id}: {self.get_weekday_display()} 휴무"
        return f"{self.space_id}: {self.get_weekday_display()} {self.operation_from}-{self.operation_to}"

    def clean(self) -> None:
        if not self.is_open:
            return
        if self.operation_from is None or self.operation_to is None:
            raise ValidationError(_("운영일은 시작/종료 시간이 모두 필요합니다."))
        if self.operation_from == self.operation_to:
            raise ValidationError(_("운영 시작 시간과 종료 시간은 같을 수 없습니다."))


class SpaceClosedDay(models.Model):
    """휴무 기간. closed_from 과 closed_to 모두 포함."""

    space = models.ForeignKey(Space, on_delete=models.CASCADE, related_name="closed_days")
    closed_from = models.DateTimeField(_("휴무 시작"))
    closed_to = models.DateTimeField(_("휴무 종료"))
    reason = models.CharField(_("사유"), max_length=255, blank=True)

    class Meta:
        verbose_name = _("휴무 기간")
        verbose_name_plural = _("휴무 기간")
        ordering = ["closed_from"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(closed_to__gte=models.F("closed_from")),
                name="space_closed_day_valid_range",
            ),
        ]
        indexes = [
            models.Index(fields=["space", "closed_from", "closed_to"], name="space_closed_range_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.space_id}: {self.closed_from:%Y-%m-%d %H:%M} ~ {self.closed_to:%Y-%m-%d %H:%M}"

    def clean(self) -> None:
        if self.closed_from and self.closed_to and self.closed_from > self.closed_to:
            raise ValidationError(_("휴무 종료는 휴무 시작 이후여야 합니다."))
