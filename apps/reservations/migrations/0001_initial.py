import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("first_pending", "1차 승인 대기"),
    ("second_pending", "2차 승인 대기"),
    ("final_approved", "최종 승인 완료"),
    ("rejected", "반려"),
    ("completed", "이용 완료"),
    ("canceled", "예약 취소"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("spaces", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_id", models.CharField(db_index=True, editable=False, max_length=50, verbose_name="예약 번호")),
                ("reservation_from", models.DateTimeField(verbose_name="이용 시작")),
                ("reservation_to", models.DateTimeField(verbose_name="이용 종료")),
                ("headcount", models.PositiveIntegerField(verbose_name="인원")),
                ("purpose", models.TextField(verbose_name="이용 목적")),
                ("attachments", models.JSONField(blank=True, default=list, verbose_name="첨부 파일")),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        default="first_pending",
                        max_length=20,
                        verbose_name="상태",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "requester",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reservations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "space",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="spaces.space",
                    ),
                ),
            ],
            options={
                "verbose_name": "예약",
                "verbose_name_plural": "예약",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["space", "reservation_from", "reservation_to"],
                        name="reservation_space_range_idx",
                    ),
                    models.Index(fields=["status"], name="reservation_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("reservation_to__gt", models.F("reservation_from"))),
                        name="reservation_valid_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrevisitReservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("previsit_from", models.DateTimeField(verbose_name="답사 시작")),
                ("previsit_to", models.DateTimeField(verbose_name="답사 종료")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "reservation",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="previsit",
                        to="reservations.reservation",
                    ),
                ),
            ],
            options={
                "verbose_name": "사전 답사",
                "verbose_name_plural": "사전 답사",
                "ordering": ["previsit_from"],
                "indexes": [
                    models.Index(fields=["previsit_from", "previsit_to"], name="previsit_range_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("previsit_to__gt", models.F("previsit_from"))),
                        name="previsit_valid_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReservationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ("memo", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reservation_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reservation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="reservations.reservation",
                    ),
                ),
            ],
            options={
                "verbose_name": "예약 이력",
                "verbose_name_plural": "예약 이력",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["reservation", "to_status"], name="reservation_log_status_idx"),
                ],
            },
        ),
    ]
