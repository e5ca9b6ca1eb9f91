import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Space",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="공간명")),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)],
                        verbose_name="수용 인원",
                    ),
                ),
                ("location", models.CharField(blank=True, max_length=255, verbose_name="위치")),
                ("description", models.TextField(blank=True, verbose_name="설명")),
                ("is_active", models.BooleanField(default=True, verbose_name="예약 가능 여부")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "region",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="spaces",
                        to="users.region",
                    ),
                ),
            ],
            options={
                "verbose_name": "공간",
                "verbose_name_plural": "공간",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SpaceOperation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "weekday",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (1, "월"),
                            (2, "화"),
                            (3, "수"),
                            (4, "목"),
                            (5, "금"),
                            (6, "토"),
                            (7, "일"),
                        ],
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(7),
                        ],
                        verbose_name="요일",
                    ),
                ),
                ("is_open", models.BooleanField(default=False, verbose_name="운영 여부")),
                ("operation_from", models.TimeField(blank=True, null=True, verbose_name="운영 시작")),
                ("operation_to", models.TimeField(blank=True, null=True, verbose_name="운영 종료")),
                (
                    "space",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="operations",
                        to="spaces.space",
                    ),
                ),
            ],
            options={
                "verbose_name": "운영 시간",
                "verbose_name_plural": "운영 시간",
                "ordering": ["space_id", "weekday"],
                "constraints": [
                    models.UniqueConstraint(fields=("space", "weekday"), name="space_operation_unique_weekday"),
                    models.CheckConstraint(
                        condition=models.Q(("weekday__gte", 1), ("weekday__lte", 7)),
                        name="space_operation_weekday_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("is_open", False),
                            models.Q(
                                ("operation_from__isnull", False),
                                ("operation_to__isnull", False),
                                models.Q(("operation_from", models.F("operation_to")), _negated=True),
                            ),
                            _connector="OR",
                        ),
                        name="space_operation_open_window",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SpaceClosedDay",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("closed_from", models.DateTimeField(verbose_name="휴무 시작")),
                ("closed_to", models.DateTimeField(verbose_name="휴무 종료")),
                ("reason", models.CharField(blank=True, max_length=255, verbose_name="사유")),
                (
                    "space",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="closed_days",
                        to="spaces.space",
                    ),
                ),
            ],
            options={
                "verbose_name": "휴무 기간",
                "verbose_name_plural": "휴무 기간",
                "ordering": ["closed_from"],
                "indexes": [
                    models.Index(fields=["space", "closed_from", "closed_to"], name="space_closed_range_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("closed_to__gte", models.F("closed_from"))),
                        name="space_closed_day_valid_range",
                    ),
                ],
            },
        ),
    ]
