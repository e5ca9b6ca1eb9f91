import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("space_reservation")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # 이용 시간이 지난 최종 승인 예약을 이용 완료로 전환 (매시 5분)
    "complete-finished-reservations": {
        "task": "reservations.complete_finished_reservations",
        "schedule": crontab(minute=5),
        "options": {"expires": 50 * 60},
    },
}
