import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("staybook")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Auto-confirm pending bookings the host did not answer - every 15 minutes
    "auto-confirm-pending-bookings": {
        "task": "bookings.auto_confirm_pending_bookings",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 14 * 60},
    },
    # Check-in reminders (day before and day of) - every hour
    "send-check-in-reminders": {
        "task": "bookings.send_check_in_reminders",
        "schedule": crontab(minute=0),
    },
    # Complete bookings after check-out - every hour at :15
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute=15),
    },
    # Review reminders the day after check-out - daily at 10:00
    "send-review-reminders": {
        "task": "bookings.send_review_reminders",
        "schedule": crontab(minute=0, hour=10),
    },
}
