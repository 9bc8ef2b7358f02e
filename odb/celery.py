import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "odb.settings")

app = Celery("odb")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "nightly-scheduled-backup": {
        "task": "core.tasks.create_scheduled_backup",
        "schedule": crontab(hour=3, minute=0),
    },
    "purge-stale-analytics-sessions": {
        "task": "analytics.tasks.purge_stale_analytics_sessions",
        "schedule": crontab(minute="*/30"),
    },
}
