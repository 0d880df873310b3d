import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "supplydesk.settings")

app = Celery("supplydesk")

# Load config from Django settings with CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks.py in installed apps
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "alert-low-stock-daily": {
        "task": "supply_requests.tasks.alert_low_stock",
        "schedule": crontab(hour=7, minute=0),
    },
}
