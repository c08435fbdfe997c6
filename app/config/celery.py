"""
Celery app for webhook processing and the periodic retry/cleanup jobs
listed in settings.CELERY_BEAT_SCHEDULE.

    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
