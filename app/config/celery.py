"""
Celery configuration for the campus connect backend.

Celery runs the periodic chat maintenance jobs (see CELERY_BEAT_SCHEDULE in
settings). Redis is both the message broker and result backend. Tasks are
auto-discovered from every installed Django app's tasks.py.

Usage:
    # Run a worker and the beat scheduler:
    celery -A config worker -l info
    celery -A config beat -l info

    # Call a task asynchronously:
    from chat.tasks import purge_inert_rooms
    purge_inert_rooms.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

logger = logging.getLogger(__name__)

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """
    Log the task request to verify worker connectivity.

    Usage:
        from config.celery import debug_task
        debug_task.delay()
    """
    logger.info(f"Request: {self.request!r}")
