"""Celery worker configuration.

Run with: celery -A fieldbook.worker worker
"""

from celery import Celery

from fieldbook.core.config import settings

celery_app = Celery(
    "fieldbook",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["fieldbook.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.timezone_name,
    enable_utc=True,
    task_ignore_result=True,
)
