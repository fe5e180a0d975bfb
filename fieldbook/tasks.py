"""Celery tasks."""

from fieldbook.services.notifications import deliver_booking_notification
from fieldbook.worker import celery_app


@celery_app.task(name="fieldbook.notify_new_booking")
def notify_new_booking(payload: dict) -> int:
    """Best effort: delivery problems are logged, never retried."""
    return deliver_booking_notification(payload)
