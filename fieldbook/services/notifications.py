"""New-booking notifications via Telegram.

Fire-and-forget: the admission controller publishes an event after its
transaction commits and a Celery worker delivers it. Nothing in here may
fail an admission, and one chat failing does not stop the others.
"""

import html
import logging

import httpx

from fieldbook.core.config import settings
from fieldbook.models.booking import Booking
from fieldbook.models.field import Field
from fieldbook.services.booking_rules import format_clock
from fieldbook.services.booking_state_machine import STATUS_LABELS

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def is_enabled() -> bool:
    return bool(settings.telegram_bot_token.strip() and settings.telegram_chat_id_list)


def booking_payload(booking: Booking, field: Field, source: str | None = None) -> dict:
    """JSON-safe snapshot of a committed booking for the worker."""
    return {
        "id": booking.id,
        "field_name": field.name,
        "booking_date": booking.booking_date.isoformat(),
        "start_time": format_clock(booking.start_time),
        "end_time": format_clock(booking.end_time),
        "duration_hours": booking.duration_hours,
        "total_price": booking.total_price,
        "status": booking.status.value,
        "customer_name": booking.customer_name,
        "customer_phone": booking.customer_phone,
        "notes": booking.notes,
        "source": source,
    }


def format_price(amount: int) -> str:
    return "Rp " + f"{amount:,}".replace(",", ".")


def build_booking_message(payload: dict) -> str:
    """HTML message for Telegram's parse_mode=HTML."""
    esc = html.escape
    status_label = STATUS_LABELS.get(payload["status"], payload["status"])
    lines = [
        "<b>New booking</b>",
        f"<i>Source: {esc(payload['source'])}</i>" if payload.get("source") else None,
        "",
        "<b>Booking</b>",
        f"• <b>Code:</b> {payload['id']:06d}",
        f"• <b>Field:</b> {esc(payload['field_name'])}",
        f"• <b>Date:</b> {esc(payload['booking_date'])}",
        f"• <b>Time:</b> {esc(payload['start_time'])} - {esc(payload['end_time'])} ({payload['duration_hours']} h)",
        f"• <b>Total:</b> {esc(format_price(payload['total_price']))}",
        f"• <b>Status:</b> {esc(status_label)}",
        "",
        "<b>Customer</b>",
        f"• <b>Name:</b> {esc(payload['customer_name'])}",
        f"• <b>Phone:</b> {esc(payload.get('customer_phone') or '-')}",
        f"• <b>Notes:</b> {esc(payload['notes'])}" if payload.get("notes") else None,
    ]
    return "\n".join(line for line in lines if line is not None)


def send_telegram_message(client: httpx.Client, chat_id: str, message: str) -> bool:
    """Send one message. Returns False (and logs) on any failure."""
    url = f"{TELEGRAM_API}/bot{settings.telegram_bot_token}/sendMessage"
    body = {
        "chat_id": chat_id,
        "text": message,
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
        "reply_markup": {"inline_keyboard": [[{"text": "Open bookings", "url": settings.dashboard_url}]]},
    }
    try:
        response = client.post(url, json=body)
    except httpx.HTTPError as exc:
        logger.warning("Telegram notify error for chat %s: %s", chat_id, exc)
        return False
    if response.is_error:
        logger.warning("Telegram notify failed for chat %s: %s %s", chat_id, response.status_code, response.text)
        return False
    return True


def deliver_booking_notification(payload: dict) -> int:
    """Send the booking message to every configured chat. Returns the number delivered."""
    if not is_enabled():
        return 0
    message = build_booking_message(payload)
    with httpx.Client(timeout=10.0) as client:
        delivered = sum(send_telegram_message(client, chat_id, message) for chat_id in settings.telegram_chat_id_list)
    logger.info("Booking %s notification delivered to %d chat(s)", payload["id"], delivered)
    return delivered


def publish_booking_created(booking: Booking, field: Field, source: str | None = None) -> None:
    """Queue the notification. Must only be called after the booking has committed."""
    if not is_enabled():
        return
    # Imported here so the API process does not need the worker module at import time
    from fieldbook.tasks import notify_new_booking

    try:
        notify_new_booking.delay(booking_payload(booking, field, source))
    except Exception:
        logger.exception("Could not queue notification for booking %s", booking.id)
