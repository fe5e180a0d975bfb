"""Cancellation policy: a booking can be cancelled only with enough lead time.

Exactly `lead_hours` before the start is still allowed; anything closer is
denied. Cancellation itself is the ordinary -> CANCELLED transition.
"""

from datetime import UTC, datetime, timedelta

from fieldbook.core.config import settings
from fieldbook.models.booking import Booking, BookingStatus
from fieldbook.services.booking_rules import StateError, format_clock
from fieldbook.services.civil_day import combine_day_and_clock


def can_cancel(booking: Booking, now: datetime | None = None, lead_hours: int | None = None) -> StateError | None:
    """Return a StateError if the booking may not be cancelled at `now`, else None."""
    if booking.status == BookingStatus.CANCELLED:
        return StateError("already_cancelled", "Booking is already cancelled.", status=booking.status.value)

    if booking.status == BookingStatus.COMPLETED:
        return StateError("already_completed", "Booking is already completed.", status=booking.status.value)

    lead_hours = settings.cancellation_lead_hours if lead_hours is None else lead_hours
    now = now or datetime.now(UTC)
    scheduled = combine_day_and_clock(booking.booking_date, booking.start_time)

    if scheduled - now < timedelta(hours=lead_hours):
        deadline = scheduled - timedelta(hours=lead_hours)
        return StateError(
            "cancellation_lead_time",
            f"Bookings can only be cancelled at least {lead_hours} hours before the start "
            f"({booking.booking_date.isoformat()} {format_clock(booking.start_time)}).",
            lead_hours=lead_hours,
            deadline=deadline.isoformat(),
        )

    return None
