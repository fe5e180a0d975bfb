"""Slot availability for a field on a civil day.

A candidate [start, end) conflicts with an existing [start', end') iff
start < end' and start' < end. The same predicate backs the SQL query, the
in-memory check, and the hour grid; "starts during", "ends during" and
"contains" are all special cases of it.

Only PENDING and CONFIRMED bookings reserve a slot. Cancelled and completed
bookings drop out of the overlap universe on the next query.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.core.config import settings
from fieldbook.models.booking import ACTIVE_STATUSES, Booking
from fieldbook.services.booking_rules import format_clock, minute_of_day, parse_clock
from fieldbook.services.civil_day import LOCAL_TZ


@dataclass(frozen=True)
class Availability:
    available: bool
    conflict: Booking | None = None


@dataclass(frozen=True)
class OperatingHours:
    """Hours the hour grid is drawn over. Passed in, never read from module state."""

    opening: time
    closing: time
    slot_minutes: int = 60

    @classmethod
    def from_settings(cls) -> "OperatingHours":
        return cls(
            opening=parse_clock(settings.opening_time),
            closing=parse_clock(settings.closing_time),
            slot_minutes=settings.slot_minutes,
        )


def overlaps(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open interval overlap."""
    return a_start < b_end and b_start < a_end


async def find_conflict(
    db: AsyncSession,
    field_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
) -> Booking | None:
    """Return the earliest active booking overlapping [start_time, end_time), if any."""
    result = await db.execute(
        select(Booking)
        .where(
            Booking.field_id == field_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_time < end_time,
            Booking.end_time > start_time,
        )
        .order_by(Booking.start_time)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def check_availability(
    db: AsyncSession,
    field_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
) -> Availability:
    conflict = await find_conflict(db, field_id, booking_date, start_time, end_time)
    return Availability(available=conflict is None, conflict=conflict)


async def get_booked_intervals(db: AsyncSession, field_id: int, booking_date: date) -> list[tuple[time, time]]:
    """Active [start, end) ranges on a field/day, ordered by start."""
    result = await db.execute(
        select(Booking.start_time, Booking.end_time)
        .where(
            Booking.field_id == field_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Booking.start_time)
    )
    return [(row[0], row[1]) for row in result.all()]


# ---------------------------------------------------------------------------
# Hour grid (presentation-facing, no conflict logic of its own)
# ---------------------------------------------------------------------------


def booked_hour_labels(intervals: list[tuple[time, time]]) -> set[str]:
    """Every whole-hour label a booked range touches.

    09:00-11:00 -> {"09:00", "10:00"}; 09:30-10:30 -> {"09:00", "10:00"}.
    """
    labels: set[str] = set()
    for start, end in intervals:
        hour = start.hour
        while hour * 60 < minute_of_day(end):
            labels.add(f"{hour:02d}:00")
            hour += 1
    return labels


def hour_labels(hours: OperatingHours) -> list[str]:
    """Slot start labels from opening up to the last slot that ends by closing."""
    labels = []
    current = minute_of_day(hours.opening)
    close = minute_of_day(hours.closing)
    while current + hours.slot_minutes <= close:
        labels.append(f"{current // 60:02d}:{current % 60:02d}")
        current += hours.slot_minutes
    return labels


def build_slot_grid(
    hours: OperatingHours,
    booking_date: date,
    booked_intervals: list[tuple[time, time]],
    now: datetime | None = None,
) -> list[dict]:
    """All slots for a field/day with an availability flag.

    Slots that overlap an active booking or have already started (local time)
    are unavailable.
    """
    now = (now or datetime.now(UTC)).astimezone(LOCAL_TZ)
    slots: list[dict] = []
    for label in hour_labels(hours):
        slot_start_dt = datetime.combine(booking_date, parse_clock(label), tzinfo=LOCAL_TZ)
        slot_end_dt = slot_start_dt + timedelta(minutes=hours.slot_minutes)
        slot_start, slot_end = slot_start_dt.time(), slot_end_dt.time()
        if slot_end == time(0, 0):
            slot_end = time.max

        is_past = slot_start_dt <= now
        is_booked = any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in booked_intervals)
        slots.append(
            {
                "start_time": label,
                "end_time": format_clock(slot_end_dt.time()),
                "is_available": not is_past and not is_booked,
            }
        )
    return slots
