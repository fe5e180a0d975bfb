"""Civil-day normalisation in the venue's local time.

Pure calculation module: no database, no async, no FastAPI dependencies.

The venue runs on a fixed UTC offset (Asia/Jakarta, UTC+7, no daylight
saving), so every conversion below is a constant shift. Do not point this at
a zone with DST without reworking it around zoneinfo.

A civil day is represented by a plain `date`, which compares by value no
matter what offset the original timestamp carried. Instants are always
returned as timezone-aware UTC datetimes.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, timezone

from fieldbook.core.config import settings
from fieldbook.services.booking_rules import parse_clock

LOCAL_TZ = timezone(timedelta(hours=settings.timezone_offset_hours), "WIB")

_LAST_INSTANT = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


def _as_utc(timestamp: datetime) -> datetime:
    """Naive datetimes are taken to be UTC instants."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def to_local(timestamp: datetime) -> datetime:
    return _as_utc(timestamp).astimezone(LOCAL_TZ)


def to_civil_day(timestamp: datetime | date) -> date:
    """The calendar date the instant falls on in local time."""
    if not isinstance(timestamp, datetime):
        return timestamp
    return to_local(timestamp).date()


def start_of_civil_day_instant(timestamp: datetime | date) -> datetime:
    """UTC instant of 00:00:00.000 local on the timestamp's civil day."""
    day = to_civil_day(timestamp)
    return datetime.combine(day, time.min, tzinfo=LOCAL_TZ).astimezone(UTC)


def end_of_civil_day_instant(timestamp: datetime | date) -> datetime:
    """UTC instant of 23:59:59.999 local on the timestamp's civil day."""
    day = to_civil_day(timestamp)
    return datetime.combine(day, _LAST_INSTANT, tzinfo=LOCAL_TZ).astimezone(UTC)


def combine_day_and_clock(day: date, clock: str | time) -> datetime:
    """Absolute UTC instant for a local wall-clock time on a civil day."""
    if isinstance(clock, str):
        clock = parse_clock(clock)
    return datetime.combine(day, clock, tzinfo=LOCAL_TZ).astimezone(UTC)


def today(now: datetime | None = None) -> date:
    return to_civil_day(now or datetime.now(UTC))


def civil_date_key(timestamp: datetime | date) -> str:
    return to_civil_day(timestamp).isoformat()


def civil_clock_string(timestamp: datetime) -> str:
    return to_local(timestamp).strftime("%H:%M")


# ---------------------------------------------------------------------------
# Report ranges
# ---------------------------------------------------------------------------


def civil_week_range(timestamp: datetime | date, week_starts_on: int = 0) -> DateRange:
    """Week containing the civil day. week_starts_on follows date.weekday() (0 = Monday)."""
    day = to_civil_day(timestamp)
    start = day - timedelta(days=(day.weekday() - week_starts_on) % 7)
    return DateRange(start, start + timedelta(days=6))


def civil_month_range(timestamp: datetime | date) -> DateRange:
    day = to_civil_day(timestamp)
    first = day.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return DateRange(first, next_first - timedelta(days=1))


def civil_year_range(timestamp: datetime | date) -> DateRange:
    day = to_civil_day(timestamp)
    return DateRange(date(day.year, 1, 1), date(day.year, 12, 31))


PRESETS = ("today", "week", "month", "year")


def preset_range(preset: str, now: datetime | None = None) -> DateRange:
    """Resolve a dashboard preset. Unknown presets fall back to the current month."""
    now = now or datetime.now(UTC)
    if preset == "today":
        day = to_civil_day(now)
        return DateRange(day, day)
    if preset == "week":
        return civil_week_range(now)
    if preset == "year":
        return civil_year_range(now)
    return civil_month_range(now)
