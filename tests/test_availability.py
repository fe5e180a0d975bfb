"""Availability: the overlap predicate, clock parsing, the hour grid, and the conflict query."""

from datetime import UTC, date, datetime, time, timedelta
from itertools import product

import pytest

from fieldbook.core.database import async_session_factory
from fieldbook.models import Booking, BookingStatus
from fieldbook.services.availability import (
    OperatingHours,
    booked_hour_labels,
    build_slot_grid,
    check_availability,
    find_conflict,
    get_booked_intervals,
    hour_labels,
    overlaps,
)
from fieldbook.services.booking_rules import calc_duration_hours, check_clock, parse_clock

HOURS = OperatingHours(opening=time(8, 0), closing=time(22, 0), slot_minutes=60)


# ---------------------------------------------------------------------------
# Unit tests: clock parsing and duration (pure functions, no DB)
# ---------------------------------------------------------------------------


class TestParseClock:
    def test_valid(self):
        assert parse_clock("00:00") == time(0, 0)
        assert parse_clock("09:05") == time(9, 5)
        assert parse_clock("23:59") == time(23, 59)

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "12:5", "1200", "", "ab:cd", " 09:00"])
    def test_rejects_anything_not_zero_padded_24h(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)

    def test_check_clock_returns_violation(self):
        violation = check_clock("start_time", "9:00")
        assert violation.rule == "time_format"
        assert violation.detail["field"] == "start_time"
        assert check_clock("start_time", "09:00") is None


class TestDuration:
    def test_whole_hours(self):
        assert calc_duration_hours(time(9, 0), time(11, 0)) == 2

    def test_partial_hour_rounds_up(self):
        assert calc_duration_hours(time(9, 0), time(9, 30)) == 1
        assert calc_duration_hours(time(9, 0), time(10, 1)) == 2


# ---------------------------------------------------------------------------
# Unit tests: overlap predicate
# ---------------------------------------------------------------------------


RANGES = [
    (time(9, 0), time(10, 0)),
    (time(9, 30), time(10, 30)),
    (time(10, 0), time(11, 0)),
    (time(8, 0), time(12, 0)),
    (time(11, 0), time(12, 0)),
]


class TestOverlaps:
    def test_symmetric(self):
        for a, b in product(RANGES, repeat=2):
            assert overlaps(*a, *b) == overlaps(*b, *a)

    def test_reflexive(self):
        for a in RANGES:
            assert overlaps(*a, *a)

    def test_touching_ranges_do_not_overlap(self):
        assert not overlaps(time(9, 0), time(10, 0), time(10, 0), time(11, 0))

    def test_starts_during_ends_during_contains(self):
        existing = (time(9, 0), time(11, 0))
        assert overlaps(time(10, 0), time(12, 0), *existing)  # starts during
        assert overlaps(time(8, 0), time(10, 0), *existing)  # ends during
        assert overlaps(time(8, 0), time(12, 0), *existing)  # contains
        assert overlaps(time(9, 30), time(10, 0), *existing)  # contained


# ---------------------------------------------------------------------------
# Unit tests: hour grid
# ---------------------------------------------------------------------------


class TestHourGrid:
    def test_hour_labels(self):
        labels = hour_labels(HOURS)
        assert labels[0] == "08:00"
        assert labels[-1] == "21:00"
        assert len(labels) == 14

    def test_labels_respect_slot_length(self):
        hours = OperatingHours(opening=time(8, 0), closing=time(10, 0), slot_minutes=30)
        assert hour_labels(hours) == ["08:00", "08:30", "09:00", "09:30"]

    def test_booked_labels_cover_every_touched_hour(self):
        assert booked_hour_labels([(time(9, 0), time(11, 0))]) == {"09:00", "10:00"}
        assert booked_hour_labels([(time(9, 30), time(10, 30))]) == {"09:00", "10:00"}
        assert booked_hour_labels([(time(14, 0), time(14, 30))]) == {"14:00"}
        assert booked_hour_labels([]) == set()

    def test_grid_all_available_on_future_empty_day(self):
        now = datetime(2025, 1, 1, tzinfo=UTC)
        slots = build_slot_grid(HOURS, date(2025, 2, 1), [], now=now)
        assert len(slots) == 14
        assert all(s["is_available"] for s in slots)
        assert slots[-1] == {"start_time": "21:00", "end_time": "22:00", "is_available": True}

    def test_two_hour_booking_blocks_two_slots(self):
        now = datetime(2025, 1, 1, tzinfo=UTC)
        slots = build_slot_grid(HOURS, date(2025, 2, 1), [(time(9, 0), time(11, 0))], now=now)
        slot_map = {s["start_time"]: s["is_available"] for s in slots}
        assert slot_map["08:00"] is True
        assert slot_map["09:00"] is False
        assert slot_map["10:00"] is False
        assert slot_map["11:00"] is True

    def test_half_hour_booking_blocks_both_touched_slots(self):
        now = datetime(2025, 1, 1, tzinfo=UTC)
        slots = build_slot_grid(HOURS, date(2025, 2, 1), [(time(9, 30), time(10, 30))], now=now)
        slot_map = {s["start_time"]: s["is_available"] for s in slots}
        assert slot_map["09:00"] is False
        assert slot_map["10:00"] is False

    def test_started_slots_are_unavailable(self):
        # 05:30Z = 12:30 WIB; slots starting at or before then are gone
        now = datetime(2025, 2, 1, 5, 30, tzinfo=UTC)
        slots = build_slot_grid(HOURS, date(2025, 2, 1), [], now=now)
        slot_map = {s["start_time"]: s["is_available"] for s in slots}
        assert slot_map["12:00"] is False
        assert slot_map["13:00"] is True

    def test_past_day_is_entirely_unavailable(self):
        now = datetime(2025, 2, 2, tzinfo=UTC)
        slots = build_slot_grid(HOURS, date(2025, 1, 31), [], now=now)
        assert not any(s["is_available"] for s in slots)


# ---------------------------------------------------------------------------
# Integration tests: conflict query
# ---------------------------------------------------------------------------


async def _insert(field_id: int, day: date, start: time, end: time, status: BookingStatus) -> Booking:
    async with async_session_factory() as db:
        booking = Booking(
            field_id=field_id,
            customer_name="Existing",
            booking_date=day,
            start_time=start,
            end_time=end,
            duration_hours=calc_duration_hours(start, end),
            total_price=150000 * calc_duration_hours(start, end),
            status=status,
        )
        db.add(booking)
        await db.commit()
    return booking


@pytest.mark.asyncio
async def test_empty_day_is_available(field_a, future_day):
    async with async_session_factory() as db:
        result = await check_availability(db, field_a.id, future_day, time(9, 0), time(10, 0))
    assert result.available is True
    assert result.conflict is None


@pytest.mark.asyncio
async def test_conflict_is_reported_with_the_existing_booking(field_a, future_day):
    existing = await _insert(field_a.id, future_day, time(9, 0), time(11, 0), BookingStatus.CONFIRMED)

    async with async_session_factory() as db:
        result = await check_availability(db, field_a.id, future_day, time(10, 0), time(12, 0))
        touching = await check_availability(db, field_a.id, future_day, time(11, 0), time(12, 0))
        other_day = await check_availability(
            db, field_a.id, future_day + timedelta(days=1), time(10, 0), time(12, 0)
        )

    assert result.available is False
    assert result.conflict.id == existing.id
    assert touching.available is True
    assert other_day.available is True


@pytest.mark.asyncio
async def test_terminal_bookings_do_not_block(field_a, future_day):
    await _insert(field_a.id, future_day, time(9, 0), time(10, 0), BookingStatus.CANCELLED)
    await _insert(field_a.id, future_day, time(10, 0), time(11, 0), BookingStatus.COMPLETED)
    pending = await _insert(field_a.id, future_day, time(12, 0), time(13, 0), BookingStatus.PENDING)

    async with async_session_factory() as db:
        assert await find_conflict(db, field_a.id, future_day, time(9, 0), time(11, 0)) is None
        conflict = await find_conflict(db, field_a.id, future_day, time(12, 30), time(14, 0))
        intervals = await get_booked_intervals(db, field_a.id, future_day)

    assert conflict.id == pending.id
    assert intervals == [(time(12, 0), time(13, 0))]
