"""Payments and financial reports against the database."""

from datetime import UTC, date, datetime

import pytest

from fieldbook.core.database import async_session_factory
from fieldbook.models import Booking, BookingStatus, Expense, Field, PaymentMethod, PaymentStatus
from fieldbook.services.admission import BookingRequest, admit_booking
from fieldbook.services.booking_rules import StateError
from fieldbook.services.payments import create_transaction, mark_paid, paid_income
from fieldbook.services.reports import (
    daily_income,
    dashboard_stats,
    expenses_by_category,
    financial_summary,
    income_by_field,
)

MAY_20 = date(2025, 5, 20)
MAY_21 = date(2025, 5, 21)


async def _book(field_id: int, day: date, start: str, end: str, status=BookingStatus.CONFIRMED) -> Booking:
    booking = await admit_booking(
        BookingRequest(field_id=field_id, booking_date=day, start_time=start, end_time=end, customer_name="Budi"),
        status,
    )
    assert isinstance(booking, Booking)
    return booking


async def _pay(booking_id: int, amount: int, paid_at: datetime | None) -> None:
    async with async_session_factory() as db:
        booking = await db.get(Booking, booking_id)
        txn = await create_transaction(db, booking, amount, PaymentMethod.CASH)
        if paid_at is not None:
            assert mark_paid(txn, now=paid_at) is None
        await db.commit()


@pytest.fixture
async def ledger(field_a):
    """Two fields with paid, unpaid and out-of-range transactions plus some expenses."""
    async with async_session_factory() as db:
        field_b = Field(name="Lapangan B", price_per_hour=120000)
        db.add(field_b)
        db.add_all(
            [
                Expense(expense_date=MAY_20, amount=50000, description="Electricity", category="Utilities"),
                Expense(expense_date=MAY_21, amount=20000, description="Water", category="Utilities"),
                Expense(expense_date=MAY_21, amount=10000, description="Net replacement"),
                Expense(expense_date=date(2025, 6, 1), amount=99999, description="Next month", category="Repairs"),
            ]
        )
        await db.commit()

    b1 = await _book(field_a.id, MAY_20, "09:00", "11:00")
    b2 = await _book(field_b.id, MAY_20, "09:00", "10:00")
    b3 = await _book(field_a.id, MAY_21, "09:00", "10:00")
    b4 = await _book(field_a.id, MAY_21, "12:00", "13:00")

    # 10:00 WIB on the 20th
    await _pay(b1.id, 300000, datetime(2025, 5, 20, 3, 0, tzinfo=UTC))
    # 01:00 WIB on the 21st, still the 20th in UTC
    await _pay(b2.id, 120000, datetime(2025, 5, 20, 18, 0, tzinfo=UTC))
    # Recorded but never paid
    await _pay(b3.id, 150000, None)
    # Paid in June
    await _pay(b4.id, 150000, datetime(2025, 6, 2, 3, 0, tzinfo=UTC))
    return {"field_a": field_a, "field_b": field_b}


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_transaction_rules(field_a, future_day):
    active = await _book(field_a.id, future_day, "09:00", "10:00")
    cancelled = await _book(field_a.id, future_day, "10:00", "11:00")

    async with async_session_factory() as db:
        booking = await db.get(Booking, cancelled.id)
        booking.status = BookingStatus.CANCELLED
        await db.flush()

        refused = await create_transaction(db, booking, 150000, PaymentMethod.CASH)
        assert isinstance(refused, StateError)
        assert refused.rule == "booking_cancelled"

        booking = await db.get(Booking, active.id)
        txn = await create_transaction(db, booking, 150000, PaymentMethod.TRANSFER)
        assert txn.payment_status == PaymentStatus.UNPAID
        assert txn.paid_at is None

        duplicate = await create_transaction(db, booking, 150000, PaymentMethod.CASH)
        assert duplicate.rule == "transaction_exists"

        assert mark_paid(txn) is None
        assert txn.payment_status == PaymentStatus.PAID
        assert txn.paid_at is not None
        assert mark_paid(txn).rule == "already_paid"


@pytest.mark.asyncio
async def test_paid_income_uses_local_payment_day(ledger):
    async with async_session_factory() as db:
        assert await paid_income(db, MAY_20, MAY_20) == (300000, 1)
        assert await paid_income(db, MAY_21, MAY_21) == (120000, 1)
        assert await paid_income(db, MAY_20, MAY_21) == (420000, 2)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_financial_summary(ledger):
    async with async_session_factory() as db:
        summary = await financial_summary(db, date(2025, 5, 1), date(2025, 5, 31))
    assert summary == {
        "total_income": 420000,
        "total_expense": 80000,
        "profit": 340000,
        "transaction_count": 2,
    }


@pytest.mark.asyncio
async def test_daily_income(ledger):
    async with async_session_factory() as db:
        rows = await daily_income(db, date(2025, 5, 1), date(2025, 5, 31))
    assert rows == [{"date": "2025-05-20", "amount": 300000}, {"date": "2025-05-21", "amount": 120000}]


@pytest.mark.asyncio
async def test_income_by_field(ledger):
    async with async_session_factory() as db:
        rows = await income_by_field(db, date(2025, 5, 1), date(2025, 5, 31))
    assert rows == [
        {"field_name": "Lapangan A", "amount": 300000, "count": 1},
        {"field_name": "Lapangan B", "amount": 120000, "count": 1},
    ]


@pytest.mark.asyncio
async def test_expenses_by_category(ledger):
    async with async_session_factory() as db:
        rows = await expenses_by_category(db, date(2025, 5, 1), date(2025, 5, 31))
    assert rows == [{"category": "Utilities", "amount": 70000}, {"category": "Other", "amount": 10000}]


@pytest.mark.asyncio
async def test_dashboard_stats(ledger):
    # 10:00 WIB on the 21st
    now = datetime(2025, 5, 21, 3, 0, tzinfo=UTC)
    async with async_session_factory() as db:
        stats = await dashboard_stats(db, now)
    assert stats == {
        "today_bookings": 2,
        "pending_bookings": 0,
        "confirmed_bookings": 4,
        "active_fields": 2,
        "today_income": 120000,
    }
