"""Financial and dashboard aggregation.

Income counts PAID transactions by the local day they were paid on;
expenses count by their own civil date.
"""

from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.models.booking import Booking, BookingStatus
from fieldbook.models.expense import Expense
from fieldbook.models.field import Field
from fieldbook.models.transaction import Transaction
from fieldbook.services.civil_day import civil_date_key, today
from fieldbook.services.payments import paid_between, paid_income

UNCATEGORISED = "Other"


async def total_expenses(db: AsyncSession, start_day: date, end_day: date) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.expense_date >= start_day,
            Expense.expense_date <= end_day,
        )
    )
    return int(result.scalar_one())


async def financial_summary(db: AsyncSession, start_day: date, end_day: date) -> dict:
    income, count = await paid_income(db, start_day, end_day)
    expense = await total_expenses(db, start_day, end_day)
    return {
        "total_income": income,
        "total_expense": expense,
        "profit": income - expense,
        "transaction_count": count,
    }


async def daily_income(db: AsyncSession, start_day: date, end_day: date) -> list[dict]:
    """Paid income per local day, ascending. Days without income are omitted."""
    result = await db.execute(select(Transaction.amount, Transaction.paid_at).where(*paid_between(start_day, end_day)))
    per_day: dict[str, int] = defaultdict(int)
    for amount, paid_at in result.all():
        per_day[civil_date_key(paid_at)] += amount
    return [{"date": key, "amount": per_day[key]} for key in sorted(per_day)]


async def income_by_field(db: AsyncSession, start_day: date, end_day: date) -> list[dict]:
    """Paid income per field, largest first."""
    result = await db.execute(
        select(Field.name, func.sum(Transaction.amount), func.count(Transaction.id))
        .join(Booking, Transaction.booking_id == Booking.id)
        .join(Field, Booking.field_id == Field.id)
        .where(*paid_between(start_day, end_day))
        .group_by(Field.id, Field.name)
    )
    rows = [{"field_name": name, "amount": int(amount), "count": int(count)} for name, amount, count in result.all()]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)


async def expenses_by_category(db: AsyncSession, start_day: date, end_day: date) -> list[dict]:
    """Expense totals per category, largest first. Uncategorised rows go to "Other"."""
    result = await db.execute(
        select(Expense.category, Expense.amount).where(
            Expense.expense_date >= start_day,
            Expense.expense_date <= end_day,
        )
    )
    per_category: dict[str, int] = defaultdict(int)
    for category, amount in result.all():
        per_category[category or UNCATEGORISED] += amount
    rows = [{"category": c, "amount": a} for c, a in per_category.items()]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)


async def dashboard_stats(db: AsyncSession, now: datetime | None = None) -> dict:
    day = today(now)

    async def _count(*criteria) -> int:
        result = await db.execute(select(func.count(Booking.id)).where(*criteria))
        return int(result.scalar_one())

    active_fields = await db.execute(select(func.count(Field.id)).where(Field.is_active.is_(True)))
    income, _ = await paid_income(db, day, day)
    return {
        "today_bookings": await _count(Booking.booking_date == day),
        "pending_bookings": await _count(Booking.status == BookingStatus.PENDING),
        "confirmed_bookings": await _count(Booking.status == BookingStatus.CONFIRMED),
        "active_fields": int(active_fields.scalar_one()),
        "today_income": income,
    }
