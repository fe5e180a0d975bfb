"""Payment records for bookings.

Staff annotate a booking with how it is being paid and flip it to paid once
the money is in. One transaction per booking, never for a cancelled booking,
and paid is final.
"""

from datetime import UTC, date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.models.booking import Booking, BookingStatus
from fieldbook.models.transaction import PaymentMethod, PaymentStatus, Transaction
from fieldbook.services.booking_rules import BookingViolation, StateError
from fieldbook.services.civil_day import end_of_civil_day_instant, start_of_civil_day_instant


def check_can_record_payment(booking: Booking, existing: Transaction | None) -> StateError | None:
    if existing is not None:
        return StateError("transaction_exists", "Booking already has a transaction.", transaction_id=existing.id)
    if booking.status == BookingStatus.CANCELLED:
        return StateError("booking_cancelled", "Cannot record a payment for a cancelled booking.")
    return None


async def create_transaction(
    db: AsyncSession,
    booking: Booking,
    amount: int,
    payment_method: PaymentMethod,
    notes: str | None = None,
) -> Transaction | BookingViolation:
    """Record an unpaid transaction for the booking."""
    existing_result = await db.execute(select(Transaction).where(Transaction.booking_id == booking.id))
    violation = check_can_record_payment(booking, existing_result.scalar_one_or_none())
    if violation:
        return violation

    txn = Transaction(
        booking_id=booking.id,
        amount=amount,
        payment_method=payment_method,
        payment_status=PaymentStatus.UNPAID,
        notes=notes,
    )
    db.add(txn)
    await db.flush()
    return txn


def mark_paid(txn: Transaction, now: datetime | None = None) -> StateError | None:
    """UNPAID -> PAID. There is no way back."""
    if txn.payment_status == PaymentStatus.PAID:
        return StateError("already_paid", "Transaction is already paid.")
    txn.payment_status = PaymentStatus.PAID
    txn.paid_at = now or datetime.now(UTC)
    return None


def paid_between(start_day: date, end_day: date):
    """WHERE clause for transactions paid on any local day in [start_day, end_day]."""
    return (
        Transaction.payment_status == PaymentStatus.PAID,
        Transaction.paid_at >= start_of_civil_day_instant(start_day),
        Transaction.paid_at <= end_of_civil_day_instant(end_day),
    )


async def paid_income(db: AsyncSession, start_day: date, end_day: date) -> tuple[int, int]:
    """(total amount, transaction count) paid within the local-day range."""
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0), func.count(Transaction.id)).where(
            *paid_between(start_day, end_day)
        )
    )
    total, count = result.one()
    return int(total), int(count)
