"""Transaction routes: record how a booking is paid, then mark it paid."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_staff
from fieldbook.core.errors import raise_for_violation
from fieldbook.models.booking import Booking
from fieldbook.models.transaction import PaymentStatus, Transaction
from fieldbook.models.user import User
from fieldbook.schemas import TransactionCreate, TransactionOut
from fieldbook.services.booking_rules import BookingViolation
from fieldbook.services.civil_day import end_of_civil_day_instant, start_of_civil_day_instant, today
from fieldbook.services.payments import create_transaction, mark_paid, paid_income

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _with_booking(stmt):
    # populate_existing so rows already in the session still get their booking loaded
    return stmt.options(selectinload(Transaction.booking).selectinload(Booking.field)).execution_options(
        populate_existing=True
    )


async def _get_transaction(db: AsyncSession, transaction_id: int, for_update: bool = False) -> Transaction:
    stmt = _with_booking(select(Transaction).where(Transaction.id == transaction_id))
    if for_update:
        stmt = stmt.with_for_update(of=Transaction)
    result = await db.execute(stmt)
    txn = result.scalar_one_or_none()
    if txn is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return txn


@router.get("", response_model=list[TransactionOut])
async def list_transactions(
    payment_status: PaymentStatus | None = Query(None, alias="status"),
    date_from: date | None = None,
    date_to: date | None = None,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Transactions newest first. Date filters apply to the local day they were recorded on."""
    stmt = _with_booking(select(Transaction))
    if payment_status is not None:
        stmt = stmt.where(Transaction.payment_status == payment_status)
    if date_from is not None:
        stmt = stmt.where(Transaction.created_at >= start_of_civil_day_instant(date_from))
    if date_to is not None:
        stmt = stmt.where(Transaction.created_at <= end_of_civil_day_instant(date_to))

    result = await db.execute(stmt.order_by(Transaction.created_at.desc()))
    return result.scalars().all()


@router.get("/income/today")
async def today_income(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    day = today()
    total, count = await paid_income(db, day, day)
    return {"date": day.isoformat(), "total": total, "count": count}


@router.get("/{transaction_id}", response_model=TransactionOut)
async def get_transaction(
    transaction_id: int,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await _get_transaction(db, transaction_id)


@router.post("", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    body: TransactionCreate,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Booking).where(Booking.id == body.booking_id).with_for_update())
    booking = result.scalar_one_or_none()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    outcome = await create_transaction(db, booking, body.amount, body.payment_method, body.notes)
    if isinstance(outcome, BookingViolation):
        raise_for_violation(outcome)

    logger.info("Transaction %s recorded for booking %s by user %s", outcome.id, booking.id, user.id)
    return await _get_transaction(db, outcome.id)


@router.post("/{transaction_id}/pay", response_model=TransactionOut)
async def pay_transaction(
    transaction_id: int,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    txn = await _get_transaction(db, transaction_id, for_update=True)
    violation = mark_paid(txn)
    if violation:
        raise_for_violation(violation)
    await db.flush()
    logger.info("Transaction %s marked paid by user %s", txn.id, user.id)
    return txn
