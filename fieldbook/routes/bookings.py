"""Booking routes: admission, listing, status transitions, cancellation.

Every new booking goes through the admission controller. Status changes go
through the state machine; cancellations also go through the lead-time policy.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_staff
from fieldbook.core.errors import raise_for_violation
from fieldbook.models.booking import Booking, BookingStatus
from fieldbook.models.user import User
from fieldbook.schemas import BookingActionsOut, BookingCreate, BookingOut, BookingStatsOut, StatusUpdate
from fieldbook.services.admission import BookingRequest, admit_booking
from fieldbook.services.booking_rules import BookingViolation
from fieldbook.services.booking_state_machine import STATUS_ACTIONS, validate_transition
from fieldbook.services.cancellation import can_cancel
from fieldbook.services.civil_day import today
from fieldbook.services.reports import dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _with_relations(stmt):
    return stmt.options(selectinload(Booking.field), selectinload(Booking.transaction))


async def _get_booking(db: AsyncSession, booking_id: int, for_update: bool = False) -> Booking:
    stmt = _with_relations(select(Booking).where(Booking.id == booking_id))
    if for_update:
        stmt = stmt.with_for_update(of=Booking)
    result = await db.execute(stmt)
    booking = result.scalar_one_or_none()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def _admit(body: BookingCreate, initial_status: BookingStatus, db: AsyncSession) -> Booking:
    outcome = await admit_booking(
        BookingRequest(
            field_id=body.field_id,
            booking_date=body.booking_date,
            start_time=body.start_time,
            end_time=body.end_time,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            notes=body.notes,
        ),
        initial_status,
    )
    if isinstance(outcome, BookingViolation):
        raise_for_violation(outcome)
    return await _get_booking(db, outcome.id)


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------


@router.post("/public", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_public_booking(body: BookingCreate, db: AsyncSession = Depends(get_db)):
    """Self-service reservation. Starts PENDING until staff confirm it."""
    return await _admit(body, BookingStatus.PENDING, db)


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_staff_booking(
    body: BookingCreate,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Booking entered at the desk. Skips the pending step."""
    return await _admit(body, BookingStatus.CONFIRMED, db)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("", response_model=list[BookingOut])
async def list_bookings(
    booking_date: date | None = Query(None, alias="date"),
    field_id: int | None = None,
    booking_status: BookingStatus | None = Query(None, alias="status"),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    stmt = _with_relations(select(Booking))
    if booking_date is not None:
        stmt = stmt.where(Booking.booking_date == booking_date)
    if field_id is not None:
        stmt = stmt.where(Booking.field_id == field_id)
    if booking_status is not None:
        stmt = stmt.where(Booking.status == booking_status)

    result = await db.execute(stmt.order_by(Booking.booking_date.desc(), Booking.start_time))
    return result.scalars().all()


@router.get("/today", response_model=list[BookingOut])
async def list_today_bookings(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        _with_relations(select(Booking)).where(Booking.booking_date == today()).order_by(Booking.start_time)
    )
    return result.scalars().all()


@router.get("/stats", response_model=BookingStatsOut)
async def booking_stats(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    return BookingStatsOut(**await dashboard_stats(db))


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    return await _get_booking(db, booking_id)


@router.get("/{booking_id}/actions", response_model=BookingActionsOut)
async def get_booking_actions(
    booking_id: int,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Next statuses the dashboard may offer for this booking."""
    booking = await _get_booking(db, booking_id)
    entry = STATUS_ACTIONS[booking.status]
    cancel_violation = can_cancel(booking)
    return BookingActionsOut(
        booking_id=booking.id,
        status=booking.status,
        label=entry["label"],
        next_actions=entry["next_actions"],
        can_cancel=cancel_violation is None,
        cancel_blocked_reason=cancel_violation.message if cancel_violation else None,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def _transition(db: AsyncSession, booking_id: int, target: BookingStatus, user: User) -> Booking:
    booking = await _get_booking(db, booking_id, for_update=True)

    violation: BookingViolation | None = validate_transition(booking.status, target)
    if violation is None and target == BookingStatus.CANCELLED:
        violation = can_cancel(booking)
    if violation:
        raise_for_violation(violation)

    previous = booking.status
    booking.status = target
    await db.flush()
    logger.info("Booking %s %s -> %s by user %s", booking.id, previous.value, target.value, user.id)
    return booking


@router.patch("/{booking_id}/status", response_model=BookingOut)
async def update_booking_status(
    booking_id: int,
    body: StatusUpdate,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, booking_id, body.status, user)


@router.post("/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(booking_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    return await _transition(db, booking_id, BookingStatus.CANCELLED, user)
