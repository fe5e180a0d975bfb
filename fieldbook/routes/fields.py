"""Field routes: public catalogue and availability grid, staff management."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_staff
from fieldbook.models.booking import Booking
from fieldbook.models.field import Field
from fieldbook.models.user import User
from fieldbook.schemas import FieldAvailabilityOut, FieldCreate, FieldOut, FieldUpdate, SlotOut
from fieldbook.services.availability import (
    OperatingHours,
    booked_hour_labels,
    build_slot_grid,
    get_booked_intervals,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fields", tags=["fields"])


async def _get_field(db: AsyncSession, field_id: int) -> Field:
    result = await db.execute(select(Field).where(Field.id == field_id))
    field = result.scalar_one_or_none()
    if field is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
    return field


# ---------------------------------------------------------------------------
# Public endpoints (reservation form)
# ---------------------------------------------------------------------------


@router.get("", response_model=list[FieldOut])
async def list_active_fields(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Field).where(Field.is_active.is_(True)).order_by(Field.name))
    return result.scalars().all()


@router.get("/{field_id}/availability", response_model=FieldAvailabilityOut)
async def get_field_availability(
    field_id: int,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    db: AsyncSession = Depends(get_db),
):
    """Hour grid for a field on a day, plus the hour labels already taken.

    Past hours are included with is_available=False so the form can render a
    complete day.
    """
    result = await db.execute(select(Field).where(Field.id == field_id, Field.is_active.is_(True)))
    field = result.scalar_one_or_none()
    if field is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")

    intervals = await get_booked_intervals(db, field.id, query_date)
    slots = build_slot_grid(OperatingHours.from_settings(), query_date, intervals)

    return FieldAvailabilityOut(
        field_id=field.id,
        field_name=field.name,
        date=query_date,
        booked_hours=sorted(booked_hour_labels(intervals)),
        slots=[SlotOut(**s) for s in slots],
    )


# ---------------------------------------------------------------------------
# Staff endpoints
# ---------------------------------------------------------------------------


@router.get("/all", response_model=list[FieldOut])
async def list_all_fields(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Field).order_by(Field.name))
    return result.scalars().all()


@router.get("/{field_id}", response_model=FieldOut)
async def get_field(field_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    return await _get_field(db, field_id)


@router.post("", response_model=FieldOut, status_code=status.HTTP_201_CREATED)
async def create_field(body: FieldCreate, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    field = Field(**body.model_dump())
    db.add(field)
    await db.flush()
    logger.info("Field %s created by user %s", field.id, user.id)
    return field


@router.patch("/{field_id}", response_model=FieldOut)
async def update_field(
    field_id: int,
    body: FieldUpdate,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    field = await _get_field(db, field_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(field, key, value)
    await db.flush()
    return field


@router.post("/{field_id}/toggle", response_model=FieldOut)
async def toggle_field(field_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    field = await _get_field(db, field_id)
    field.is_active = not field.is_active
    await db.flush()
    logger.info("Field %s %s by user %s", field.id, "activated" if field.is_active else "deactivated", user.id)
    return field


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field(field_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    """Delete a field that has never been booked. Booked fields can only be deactivated."""
    field = await _get_field(db, field_id)

    result = await db.execute(select(func.count(Booking.id)).where(Booking.field_id == field.id))
    if result.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a field that has bookings. Deactivate it instead.",
        )

    await db.delete(field)
