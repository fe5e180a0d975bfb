"""Time-slot category routes.

Categories only group hour buttons on the booking form. Editing them never
touches existing bookings.
"""

import logging
from datetime import time

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_owner, require_staff
from fieldbook.core.errors import raise_for_violation
from fieldbook.models.field import TimeSlot
from fieldbook.models.user import User
from fieldbook.schemas import TimeSlotIn, TimeSlotOut
from fieldbook.services.booking_rules import check_clock, check_time_order, parse_clock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timeslots", tags=["timeslots"])


def _parse_range(body: TimeSlotIn) -> tuple[time, time]:
    violation = check_clock("start_time", body.start_time) or check_clock("end_time", body.end_time)
    if violation:
        raise_for_violation(violation)
    start, end = parse_clock(body.start_time), parse_clock(body.end_time)
    violation = check_time_order(start, end)
    if violation:
        raise_for_violation(violation)
    return start, end


async def _get_slot(db: AsyncSession, slot_id: int) -> TimeSlot:
    result = await db.execute(select(TimeSlot).where(TimeSlot.id == slot_id))
    slot = result.scalar_one_or_none()
    if slot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time slot not found")
    return slot


@router.get("", response_model=list[TimeSlotOut])
async def list_active_slots(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(TimeSlot).where(TimeSlot.is_active.is_(True)).order_by(TimeSlot.sort_order, TimeSlot.start_time)
    )
    return result.scalars().all()


@router.get("/all", response_model=list[TimeSlotOut])
async def list_all_slots(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(TimeSlot).order_by(TimeSlot.sort_order, TimeSlot.start_time))
    return result.scalars().all()


@router.post("", response_model=TimeSlotOut, status_code=status.HTTP_201_CREATED)
async def create_slot(body: TimeSlotIn, user: User = Depends(require_owner), db: AsyncSession = Depends(get_db)):
    start, end = _parse_range(body)

    sort_order = body.sort_order
    if sort_order is None:
        result = await db.execute(select(func.coalesce(func.max(TimeSlot.sort_order), -1)))
        sort_order = int(result.scalar_one()) + 1

    slot = TimeSlot(name=body.name.strip(), start_time=start, end_time=end, sort_order=sort_order)
    db.add(slot)
    await db.flush()
    logger.info("Time slot %s (%s) created by user %s", slot.id, slot.name, user.id)
    return slot


@router.put("/{slot_id}", response_model=TimeSlotOut)
async def update_slot(
    slot_id: int,
    body: TimeSlotIn,
    user: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    slot = await _get_slot(db, slot_id)
    slot.start_time, slot.end_time = _parse_range(body)
    slot.name = body.name.strip()
    if body.sort_order is not None:
        slot.sort_order = body.sort_order
    await db.flush()
    return slot


@router.post("/{slot_id}/toggle", response_model=TimeSlotOut)
async def toggle_slot(slot_id: int, user: User = Depends(require_owner), db: AsyncSession = Depends(get_db)):
    slot = await _get_slot(db, slot_id)
    slot.is_active = not slot.is_active
    await db.flush()
    return slot


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(slot_id: int, user: User = Depends(require_owner), db: AsyncSession = Depends(get_db)):
    slot = await _get_slot(db, slot_id)
    await db.delete(slot)
    logger.info("Time slot %s deleted by user %s", slot_id, user.id)
