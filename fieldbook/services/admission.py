"""Booking admission: the only way a booking gets created.

Check-then-insert must be atomic per (field, day), otherwise two requests
for the same slot can both pass the availability check and both insert.
Three layers make it so:

1. An in-process asyncio.Lock per (field_id, day) key serialises admissions
   handled by this worker process.
2. A dedicated session runs the re-check and the insert in one transaction,
   SERIALIZABLE on PostgreSQL, after locking the field row with
   SELECT ... FOR UPDATE. Concurrent admissions for the field in other
   processes queue on that row lock and see the winner's insert.
3. The partial unique index ix_bookings_no_double rejects two active
   bookings starting at the same time on the same field/day.

A serialization failure is retried once; a second one, or the unique index
firing, is reported as a ConflictError. The notification is published only
after the transaction has committed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from weakref import WeakValueDictionary

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldbook.core.database import async_session_factory
from fieldbook.models.booking import (
    CUSTOMER_NAME_LENGTH,
    CUSTOMER_PHONE_LENGTH,
    Booking,
    BookingSource,
    BookingStatus,
)
from fieldbook.models.field import Field
from fieldbook.services.availability import find_conflict
from fieldbook.services.booking_rules import (
    BookingViolation,
    ConflictError,
    ValidationError,
    calc_duration_hours,
    check_clock,
    check_customer_name,
    check_customer_phone,
    check_time_order,
    format_clock,
    parse_clock,
)
from fieldbook.services.civil_day import to_civil_day
from fieldbook.services.notifications import publish_booking_created

logger = logging.getLogger(__name__)

# The only legal initial statuses, and which path uses each
INITIAL_STATUSES = {
    BookingStatus.PENDING: BookingSource.PUBLIC,
    BookingStatus.CONFIRMED: BookingSource.STAFF,
}

MAX_ATTEMPTS = 2

_SERIALIZATION_SQLSTATES = {"40001", "40P01"}

_key_locks: "WeakValueDictionary[tuple[int, date], asyncio.Lock]" = WeakValueDictionary()


@dataclass
class BookingRequest:
    field_id: int
    booking_date: date | datetime
    start_time: str | time
    end_time: str | time
    customer_name: str
    customer_phone: str | None = None
    notes: str | None = None


def _key_lock(field_id: int, day: date) -> asyncio.Lock:
    # Locks disappear once no admission holds a reference to them
    lock = _key_locks.get((field_id, day))
    if lock is None:
        lock = asyncio.Lock()
        _key_locks[(field_id, day)] = lock
    return lock


def _is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _SERIALIZATION_SQLSTATES:
        return True
    return "database is locked" in str(orig)


def _slot_taken(start_time: time, end_time: time, conflict: Booking | None = None) -> ConflictError:
    detail = {"start_time": format_clock(start_time), "end_time": format_clock(end_time)}
    if conflict is not None:
        detail["conflict"] = {
            "booking_id": conflict.id,
            "start_time": format_clock(conflict.start_time),
            "end_time": format_clock(conflict.end_time),
        }
    return ConflictError("slot_taken", "Slot already booked.", **detail)


def validate_request(
    request: BookingRequest, initial_status: BookingStatus
) -> tuple[time, time] | ValidationError:
    """Input checks that need no database. Returns the parsed (start, end)."""
    if initial_status not in INITIAL_STATUSES:
        return ValidationError(
            "initial_status",
            f"A booking cannot start as {initial_status.value}.",
            allowed=[s.value for s in INITIAL_STATUSES],
        )

    for name, value in (("start_time", request.start_time), ("end_time", request.end_time)):
        violation = check_clock(name, value)
        if violation:
            return violation

    start_time = request.start_time if isinstance(request.start_time, time) else parse_clock(request.start_time)
    end_time = request.end_time if isinstance(request.end_time, time) else parse_clock(request.end_time)

    violation = (
        check_time_order(start_time, end_time)
        or check_customer_name(request.customer_name, CUSTOMER_NAME_LENGTH)
        or check_customer_phone(request.customer_phone, CUSTOMER_PHONE_LENGTH)
    )
    if violation:
        return violation

    return start_time, end_time


async def _admit_once(
    session_factory: async_sessionmaker[AsyncSession],
    request: BookingRequest,
    day: date,
    start_time: time,
    end_time: time,
    initial_status: BookingStatus,
) -> tuple[Booking, Field] | BookingViolation:
    async with session_factory() as db:
        async with db.begin():
            if db.get_bind().dialect.name == "postgresql":
                await db.connection(execution_options={"isolation_level": "SERIALIZABLE"})

            field_result = await db.execute(select(Field).where(Field.id == request.field_id).with_for_update())
            field = field_result.scalar_one_or_none()
            if field is None:
                return ValidationError("field_not_found", "Field not found.", field_id=request.field_id)
            if not field.is_active:
                return ValidationError("field_inactive", "Field is not active.", field_id=request.field_id)

            conflict = await find_conflict(db, field.id, day, start_time, end_time)
            if conflict is not None:
                return _slot_taken(start_time, end_time, conflict)

            duration = calc_duration_hours(start_time, end_time)
            booking = Booking(
                field_id=field.id,
                customer_name=request.customer_name.strip(),
                customer_phone=(request.customer_phone or "").strip() or None,
                booking_date=day,
                start_time=start_time,
                end_time=end_time,
                duration_hours=duration,
                total_price=field.price_per_hour * duration,
                status=initial_status,
                source=INITIAL_STATUSES[initial_status],
                notes=(request.notes or "").strip() or None,
            )
            db.add(booking)
            await db.flush()
        return booking, field


async def admit_booking(
    request: BookingRequest,
    initial_status: BookingStatus = BookingStatus.PENDING,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> Booking | BookingViolation:
    """Create a booking if its slot is free.

    Returns the committed Booking, or a ValidationError / ConflictError.
    Database failures other than serialization conflicts are raised.
    """
    parsed = validate_request(request, initial_status)
    if isinstance(parsed, BookingViolation):
        return parsed
    start_time, end_time = parsed
    day = to_civil_day(request.booking_date)

    async with _key_lock(request.field_id, day):
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                outcome = await _admit_once(session_factory, request, day, start_time, end_time, initial_status)
            except IntegrityError:
                logger.info("Admission for field %s on %s hit the double-booking index", request.field_id, day)
                return _slot_taken(start_time, end_time)
            except DBAPIError as exc:
                if not _is_serialization_failure(exc):
                    raise
                if attempt == MAX_ATTEMPTS:
                    logger.warning("Admission for field %s on %s lost a serialization race", request.field_id, day)
                    return _slot_taken(start_time, end_time)
                logger.info("Serialization failure admitting field %s on %s, retrying", request.field_id, day)
                continue
            break

    if isinstance(outcome, BookingViolation):
        logger.info("Admission rejected (%s): %s", outcome.rule, outcome.message)
        return outcome

    booking, field = outcome
    logger.info(
        "Booking %s admitted: field %s %s %s-%s %s",
        booking.id,
        field.id,
        day,
        format_clock(start_time),
        format_clock(end_time),
        booking.status.value,
    )
    publish_booking_created(booking, field, source=booking.source.value)
    return booking
