"""Seed the database with demo futsal venue data.

Run with: python -m scripts.seed
Creates the staff accounts, three fields, the time-slot categories and a
couple of bookings for today.
"""

import asyncio
from datetime import time

from sqlalchemy import select

from fieldbook.core.auth import hash_password
from fieldbook.core.database import async_session_factory, engine
from fieldbook.models import Base, Field, TimeSlot, User, UserRole
from fieldbook.models.booking import BookingStatus
from fieldbook.services.admission import BookingRequest, admit_booking
from fieldbook.services.booking_rules import BookingViolation
from fieldbook.services.civil_day import today

USERS = [
    {"email": "owner@futsal.com", "name": "Field Owner", "role": UserRole.OWNER},
    {"email": "admin@futsal.com", "name": "Booking Admin", "role": UserRole.ADMIN},
]

FIELDS = [
    {"name": "Lapangan A", "description": "Main pitch, premium synthetic turf", "price_per_hour": 150000},
    {"name": "Lapangan B", "description": "Standard synthetic turf", "price_per_hour": 120000},
    {"name": "Lapangan C", "description": "Indoor, air conditioned", "price_per_hour": 200000},
]

TIME_SLOTS = [
    {"name": "Pagi", "start_time": time(6, 0), "end_time": time(10, 0), "sort_order": 1},
    {"name": "Siang", "start_time": time(10, 0), "end_time": time(15, 0), "sort_order": 2},
    {"name": "Sore", "start_time": time(15, 0), "end_time": time(22, 0), "sort_order": 3},
]

# (field index, start, end, customer, initial status)
BOOKINGS = [
    (0, "19:00", "21:00", "Budi Santoso", BookingStatus.CONFIRMED),
    (1, "20:00", "21:00", "Andi Wijaya", BookingStatus.PENDING),
]


async def seed():
    # Create tables (in dev; production uses migrations)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(User).where(User.email == USERS[0]["email"]))
        if result.scalar_one_or_none():
            print("Database already seeded - skipping.")
            return

        for user_data in USERS:
            db.add(User(hashed_password=hash_password("password123"), **user_data))

        fields = [Field(**field_data) for field_data in FIELDS]
        db.add_all(fields)
        db.add_all(TimeSlot(**slot_data) for slot_data in TIME_SLOTS)
        await db.commit()

    # Sample bookings go through admission like any other booking
    day = today()
    admitted = 0
    for field_index, start, end, customer, initial_status in BOOKINGS:
        outcome = await admit_booking(
            BookingRequest(
                field_id=fields[field_index].id,
                booking_date=day,
                start_time=start,
                end_time=end,
                customer_name=customer,
            ),
            initial_status,
        )
        if isinstance(outcome, BookingViolation):
            print(f"  skipped booking for {customer}: {outcome.message}")
        else:
            admitted += 1

    print("Seeded FieldBook demo data")
    print(f"  {len(USERS)} staff users (password: password123)")
    print(f"  {len(FIELDS)} fields, {len(TIME_SLOTS)} time-slot categories")
    print(f"  {admitted} bookings for {day.isoformat()}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
