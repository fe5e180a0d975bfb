"""Booking model.

A booking reserves one field for a contiguous [start, end) range on one
civil day. This is the core transactional entity in the system: bookings are
never deleted, only moved through the status state machine.
"""

import enum
from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import Date, Enum, ForeignKey, Index, String, Text, Time, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldbook.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from fieldbook.models.field import Field
    from fieldbook.models.transaction import Transaction


class BookingStatus(enum.StrEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that still reserve their slot
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

CUSTOMER_NAME_LENGTH = 200
CUSTOMER_PHONE_LENGTH = 50


class BookingSource(enum.StrEnum):
    PUBLIC = "PUBLIC"  # Self-service reservation form
    STAFF = "STAFF"  # Entered from the dashboard


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    field_id: Mapped[int] = mapped_column(ForeignKey("fields.id"), nullable=False)

    # Who
    customer_name: Mapped[str] = mapped_column(String(CUSTOMER_NAME_LENGTH), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(CUSTOMER_PHONE_LENGTH))

    # When (civil day in local time, wall-clock times)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_hours: Mapped[int] = mapped_column(nullable=False)

    # Price is fixed at admission
    total_price: Mapped[int] = mapped_column(nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=lambda e: [x.value for x in e]),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    source: Mapped[BookingSource] = mapped_column(
        Enum(BookingSource, name="booking_source", values_callable=lambda e: [x.value for x in e]),
        default=BookingSource.PUBLIC,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    field: Mapped["Field"] = relationship()
    transaction: Mapped["Transaction | None"] = relationship(back_populates="booking", uselist=False)

    __table_args__ = (
        # Last line of defence against double booking: two active bookings can
        # never share a start time on the same field/day. Full range overlap is
        # enforced by the admission controller.
        Index(
            "ix_bookings_no_double",
            "field_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
        # The availability query
        Index("ix_bookings_field_date", "field_id", "booking_date"),
        Index("ix_bookings_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.booking_date} {self.start_time}-{self.end_time} field={self.field_id} {self.status}>"
