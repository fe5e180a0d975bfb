"""Payment transaction model.

At most one transaction per booking. Staff record how the customer pays and
later flip it to paid; there is no gateway and no way back to unpaid.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldbook.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from fieldbook.models.booking import Booking


class PaymentMethod(enum.StrEnum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    EWALLET = "EWALLET"


class PaymentStatus(enum.StrEnum):
    UNPAID = "UNPAID"
    PAID = "PAID"


class Transaction(TimestampMixin, Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id"), unique=True, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [x.value for x in e]),
        default=PaymentStatus.UNPAID,
        nullable=False,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    booking: Mapped["Booking"] = relationship(back_populates="transaction")

    __table_args__ = (Index("ix_transactions_paid", "payment_status", "paid_at"),)

    def __repr__(self) -> str:
        return f"<Transaction {self.payment_status.value} {self.amount} booking={self.booking_id}>"
