"""All models imported here so metadata.create_all sees every table."""

from fieldbook.models.base import Base
from fieldbook.models.booking import ACTIVE_STATUSES, Booking, BookingSource, BookingStatus
from fieldbook.models.expense import Expense
from fieldbook.models.field import Field, TimeSlot
from fieldbook.models.transaction import PaymentMethod, PaymentStatus, Transaction
from fieldbook.models.user import User, UserRole

__all__ = [
    "Base",
    "Field",
    "TimeSlot",
    "Booking",
    "BookingStatus",
    "BookingSource",
    "ACTIVE_STATUSES",
    "Transaction",
    "PaymentMethod",
    "PaymentStatus",
    "Expense",
    "User",
    "UserRole",
]
