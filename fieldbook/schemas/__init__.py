"""Pydantic schemas for API serialisation."""

from datetime import date, datetime, time
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator

from fieldbook.models.booking import CUSTOMER_NAME_LENGTH, CUSTOMER_PHONE_LENGTH, BookingSource, BookingStatus
from fieldbook.models.transaction import PaymentMethod, PaymentStatus
from fieldbook.models.user import UserRole


# Wall-clock times go over the wire as "HH:MM"
Clock = Annotated[time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json")]


def _not_null(value):
    # PATCH bodies may omit a key, but an explicit null would clear a required column
    if value is None:
        raise ValueError("must not be null")
    return value


# --- Auth ---


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: UserRole


# --- Fields ---


class FieldCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    price_per_hour: int = Field(gt=0)
    is_active: bool = True


class FieldUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    price_per_hour: int | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @field_validator("name", "price_per_hour", "is_active")
    @classmethod
    def required_columns_not_null(cls, value):
        return _not_null(value)


class FieldOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    price_per_hour: int
    is_active: bool


# --- Availability ---


class SlotOut(BaseModel):
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    is_available: bool


class FieldAvailabilityOut(BaseModel):
    field_id: int
    field_name: str
    date: date
    booked_hours: list[str]
    slots: list[SlotOut]


# --- Transactions ---


class TransactionCreate(BaseModel):
    booking_id: int
    amount: int = Field(gt=0)
    payment_method: PaymentMethod
    notes: str | None = None


class TransactionBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    paid_at: datetime | None


class BookingBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    booking_date: date
    start_time: Clock
    end_time: Clock
    status: BookingStatus
    field: FieldOut


class TransactionOut(TransactionBrief):
    booking_id: int
    notes: str | None
    created_at: datetime
    booking: BookingBrief


# --- Bookings ---


class BookingCreate(BaseModel):
    field_id: int
    booking_date: date
    start_time: str  # "HH:MM", validated by the admission rules
    end_time: str
    customer_name: str = Field(max_length=CUSTOMER_NAME_LENGTH)
    customer_phone: str | None = Field(default=None, max_length=CUSTOMER_PHONE_LENGTH)
    notes: str | None = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    field_id: int
    field: FieldOut
    customer_name: str
    customer_phone: str | None
    booking_date: date
    start_time: Clock
    end_time: Clock
    duration_hours: int
    total_price: int
    status: BookingStatus
    source: BookingSource
    notes: str | None
    created_at: datetime
    transaction: TransactionBrief | None


class StatusUpdate(BaseModel):
    status: BookingStatus


class NextActionOut(BaseModel):
    status: BookingStatus
    action: str
    label: str
    variant: str


class BookingActionsOut(BaseModel):
    booking_id: int
    status: BookingStatus
    label: str
    next_actions: list[NextActionOut]
    can_cancel: bool
    cancel_blocked_reason: str | None = None


class BookingStatsOut(BaseModel):
    today_bookings: int
    pending_bookings: int
    confirmed_bookings: int
    active_fields: int
    today_income: int


# --- Time slot categories ---


class TimeSlotIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start_time: str  # "HH:MM"
    end_time: str
    sort_order: int | None = None


class TimeSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_time: Clock
    end_time: Clock
    sort_order: int
    is_active: bool


# --- Expenses ---


class ExpenseCreate(BaseModel):
    expense_date: date
    amount: int = Field(gt=0)
    description: str = Field(min_length=1)
    category: str | None = Field(default=None, max_length=100)


class ExpenseUpdate(BaseModel):
    expense_date: date | None = None
    amount: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, max_length=100)

    @field_validator("expense_date", "amount", "description")
    @classmethod
    def required_columns_not_null(cls, value):
        return _not_null(value)


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    expense_date: date
    amount: int
    description: str
    category: str | None
    created_at: datetime


# --- Reports ---


class FinancialSummaryOut(BaseModel):
    date_from: date
    date_to: date
    total_income: int
    total_expense: int
    profit: int
    transaction_count: int


class DailyIncomeOut(BaseModel):
    date: str
    amount: int


class FieldIncomeOut(BaseModel):
    field_name: str
    amount: int
    count: int


class CategoryExpenseOut(BaseModel):
    category: str
    amount: int
