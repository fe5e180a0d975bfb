"""Booking rules and the violation taxonomy.

Business-rule failures are values, not raised exceptions: every rule returns
a violation or None, and the core operations return a violation instead of a
result. Routes translate violations into HTTP errors. Only infrastructure
failures (the database going away) are raised.

Violation kinds:
    ValidationError  malformed or impossible input; fix the input
    ConflictError    the slot is taken; choose another slot
    StateError       illegal status change or cancellation outside the window
"""

import math
import re
from datetime import time

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class BookingViolation(Exception):
    """A business rule that rejected the request.

    `rule` names the rule that fired, `message` is human readable, and
    `detail` carries whatever the caller needs to render a specific message
    (the conflicting range, the legal next statuses, ...).
    """

    def __init__(self, rule: str, message: str, **detail):
        self.rule = rule
        self.message = message
        self.detail = detail
        super().__init__(message)

    def as_dict(self) -> dict:
        return {"rule": self.rule, "message": self.message, **self.detail}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule}: {self.message}>"


class ValidationError(BookingViolation):
    pass


class ConflictError(BookingViolation):
    pass


class StateError(BookingViolation):
    pass


# ---------------------------------------------------------------------------
# Wall-clock handling
# ---------------------------------------------------------------------------


def parse_clock(value: str) -> time:
    """Parse a zero-padded 24-hour "HH:MM" string. Raises ValueError otherwise."""
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def calc_duration_hours(start_time: time, end_time: time) -> int:
    """Whole hours charged for a range: partial hours round up."""
    return math.ceil((minute_of_day(end_time) - minute_of_day(start_time)) / 60)


# ---------------------------------------------------------------------------
# Input rules
# ---------------------------------------------------------------------------


def check_clock(name: str, value: str | time) -> ValidationError | None:
    if isinstance(value, time):
        if value.second or value.microsecond:
            return ValidationError("time_format", f"{name} must be a whole minute (HH:MM).", field=name)
        return None
    try:
        parse_clock(value)
    except ValueError:
        return ValidationError("time_format", f"{name} must be in HH:MM format.", field=name)
    return None


def check_time_order(start_time: time, end_time: time) -> ValidationError | None:
    """end must be strictly after start, on the same day."""
    if start_time >= end_time:
        return ValidationError(
            "time_order",
            "End time must be after start time.",
            start_time=format_clock(start_time),
            end_time=format_clock(end_time),
        )
    return None


def check_customer_name(customer_name: str | None, max_length: int) -> ValidationError | None:
    if not customer_name or not customer_name.strip():
        return ValidationError("customer_name", "Customer name is required.")
    if len(customer_name.strip()) > max_length:
        return ValidationError(
            "customer_name", f"Customer name must be at most {max_length} characters.", max_length=max_length
        )
    return None


def check_customer_phone(customer_phone: str | None, max_length: int) -> ValidationError | None:
    if customer_phone and len(customer_phone.strip()) > max_length:
        return ValidationError(
            "customer_phone", f"Phone number must be at most {max_length} characters.", max_length=max_length
        )
    return None
