"""Booking status state machine.

Valid transitions:
    PENDING   -> CONFIRMED  (confirm)
    PENDING   -> CANCELLED  (cancel)
    CONFIRMED -> COMPLETED  (complete)
    CONFIRMED -> CANCELLED  (cancel)
CANCELLED and COMPLETED are terminal.

TRANSITIONS is the single source of truth. Both the legality check and the
dashboard action list (STATUS_ACTIONS) are derived from it.
"""

from dataclasses import dataclass

from fieldbook.models.booking import BookingStatus
from fieldbook.services.booking_rules import StateError


@dataclass(frozen=True)
class Transition:
    source: BookingStatus
    target: BookingStatus
    action: str
    label: str
    variant: str  # button style hint: default | destructive | outline


TRANSITIONS: tuple[Transition, ...] = (
    Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED, "confirm", "Confirm", "default"),
    Transition(BookingStatus.PENDING, BookingStatus.CANCELLED, "cancel", "Cancel", "destructive"),
    Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED, "complete", "Complete", "default"),
    Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, "cancel", "Cancel", "destructive"),
)

TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})

STATUS_LABELS = {
    BookingStatus.PENDING: "Awaiting confirmation",
    BookingStatus.CONFIRMED: "Confirmed",
    BookingStatus.CANCELLED: "Cancelled",
    BookingStatus.COMPLETED: "Completed",
}


def _find(source: BookingStatus, target: BookingStatus) -> Transition | None:
    return next((t for t in TRANSITIONS if t.source == source and t.target == target), None)


def can_transition(source: BookingStatus, target: BookingStatus) -> bool:
    return _find(source, target) is not None


def valid_next_statuses(current: BookingStatus) -> list[BookingStatus]:
    return [t.target for t in TRANSITIONS if t.source == current]


def transition_action(source: BookingStatus, target: BookingStatus) -> str | None:
    transition = _find(source, target)
    return transition.action if transition else None


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def validate_transition(source: BookingStatus, target: BookingStatus) -> StateError | None:
    """Return a StateError if source -> target is not allowed, else None."""
    if source == target:
        return StateError("status_unchanged", f"Status is already {source.value}.", status=source.value)

    if is_terminal(source):
        return StateError(
            "status_final",
            f"Cannot change status from {source.value}: booking already final.",
            status=source.value,
            allowed=[],
        )

    if not can_transition(source, target):
        allowed = [s.value for s in valid_next_statuses(source)]
        return StateError(
            "invalid_transition",
            f"Transition from {source.value} to {target.value} is not allowed. "
            f"Allowed next statuses: {', '.join(allowed)}.",
            status=source.value,
            allowed=allowed,
        )

    return None


def _build_status_actions() -> dict[BookingStatus, dict]:
    return {
        status: {
            "label": STATUS_LABELS[status],
            "next_actions": [
                {"status": t.target, "action": t.action, "label": t.label, "variant": t.variant}
                for t in TRANSITIONS
                if t.source == status
            ],
        }
        for status in BookingStatus
    }


STATUS_ACTIONS = _build_status_actions()
