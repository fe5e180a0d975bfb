"""Booking lifecycle: the state machine and the cancellation policy (pure, no DB)."""

from datetime import UTC, date, datetime, time, timedelta
from itertools import product
from types import SimpleNamespace

from fieldbook.models import BookingStatus
from fieldbook.services.booking_rules import StateError
from fieldbook.services.booking_state_machine import (
    STATUS_ACTIONS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    can_transition,
    is_terminal,
    transition_action,
    valid_next_statuses,
    validate_transition,
)
from fieldbook.services.cancellation import can_cancel
from fieldbook.services.civil_day import combine_day_and_clock

LEGAL = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED),
    (BookingStatus.PENDING, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
}


class TestStateMachine:
    def test_closure_over_every_pair(self):
        for source, target in product(BookingStatus, repeat=2):
            violation = validate_transition(source, target)
            if (source, target) in LEGAL:
                assert violation is None, (source, target)
            else:
                assert isinstance(violation, StateError), (source, target)

    def test_unchanged_status(self):
        violation = validate_transition(BookingStatus.PENDING, BookingStatus.PENDING)
        assert violation.rule == "status_unchanged"

    def test_terminal_statuses_are_final(self):
        for source in TERMINAL_STATUSES:
            for target in BookingStatus:
                if target == source:
                    continue
                violation = validate_transition(source, target)
                assert violation.rule == "status_final"
                assert violation.detail["allowed"] == []

    def test_illegal_transition_lists_allowed_statuses(self):
        violation = validate_transition(BookingStatus.PENDING, BookingStatus.COMPLETED)
        assert violation.rule == "invalid_transition"
        assert violation.detail["allowed"] == ["CONFIRMED", "CANCELLED"]
        assert "CONFIRMED, CANCELLED" in violation.message

    def test_helpers(self):
        assert can_transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
        assert not can_transition(BookingStatus.COMPLETED, BookingStatus.CONFIRMED)
        assert valid_next_statuses(BookingStatus.CONFIRMED) == [BookingStatus.COMPLETED, BookingStatus.CANCELLED]
        assert valid_next_statuses(BookingStatus.CANCELLED) == []
        assert transition_action(BookingStatus.PENDING, BookingStatus.CONFIRMED) == "confirm"
        assert transition_action(BookingStatus.PENDING, BookingStatus.COMPLETED) is None
        assert is_terminal(BookingStatus.COMPLETED)
        assert not is_terminal(BookingStatus.PENDING)

    def test_action_table_matches_transition_table(self):
        assert set(STATUS_ACTIONS) == set(BookingStatus)
        from_actions = {(source, a["status"]) for source, entry in STATUS_ACTIONS.items() for a in entry["next_actions"]}
        assert from_actions == {(t.source, t.target) for t in TRANSITIONS} == LEGAL
        for source, entry in STATUS_ACTIONS.items():
            assert [a["status"] for a in entry["next_actions"]] == valid_next_statuses(source)
            for action in entry["next_actions"]:
                assert action["action"] == transition_action(source, action["status"])

    def test_terminal_statuses_offer_no_actions(self):
        for status in TERMINAL_STATUSES:
            assert STATUS_ACTIONS[status]["next_actions"] == []


# ---------------------------------------------------------------------------
# Cancellation policy
# ---------------------------------------------------------------------------


DAY = date(2025, 5, 20)
START = time(12, 0)


def _booking(status=BookingStatus.CONFIRMED):
    return SimpleNamespace(status=status, booking_date=DAY, start_time=START)


def _minutes_before_start(minutes: int) -> datetime:
    return combine_day_and_clock(DAY, START) - timedelta(minutes=minutes)


class TestCanCancel:
    def test_181_minutes_ahead_is_allowed(self):
        assert can_cancel(_booking(), now=_minutes_before_start(181)) is None

    def test_exactly_three_hours_ahead_is_allowed(self):
        assert can_cancel(_booking(), now=_minutes_before_start(180)) is None

    def test_179_minutes_ahead_is_denied(self):
        violation = can_cancel(_booking(), now=_minutes_before_start(179))
        assert violation.rule == "cancellation_lead_time"
        assert violation.detail["lead_hours"] == 3

    def test_after_start_is_denied(self):
        violation = can_cancel(_booking(BookingStatus.PENDING), now=_minutes_before_start(-30))
        assert violation.rule == "cancellation_lead_time"

    def test_uses_local_time(self):
        # 12:00 WIB on the 20th is 05:00Z; 01:59Z is 181 minutes before it
        assert can_cancel(_booking(), now=datetime(2025, 5, 20, 1, 59, tzinfo=UTC)) is None
        assert can_cancel(_booking(), now=datetime(2025, 5, 20, 2, 1, tzinfo=UTC)) is not None

    def test_already_cancelled(self):
        violation = can_cancel(_booking(BookingStatus.CANCELLED), now=_minutes_before_start(600))
        assert violation.rule == "already_cancelled"

    def test_already_completed(self):
        violation = can_cancel(_booking(BookingStatus.COMPLETED), now=_minutes_before_start(600))
        assert violation.rule == "already_completed"

    def test_lead_time_is_configurable(self):
        assert can_cancel(_booking(), now=_minutes_before_start(90), lead_hours=1) is None
        assert can_cancel(_booking(), now=_minutes_before_start(90), lead_hours=2) is not None
