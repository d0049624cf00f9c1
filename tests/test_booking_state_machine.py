from __future__ import annotations

import re

import pytest

from app.core.enums import BookingStatusEnum
from app.modules.booking.reference import generate_booking_reference
from app.modules.booking.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    ensure_transition,
)
from app.shared.exceptions import AlreadyTerminalException, InvalidTransitionException


@pytest.mark.parametrize(
    ("from_status", "to_status"),
    [
        (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED),
        (BookingStatusEnum.PENDING, BookingStatusEnum.CANCELLED),
        (BookingStatusEnum.CONFIRMED, BookingStatusEnum.IN_PROGRESS),
        (BookingStatusEnum.CONFIRMED, BookingStatusEnum.CANCELLED),
        (BookingStatusEnum.CONFIRMED, BookingStatusEnum.NO_SHOW),
        (BookingStatusEnum.IN_PROGRESS, BookingStatusEnum.COMPLETED),
        (BookingStatusEnum.IN_PROGRESS, BookingStatusEnum.CANCELLED),
    ],
)
def test_permitted_edges_pass(from_status: BookingStatusEnum, to_status: BookingStatusEnum) -> None:
    assert can_transition(from_status, to_status)
    ensure_transition(from_status, to_status)


def test_terminal_statuses_have_no_outgoing_edges() -> None:
    for status in TERMINAL_STATUSES:
        assert ALLOWED_TRANSITIONS[status] == frozenset()


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_leaving_terminal_status_reports_already_terminal(terminal: BookingStatusEnum) -> None:
    with pytest.raises(AlreadyTerminalException) as exc:
        ensure_transition(terminal, BookingStatusEnum.CONFIRMED)
    assert exc.value.reason == "booking_terminal"


def test_skipping_a_step_is_invalid_transition() -> None:
    with pytest.raises(InvalidTransitionException) as exc:
        ensure_transition(BookingStatusEnum.CONFIRMED, BookingStatusEnum.COMPLETED)
    assert exc.value.status_code == 422
    assert exc.value.reason == "transition_not_allowed"


def test_booking_reference_format() -> None:
    references = {generate_booking_reference("L4D") for _ in range(50)}

    assert all(re.fullmatch(r"L4D-[A-Z0-9]{8}", reference) for reference in references)
    assert len(references) > 1
