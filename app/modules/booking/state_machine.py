"""Booking status graph."""

from __future__ import annotations

from app.core.enums import BookingStatusEnum
from app.shared.exceptions import AlreadyTerminalException, InvalidTransitionException

ALLOWED_TRANSITIONS: dict[BookingStatusEnum, frozenset[BookingStatusEnum]] = {
    BookingStatusEnum.PENDING: frozenset({BookingStatusEnum.CONFIRMED, BookingStatusEnum.CANCELLED}),
    BookingStatusEnum.CONFIRMED: frozenset(
        {BookingStatusEnum.IN_PROGRESS, BookingStatusEnum.CANCELLED, BookingStatusEnum.NO_SHOW},
    ),
    BookingStatusEnum.IN_PROGRESS: frozenset({BookingStatusEnum.COMPLETED, BookingStatusEnum.CANCELLED}),
    BookingStatusEnum.COMPLETED: frozenset(),
    BookingStatusEnum.CANCELLED: frozenset(),
    BookingStatusEnum.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {BookingStatusEnum.COMPLETED, BookingStatusEnum.CANCELLED, BookingStatusEnum.NO_SHOW},
)


def can_transition(from_status: BookingStatusEnum, to_status: BookingStatusEnum) -> bool:
    return to_status in ALLOWED_TRANSITIONS[from_status]


def ensure_transition(from_status: BookingStatusEnum, to_status: BookingStatusEnum) -> None:
    """Raise unless ``from_status -> to_status`` is an edge of the graph."""
    if from_status in TERMINAL_STATUSES:
        raise AlreadyTerminalException(
            f"Booking is already {from_status}",
            reason="booking_terminal",
        )
    if not can_transition(from_status, to_status):
        raise InvalidTransitionException(
            f"Cannot change booking status from {from_status} to {to_status}",
            reason="transition_not_allowed",
        )
