"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """Actor roles issued by the identity provider."""

    CUSTOMER = "customer"
    ADMIN = "admin"


class SlotStatusEnum(StrEnum):
    """Time slot status. The only source of truth for slot availability."""

    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class RescheduleStatusEnum(StrEnum):
    """Reschedule request status."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class RescheduleDecisionEnum(StrEnum):
    """Admin decision on a reschedule request."""

    APPROVE = "approve"
    DECLINE = "decline"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
