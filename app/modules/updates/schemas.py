"""Booking status polling schemas."""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel

from app.core.enums import BookingStatusEnum, RescheduleStatusEnum, SlotStatusEnum


class SlotSummaryRead(BaseModel):
    """Slot as shown to the customer."""

    id: UUID
    date: date
    start_time: time
    status: SlotStatusEnum
    formatted_date: str
    formatted_time: str


class RescheduleUpdateRead(BaseModel):
    """Latest reschedule request of a booking, with expiry applied."""

    id: UUID
    status: RescheduleStatusEnum
    requested_at: datetime
    expires_at: datetime
    responded_at: datetime | None
    admin_notes: str | None
    requested_slot: SlotSummaryRead | None


class BookingUpdateRead(BaseModel):
    """Current state of one booking for the polling client."""

    booking_id: UUID
    booking_reference: str
    status: BookingStatusEnum
    last_status_change: datetime
    status_change_reason: str | None
    reschedule_count: int
    current_slot: SlotSummaryRead | None
    reschedule_request: RescheduleUpdateRead | None
    has_changed: bool


class UpdatesSummaryRead(BaseModel):
    total_bookings_checked: int
    bookings_with_updates: int
    pending_reschedule_requests: int
    since: datetime | None


class BookingUpdatesRead(BaseModel):
    """Polling response."""

    updates: list[BookingUpdateRead]
    summary: UpdatesSummaryRead
