"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import BookingStatusEnum


class BookingCreate(BaseModel):
    """Create booking request.

    ``customer_id`` is only honoured for admins booking on a customer's behalf.
    """

    slot_id: UUID
    price_pence: int = Field(ge=0)
    customer_id: UUID | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class BookingCancelRequest(BaseModel):
    """Cancel booking request."""

    reason: str | None = Field(default=None, max_length=512)


class BookingStatusUpdate(BaseModel):
    """Admin status update request."""

    status: BookingStatusEnum
    reason: str | None = Field(default=None, max_length=512)


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_reference: str
    customer_id: UUID
    slot_id: UUID
    original_slot_id: UUID
    status: BookingStatusEnum
    price_pence: int
    reschedule_count: int
    last_status_change: datetime
    status_change_reason: str | None
    details: dict[str, Any]
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingHistoryRead(BaseModel):
    """Booking history entry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    from_status: BookingStatusEnum | None
    to_status: BookingStatusEnum
    from_slot_id: UUID | None
    to_slot_id: UUID
    actor_id: UUID | None
    reason: str | None
    changed_at: datetime
