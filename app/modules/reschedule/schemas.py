"""Reschedule schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import RescheduleDecisionEnum, RescheduleStatusEnum
from app.modules.booking.schemas import BookingRead
from app.modules.reschedule.expiry import effective_status
from app.modules.reschedule.models import RescheduleRequest


class RescheduleRequestCreate(BaseModel):
    """Customer reschedule request."""

    booking_id: UUID
    requested_slot_id: UUID
    reason: str | None = Field(default=None, max_length=512)


class RescheduleDecisionRequest(BaseModel):
    """Admin decision payload."""

    decision: RescheduleDecisionEnum
    admin_notes: str | None = Field(default=None, max_length=2000)


class RescheduleRequestRead(BaseModel):
    """Reschedule request response schema with expiry applied."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    customer_id: UUID
    original_slot_id: UUID
    requested_slot_id: UUID
    reason: str | None
    status: RescheduleStatusEnum
    requested_at: datetime
    expires_at: datetime
    admin_notes: str | None
    admin_id: UUID | None
    responded_at: datetime | None

    @classmethod
    def from_request(cls, request: RescheduleRequest, now: datetime) -> "RescheduleRequestRead":
        read = cls.model_validate(request)
        return read.model_copy(update={"status": effective_status(request, now)})


class RescheduleDecisionRead(BaseModel):
    """Outcome of an admin decision."""

    request: RescheduleRequestRead
    booking: BookingRead
