"""Scheduling schemas."""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import SlotStatusEnum


class SlotCreate(BaseModel):
    """Create time slot request."""

    slot_date: date
    start_time: time
    end_time: time


class SlotRead(BaseModel):
    """Time slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slot_date: date
    start_time: time
    end_time: time
    status: SlotStatusEnum
    created_at: datetime
    updated_at: datetime


class SlotStatusRead(BaseModel):
    """Current status of one slot."""

    slot_id: UUID
    status: SlotStatusEnum
