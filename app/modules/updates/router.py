"""Booking status polling router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.identity.service import get_current_actor
from app.modules.updates.schemas import BookingUpdatesRead
from app.modules.updates.service import UpdatesService, get_updates_service

router = APIRouter(prefix="/updates", tags=["updates"])


@router.get("/bookings", response_model=BookingUpdatesRead)
async def poll_booking_updates(
    since: datetime | None = Query(default=None),
    booking_ids: list[UUID] | None = Query(default=None),
    service: UpdatesService = Depends(get_updates_service),
    current_actor=Depends(get_current_actor),
) -> BookingUpdatesRead:
    """Poll status of own bookings."""
    return await service.poll_updates(current_actor, since, booking_ids)
