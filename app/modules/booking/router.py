"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.modules.booking.schemas import (
    BookingCancelRequest,
    BookingCreate,
    BookingHistoryRead,
    BookingRead,
    BookingStatusUpdate,
)
from app.modules.booking.service import BookingService, get_booking_service
from app.modules.identity.service import get_current_actor, require_admin
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(get_current_actor),
) -> BookingRead:
    """Book an available slot."""
    booking = await service.create_booking(payload, current_actor)
    return BookingRead.model_validate(booking)


@router.get("/my", response_model=Page[BookingRead])
async def list_my_bookings(
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(get_current_actor),
) -> Page[BookingRead]:
    """List bookings for current actor."""
    items, total = await service.list_bookings(current_actor, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(get_current_actor),
) -> BookingRead:
    booking = await service.get_booking(booking_id, current_actor)
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}/history", response_model=list[BookingHistoryRead])
async def get_booking_history(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(get_current_actor),
) -> list[BookingHistoryRead]:
    """Return booking change log."""
    entries = await service.get_history(booking_id, current_actor)
    return [BookingHistoryRead.model_validate(entry) for entry in entries]


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: UUID,
    payload: BookingCancelRequest,
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(get_current_actor),
) -> BookingRead:
    """Cancel booking and free its slot."""
    booking = await service.cancel_booking(booking_id, payload, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/status", response_model=BookingRead)
async def update_booking_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
    current_actor=Depends(require_admin),
) -> BookingRead:
    """Move booking along its status graph (admin)."""
    booking = await service.update_status(booking_id, payload, current_actor)
    return BookingRead.model_validate(booking)
