"""Scheduling API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.identity.service import get_current_actor
from app.modules.scheduling.schemas import SlotCreate, SlotRead, SlotStatusRead
from app.modules.scheduling.service import SchedulingService, get_scheduling_service

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.post("/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: SlotCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    current_actor=Depends(get_current_actor),
) -> SlotRead:
    """Create time slot."""
    slot = await service.create_slot(payload, current_actor)
    return SlotRead.model_validate(slot)


@router.get("/slots/available", response_model=list[SlotRead])
async def list_available_slots(
    date_from: date = Query(),
    date_to: date = Query(),
    service: SchedulingService = Depends(get_scheduling_service),
) -> list[SlotRead]:
    """List available slots in a date range."""
    items = await service.list_available(date_from, date_to)
    return [SlotRead.model_validate(item) for item in items]


@router.get("/slots/{slot_id}/status", response_model=SlotStatusRead)
async def get_slot_status(
    slot_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
) -> SlotStatusRead:
    """Return current slot status."""
    return SlotStatusRead(slot_id=slot_id, status=await service.get_status(slot_id))
