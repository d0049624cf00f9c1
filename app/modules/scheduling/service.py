"""Scheduling business logic layer."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import SlotStatusEnum
from app.modules.identity.schemas import Actor
from app.modules.scheduling.models import TimeSlot
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import SlotCreate
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException


class SchedulingService:
    """Read side of the slot store plus slot generation."""

    def __init__(self, repository: SchedulingRepository) -> None:
        self.repository = repository

    async def create_slot(self, payload: SlotCreate, actor: Actor) -> TimeSlot:
        """Create an available slot (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can create slots")
        if payload.end_time <= payload.start_time:
            raise BusinessRuleException("Slot end_time must be after start_time")
        return await self.repository.create_slot(payload.slot_date, payload.start_time, payload.end_time)

    async def list_available(self, date_from: date, date_to: date) -> list[TimeSlot]:
        """List available slots in the inclusive date range, by date then start time."""
        if date_to < date_from:
            raise BusinessRuleException("date_to must not be before date_from")
        return await self.repository.list_available_slots(date_from, date_to)

    async def get_status(self, slot_id: UUID) -> SlotStatusEnum:
        """Return current status of a slot."""
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Slot not found")
        return slot.status


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(SchedulingRepository(session))
