"""Scheduling repository layer."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, time
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SlotStatusEnum
from app.modules.scheduling.models import TimeSlot


class SchedulingRepository:
    """DB access for the slot store."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slot(self, slot_date: date, start_time: time, end_time: time) -> TimeSlot:
        slot = TimeSlot(
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            status=SlotStatusEnum.AVAILABLE,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> TimeSlot | None:
        stmt = select(TimeSlot).where(TimeSlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def get_slots_by_ids(self, slot_ids: Iterable[UUID]) -> dict[UUID, TimeSlot]:
        ids = set(slot_ids)
        if not ids:
            return {}
        stmt = select(TimeSlot).where(TimeSlot.id.in_(ids))
        return {slot.id: slot for slot in (await self.session.scalars(stmt)).all()}

    async def list_available_slots(self, date_from: date, date_to: date) -> list[TimeSlot]:
        stmt = (
            select(TimeSlot)
            .where(
                TimeSlot.status == SlotStatusEnum.AVAILABLE,
                TimeSlot.slot_date >= date_from,
                TimeSlot.slot_date <= date_to,
            )
            .order_by(TimeSlot.slot_date.asc(), TimeSlot.start_time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def transition_slot_status(
        self,
        slot_id: UUID,
        from_status: SlotStatusEnum,
        to_status: SlotStatusEnum,
    ) -> bool:
        """Compare-and-swap the slot status in a single conditional UPDATE.

        Returns False when the slot was not in ``from_status`` at write time.
        Concurrent writers on the same row are serialized by the row lock.
        """
        stmt = (
            update(TimeSlot)
            .where(TimeSlot.id == slot_id, TimeSlot.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
