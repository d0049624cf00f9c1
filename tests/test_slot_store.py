from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from uuid import UUID, uuid4

import pytest

from app.core.enums import RoleEnum, SlotStatusEnum
from app.modules.identity.schemas import Actor
from app.modules.scheduling.schemas import SlotCreate
from app.modules.scheduling.service import SchedulingService
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException

ADMIN = Actor(id=uuid4(), role=RoleEnum.ADMIN)
CUSTOMER = Actor(id=uuid4(), role=RoleEnum.CUSTOMER)


@dataclass
class FakeSlot:
    id: UUID
    slot_date: date
    start_time: time
    end_time: time
    status: SlotStatusEnum = SlotStatusEnum.AVAILABLE


class FakeSchedulingRepository:
    def __init__(self, slots: list[FakeSlot] | None = None) -> None:
        self.slots = {slot.id: slot for slot in slots or []}

    async def create_slot(self, slot_date: date, start_time: time, end_time: time) -> FakeSlot:
        slot = FakeSlot(id=uuid4(), slot_date=slot_date, start_time=start_time, end_time=end_time)
        self.slots[slot.id] = slot
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> FakeSlot | None:
        return self.slots.get(slot_id)

    async def list_available_slots(self, date_from: date, date_to: date) -> list[FakeSlot]:
        return sorted(
            (
                slot
                for slot in self.slots.values()
                if slot.status == SlotStatusEnum.AVAILABLE and date_from <= slot.slot_date <= date_to
            ),
            key=lambda slot: (slot.slot_date, slot.start_time),
        )


def _slot(day: int, hour: int, status: SlotStatusEnum = SlotStatusEnum.AVAILABLE) -> FakeSlot:
    return FakeSlot(uuid4(), date(2026, 1, day), time(hour, 0), time(hour + 2, 0), status)


@pytest.mark.asyncio
async def test_available_slots_are_filtered_and_ordered() -> None:
    late = _slot(day=21, hour=14)
    early = _slot(day=21, hour=9)
    first_day = _slot(day=20, hour=16)
    booked = _slot(day=20, hour=9, status=SlotStatusEnum.BOOKED)
    outside = _slot(day=28, hour=9)
    service = SchedulingService(FakeSchedulingRepository([late, early, first_day, booked, outside]))

    slots = await service.list_available(date(2026, 1, 20), date(2026, 1, 21))

    assert [slot.id for slot in slots] == [first_day.id, early.id, late.id]


@pytest.mark.asyncio
async def test_reversed_range_is_rejected() -> None:
    service = SchedulingService(FakeSchedulingRepository())

    with pytest.raises(BusinessRuleException):
        await service.list_available(date(2026, 1, 21), date(2026, 1, 20))


@pytest.mark.asyncio
async def test_admin_creates_available_slot() -> None:
    service = SchedulingService(FakeSchedulingRepository())

    slot = await service.create_slot(
        SlotCreate(slot_date=date(2026, 2, 2), start_time=time(9, 0), end_time=time(11, 0)),
        ADMIN,
    )

    assert slot.status == SlotStatusEnum.AVAILABLE
    assert await service.get_status(slot.id) == SlotStatusEnum.AVAILABLE


@pytest.mark.asyncio
async def test_slot_creation_rules() -> None:
    service = SchedulingService(FakeSchedulingRepository())
    payload = SlotCreate(slot_date=date(2026, 2, 2), start_time=time(11, 0), end_time=time(9, 0))

    with pytest.raises(UnauthorizedException):
        await service.create_slot(payload, CUSTOMER)
    with pytest.raises(BusinessRuleException):
        await service.create_slot(payload, ADMIN)


@pytest.mark.asyncio
async def test_status_of_unknown_slot_is_not_found() -> None:
    service = SchedulingService(FakeSchedulingRepository())

    with pytest.raises(NotFoundException):
        await service.get_status(uuid4())
