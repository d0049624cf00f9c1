from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from uuid import UUID

import pytest

from app.core.enums import SlotStatusEnum
from app.modules.scheduling.transitions import (
    SlotTransition,
    SlotTransitionConflict,
    SlotTransitionExecutor,
)

LOW_ID = UUID("00000000-0000-0000-0000-000000000001")
HIGH_ID = UUID("ffffffff-0000-0000-0000-000000000001")


@dataclass
class FakeSlot:
    id: UUID
    slot_date: date
    start_time: time
    end_time: time
    status: SlotStatusEnum = SlotStatusEnum.AVAILABLE


class FakeSchedulingRepository:
    def __init__(self, slots: dict[UUID, FakeSlot]) -> None:
        self.slots = slots
        self.writes: list[tuple[UUID, SlotStatusEnum, SlotStatusEnum, bool]] = []

    async def transition_slot_status(
        self,
        slot_id: UUID,
        from_status: SlotStatusEnum,
        to_status: SlotStatusEnum,
    ) -> bool:
        slot = self.slots.get(slot_id)
        applied = slot is not None and slot.status == from_status
        if applied:
            slot.status = to_status
        self.writes.append((slot_id, from_status, to_status, applied))
        return applied


def _repo_with(low_status: SlotStatusEnum, high_status: SlotStatusEnum) -> FakeSchedulingRepository:
    low = FakeSlot(LOW_ID, date(2026, 1, 20), time(9, 0), time(11, 0), low_status)
    high = FakeSlot(HIGH_ID, date(2026, 1, 20), time(13, 0), time(15, 0), high_status)
    return FakeSchedulingRepository({LOW_ID: low, HIGH_ID: high})


@pytest.mark.asyncio
async def test_apply_is_compare_and_swap() -> None:
    repo = _repo_with(SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED)
    executor = SlotTransitionExecutor(repo)

    await executor.apply(SlotTransition(LOW_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED))
    with pytest.raises(SlotTransitionConflict) as exc:
        await executor.apply(SlotTransition(LOW_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED))

    assert exc.value.transition.slot_id == LOW_ID
    assert repo.slots[LOW_ID].status == SlotStatusEnum.BOOKED


@pytest.mark.asyncio
async def test_apply_all_orders_writes_by_slot_id() -> None:
    repo = _repo_with(SlotStatusEnum.BOOKED, SlotStatusEnum.AVAILABLE)
    executor = SlotTransitionExecutor(repo)

    applied = await executor.apply_all(
        [
            SlotTransition(HIGH_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED),
            SlotTransition(LOW_ID, SlotStatusEnum.BOOKED, SlotStatusEnum.AVAILABLE),
        ],
    )

    assert [transition.slot_id for transition in applied] == [LOW_ID, HIGH_ID]
    assert [write[0] for write in repo.writes] == [LOW_ID, HIGH_ID]
    assert repo.slots[LOW_ID].status == SlotStatusEnum.AVAILABLE
    assert repo.slots[HIGH_ID].status == SlotStatusEnum.BOOKED


@pytest.mark.asyncio
async def test_apply_all_reverts_applied_writes_on_conflict() -> None:
    repo = _repo_with(SlotStatusEnum.BOOKED, SlotStatusEnum.BOOKED)
    executor = SlotTransitionExecutor(repo)

    with pytest.raises(SlotTransitionConflict) as exc:
        await executor.apply_all(
            [
                SlotTransition(HIGH_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED),
                SlotTransition(LOW_ID, SlotStatusEnum.BOOKED, SlotStatusEnum.AVAILABLE),
            ],
        )

    assert exc.value.transition.slot_id == HIGH_ID
    assert repo.slots[LOW_ID].status == SlotStatusEnum.BOOKED
    assert repo.slots[HIGH_ID].status == SlotStatusEnum.BOOKED
    assert repo.writes[-1] == (LOW_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED, True)


@pytest.mark.asyncio
async def test_revert_reports_failed_compensation() -> None:
    repo = _repo_with(SlotStatusEnum.BLOCKED, SlotStatusEnum.AVAILABLE)
    executor = SlotTransitionExecutor(repo)

    reverted = await executor.revert(
        [SlotTransition(LOW_ID, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED)],
    )

    assert reverted is False
    assert repo.slots[LOW_ID].status == SlotStatusEnum.BLOCKED
