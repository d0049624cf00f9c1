"""Conditional slot transitions and their compensation.

Every write to a slot's status goes through :class:`SlotTransitionExecutor`.
Multi-slot operations are applied in ascending slot id order so two
operations that touch the same pair of slots always lock them in the same
order, and a failure part-way reverts what was already applied.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from app.core.enums import SlotStatusEnum
from app.core.metrics import SLOT_TRANSITION_CONFLICTS_TOTAL

logger = logging.getLogger(__name__)


class SlotStatusWriter(Protocol):
    async def transition_slot_status(
        self,
        slot_id: UUID,
        from_status: SlotStatusEnum,
        to_status: SlotStatusEnum,
    ) -> bool: ...


@dataclass(slots=True, frozen=True)
class SlotTransition:
    slot_id: UUID
    from_status: SlotStatusEnum
    to_status: SlotStatusEnum

    def inverse(self) -> SlotTransition:
        return SlotTransition(self.slot_id, self.to_status, self.from_status)

    @property
    def sort_key(self) -> str:
        return str(self.slot_id)


class SlotTransitionConflict(Exception):
    """A conditional transition found the slot in a different status."""

    def __init__(self, transition: SlotTransition) -> None:
        self.transition = transition
        super().__init__(
            f"Slot {transition.slot_id} is not {transition.from_status}; "
            f"cannot move to {transition.to_status}",
        )


class SlotTransitionExecutor:
    """Apply slot status changes as compare-and-swap writes."""

    def __init__(self, repository: SlotStatusWriter) -> None:
        self.repository = repository

    async def apply(self, transition: SlotTransition) -> None:
        """Apply one transition or raise :class:`SlotTransitionConflict`."""
        applied = await self.repository.transition_slot_status(
            transition.slot_id,
            transition.from_status,
            transition.to_status,
        )
        if not applied:
            SLOT_TRANSITION_CONFLICTS_TOTAL.labels(to_status=str(transition.to_status)).inc()
            logger.info(
                "Slot transition lost: slot=%s %s->%s",
                transition.slot_id,
                transition.from_status,
                transition.to_status,
            )
            raise SlotTransitionConflict(transition)

    async def apply_all(self, transitions: Sequence[SlotTransition]) -> list[SlotTransition]:
        """Apply transitions in slot id order; all of them or none of them.

        On conflict the transitions applied so far are reverted before the
        conflict is re-raised. Returns the transitions in applied order.
        """
        ordered = sorted(transitions, key=lambda item: item.sort_key)
        applied: list[SlotTransition] = []
        for transition in ordered:
            try:
                await self.apply(transition)
            except SlotTransitionConflict:
                await self.revert(applied)
                raise
            applied.append(transition)
        return applied

    async def revert(self, applied: Sequence[SlotTransition]) -> bool:
        """Undo applied transitions newest first. Returns False if any undo failed."""
        all_reverted = True
        for transition in reversed(applied):
            compensation = transition.inverse()
            reverted = await self.repository.transition_slot_status(
                compensation.slot_id,
                compensation.from_status,
                compensation.to_status,
            )
            if reverted:
                logger.warning(
                    "Compensated slot transition: slot=%s %s->%s",
                    compensation.slot_id,
                    compensation.from_status,
                    compensation.to_status,
                )
                continue
            all_reverted = False
            logger.error(
                "Compensation failed, slot needs manual review: slot=%s expected=%s target=%s",
                compensation.slot_id,
                compensation.from_status,
                compensation.to_status,
            )
        return all_reverted
