"""Read-only status polling for customers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RescheduleStatusEnum
from app.modules.booking.repository import BookingRepository
from app.modules.identity.schemas import Actor
from app.modules.reschedule.expiry import effective_status
from app.modules.reschedule.repository import RescheduleRepository
from app.modules.scheduling.models import TimeSlot
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.updates.schemas import (
    BookingUpdateRead,
    BookingUpdatesRead,
    RescheduleUpdateRead,
    SlotSummaryRead,
    UpdatesSummaryRead,
)
from app.shared.utils import ensure_utc, format_slot_date, format_slot_time, utc_now


def _slot_summary(slot: TimeSlot | None) -> SlotSummaryRead | None:
    if slot is None:
        return None
    return SlotSummaryRead(
        id=slot.id,
        date=slot.slot_date,
        start_time=slot.start_time,
        status=slot.status,
        formatted_date=format_slot_date(slot.slot_date),
        formatted_time=format_slot_time(slot.start_time),
    )


class UpdatesService:
    """Build booking status snapshots without writing anything."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        reschedule_repository: RescheduleRepository,
        scheduling_repository: SchedulingRepository,
        now_provider: Callable[[], datetime] = utc_now,
    ) -> None:
        self.booking_repository = booking_repository
        self.reschedule_repository = reschedule_repository
        self.scheduling_repository = scheduling_repository
        self.now_provider = now_provider

    async def poll_updates(
        self,
        actor: Actor,
        since: datetime | None,
        booking_ids: Sequence[UUID] | None = None,
    ) -> BookingUpdatesRead:
        """Report current state of the actor's bookings.

        ``has_changed`` is true when the booking's last status change is
        later than ``since``; without ``since`` nothing counts as changed.
        """
        since_utc = ensure_utc(since) if since is not None else None
        now = self.now_provider()

        bookings = await self.booking_repository.list_customer_bookings(actor.id, booking_ids)
        requests = await self.reschedule_repository.latest_for_bookings([booking.id for booking in bookings])

        slot_ids = {booking.slot_id for booking in bookings}
        slot_ids.update(request.requested_slot_id for request in requests.values())
        slots = await self.scheduling_repository.get_slots_by_ids(slot_ids)

        updates: list[BookingUpdateRead] = []
        pending_requests = 0
        for booking in bookings:
            request_read = None
            request = requests.get(booking.id)
            if request is not None:
                status = effective_status(request, now)
                if status == RescheduleStatusEnum.PENDING:
                    pending_requests += 1
                request_read = RescheduleUpdateRead(
                    id=request.id,
                    status=status,
                    requested_at=request.requested_at,
                    expires_at=request.expires_at,
                    responded_at=request.responded_at,
                    admin_notes=request.admin_notes,
                    requested_slot=_slot_summary(slots.get(request.requested_slot_id)),
                )

            has_changed = since_utc is not None and ensure_utc(booking.last_status_change) > since_utc
            updates.append(
                BookingUpdateRead(
                    booking_id=booking.id,
                    booking_reference=booking.booking_reference,
                    status=booking.status,
                    last_status_change=booking.last_status_change,
                    status_change_reason=booking.status_change_reason,
                    reschedule_count=booking.reschedule_count,
                    current_slot=_slot_summary(slots.get(booking.slot_id)),
                    reschedule_request=request_read,
                    has_changed=has_changed,
                ),
            )

        return BookingUpdatesRead(
            updates=updates,
            summary=UpdatesSummaryRead(
                total_bookings_checked=len(updates),
                bookings_with_updates=sum(1 for update in updates if update.has_changed),
                pending_reschedule_requests=pending_requests,
                since=since_utc,
            ),
        )


async def get_updates_service(session: AsyncSession = Depends(get_db_session)) -> UpdatesService:
    """Dependency provider for updates service."""
    return UpdatesService(
        booking_repository=BookingRepository(session),
        reschedule_repository=RescheduleRepository(session),
        scheduling_repository=SchedulingRepository(session),
    )
