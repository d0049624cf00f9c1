"""Booking repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import BookingStatusEnum
from app.modules.booking.models import Booking, BookingHistoryEntry


class BookingRepository:
    """DB operations for the booking ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(
        self,
        booking_reference: str,
        customer_id: UUID,
        slot_id: UUID,
        price_pence: int,
        details: dict,
        actor_id: UUID,
        created_at: datetime,
    ) -> Booking:
        """Insert a confirmed booking with its initial history entry in one savepoint."""
        booking = Booking(
            booking_reference=booking_reference,
            customer_id=customer_id,
            slot_id=slot_id,
            original_slot_id=slot_id,
            status=BookingStatusEnum.CONFIRMED,
            price_pence=price_pence,
            reschedule_count=0,
            last_status_change=created_at,
            status_change_reason="Booking created",
            details=details,
        )
        async with self.session.begin_nested():
            self.session.add(booking)
            await self.session.flush()
            self.session.add(
                BookingHistoryEntry(
                    booking_id=booking.id,
                    from_status=None,
                    to_status=BookingStatusEnum.CONFIRMED,
                    from_slot_id=None,
                    to_slot_id=slot_id,
                    actor_id=actor_id,
                    reason="Booking created",
                    changed_at=created_at,
                ),
            )
            await self.session.flush()
        return booking

    async def reference_exists(self, booking_reference: str) -> bool:
        stmt = select(exists().where(Booking.booking_reference == booking_reference))
        return bool(await self.session.scalar(stmt))

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        return await self.session.scalar(stmt)

    async def reload(self, booking: Booking) -> Booking:
        await self.session.refresh(booking)
        return booking

    async def list_bookings(
        self,
        customer_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking)
        if customer_id is not None:
            base_stmt = base_stmt.where(Booking.customer_id == customer_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def list_customer_bookings(
        self,
        customer_id: UUID,
        booking_ids: Sequence[UUID] | None = None,
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.customer_id == customer_id)
        if booking_ids:
            stmt = stmt.where(Booking.id.in_(booking_ids))
        stmt = stmt.order_by(Booking.last_status_change.desc(), Booking.id.asc())
        return list((await self.session.scalars(stmt)).all())

    async def transition_booking_status(
        self,
        booking_id: UUID,
        from_status: BookingStatusEnum,
        to_status: BookingStatusEnum,
        changed_at: datetime,
        reason: str | None,
        **values: Any,
    ) -> bool:
        """Conditionally move booking status; False if the status changed meanwhile."""
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == from_status)
            .values(
                status=to_status,
                last_status_change=changed_at,
                status_change_reason=reason,
                **values,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def move_booking_slot(
        self,
        booking_id: UUID,
        from_slot_id: UUID,
        to_slot_id: UUID,
        changed_at: datetime,
        reason: str | None,
    ) -> bool:
        """Rebind a confirmed booking to another slot and bump its reschedule counter.

        Runs in a savepoint so a failed UPDATE leaves the outer transaction
        usable for reverting the slot writes that preceded it.
        """
        stmt = (
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.slot_id == from_slot_id,
                Booking.status == BookingStatusEnum.CONFIRMED,
            )
            .values(
                slot_id=to_slot_id,
                reschedule_count=Booking.reschedule_count + 1,
                last_status_change=changed_at,
                status_change_reason=reason,
            )
            .execution_options(synchronize_session="fetch")
        )
        async with self.session.begin_nested():
            result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def append_history(
        self,
        booking_id: UUID,
        from_status: BookingStatusEnum | None,
        to_status: BookingStatusEnum,
        from_slot_id: UUID | None,
        to_slot_id: UUID,
        actor_id: UUID | None,
        reason: str | None,
        changed_at: datetime,
    ) -> BookingHistoryEntry:
        entry = BookingHistoryEntry(
            booking_id=booking_id,
            from_status=from_status,
            to_status=to_status,
            from_slot_id=from_slot_id,
            to_slot_id=to_slot_id,
            actor_id=actor_id,
            reason=reason,
            changed_at=changed_at,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_history(self, booking_id: UUID) -> list[BookingHistoryEntry]:
        stmt = (
            select(BookingHistoryEntry)
            .where(BookingHistoryEntry.booking_id == booking_id)
            .order_by(BookingHistoryEntry.changed_at.asc(), BookingHistoryEntry.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())
