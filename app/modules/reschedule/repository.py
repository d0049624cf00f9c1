"""Reschedule repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import RescheduleStatusEnum
from app.modules.reschedule.models import RescheduleRequest


class RescheduleRepository:
    """DB operations for reschedule requests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_request(
        self,
        booking_id: UUID,
        customer_id: UUID,
        original_slot_id: UUID,
        requested_slot_id: UUID,
        reason: str | None,
        requested_at: datetime,
        expires_at: datetime,
    ) -> RescheduleRequest:
        request = RescheduleRequest(
            booking_id=booking_id,
            customer_id=customer_id,
            original_slot_id=original_slot_id,
            requested_slot_id=requested_slot_id,
            reason=reason,
            status=RescheduleStatusEnum.PENDING,
            requested_at=requested_at,
            expires_at=expires_at,
        )
        async with self.session.begin_nested():
            self.session.add(request)
            await self.session.flush()
        return request

    async def get_request_by_id(self, request_id: UUID) -> RescheduleRequest | None:
        stmt = select(RescheduleRequest).where(RescheduleRequest.id == request_id)
        return await self.session.scalar(stmt)

    async def get_pending_for_booking(self, booking_id: UUID) -> RescheduleRequest | None:
        stmt = select(RescheduleRequest).where(
            RescheduleRequest.booking_id == booking_id,
            RescheduleRequest.status == RescheduleStatusEnum.PENDING,
        )
        return await self.session.scalar(stmt)

    async def reload(self, request: RescheduleRequest) -> RescheduleRequest:
        await self.session.refresh(request)
        return request

    async def list_requests(
        self,
        status: RescheduleStatusEnum | None,
        now: datetime,
        limit: int,
        offset: int,
    ) -> tuple[list[RescheduleRequest], int]:
        """Filter by effective status: a pending row past its expiry counts as expired."""
        base_stmt: Select[tuple[RescheduleRequest]] = select(RescheduleRequest)
        if status == RescheduleStatusEnum.PENDING:
            base_stmt = base_stmt.where(
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
                RescheduleRequest.expires_at > now,
            )
        elif status == RescheduleStatusEnum.EXPIRED:
            base_stmt = base_stmt.where(
                or_(
                    RescheduleRequest.status == RescheduleStatusEnum.EXPIRED,
                    and_(
                        RescheduleRequest.status == RescheduleStatusEnum.PENDING,
                        RescheduleRequest.expires_at <= now,
                    ),
                ),
            )
        elif status is not None:
            base_stmt = base_stmt.where(RescheduleRequest.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(RescheduleRequest.requested_at.asc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def list_customer_requests(self, customer_id: UUID) -> list[RescheduleRequest]:
        stmt = (
            select(RescheduleRequest)
            .where(RescheduleRequest.customer_id == customer_id)
            .order_by(RescheduleRequest.requested_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def latest_for_bookings(self, booking_ids: Sequence[UUID]) -> dict[UUID, RescheduleRequest]:
        if not booking_ids:
            return {}
        stmt = (
            select(RescheduleRequest)
            .where(RescheduleRequest.booking_id.in_(booking_ids))
            .order_by(RescheduleRequest.requested_at.desc(), RescheduleRequest.id.asc())
        )
        latest: dict[UUID, RescheduleRequest] = {}
        for request in (await self.session.scalars(stmt)).all():
            latest.setdefault(request.booking_id, request)
        return latest

    async def transition_request_status(
        self,
        request_id: UUID,
        to_status: RescheduleStatusEnum,
        responded_at: datetime,
        admin_id: UUID | None = None,
        admin_notes: str | None = None,
    ) -> bool:
        """Move a pending request to a terminal status; False if it is no longer pending."""
        stmt = (
            update(RescheduleRequest)
            .where(
                RescheduleRequest.id == request_id,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
            )
            .values(
                status=to_status,
                responded_at=responded_at,
                admin_id=admin_id,
                admin_notes=admin_notes,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def cancel_pending_for_booking(self, booking_id: UUID, responded_at: datetime) -> int:
        """Close pending requests of a cancelled booking; returns how many were still live.

        A pending row already past its expiry is stored as expired, not cancelled.
        """
        expired_stmt = (
            update(RescheduleRequest)
            .where(
                RescheduleRequest.booking_id == booking_id,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
                RescheduleRequest.expires_at <= responded_at,
            )
            .values(status=RescheduleStatusEnum.EXPIRED, responded_at=responded_at)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(expired_stmt)

        stmt = (
            update(RescheduleRequest)
            .where(
                RescheduleRequest.booking_id == booking_id,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
                RescheduleRequest.expires_at > responded_at,
            )
            .values(status=RescheduleStatusEnum.CANCELLED, responded_at=responded_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def reopen_request(self, request_id: UUID) -> bool:
        """Return an approved request to pending after its slot swap failed."""
        stmt = (
            update(RescheduleRequest)
            .where(
                RescheduleRequest.id == request_id,
                RescheduleRequest.status == RescheduleStatusEnum.APPROVED,
            )
            .values(
                status=RescheduleStatusEnum.PENDING,
                responded_at=None,
                admin_id=None,
                admin_notes=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
