"""Booking business logic layer.

Holds the only code paths that create bookings, cancel them, change their
status, or move them between slots. Each path claims or releases slots via
:class:`SlotTransitionExecutor` and compensates its own slot writes before
raising.
"""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import BookingStatusEnum, SlotStatusEnum
from app.core.metrics import SLOT_RELEASE_FAILURES_TOTAL, record_operation
from app.modules.audit.publisher import EventPublisher
from app.modules.audit.repository import AuditRepository
from app.modules.booking.models import Booking, BookingHistoryEntry
from app.modules.booking.reference import generate_booking_reference
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import BookingCancelRequest, BookingCreate, BookingStatusUpdate
from app.modules.booking.state_machine import ensure_transition
from app.modules.identity.schemas import Actor
from app.modules.reschedule.repository import RescheduleRepository
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.transitions import (
    SlotTransition,
    SlotTransitionConflict,
    SlotTransitionExecutor,
)
from app.shared.exceptions import (
    AppException,
    BookingPersistenceException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    SlotNoLongerAvailableException,
    SlotUnavailableException,
    UnauthorizedException,
)
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class BookingService:
    """Booking transaction, cancellation and status executors."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        scheduling_repository: SchedulingRepository,
        reschedule_repository: RescheduleRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.booking_repository = booking_repository
        self.scheduling_repository = scheduling_repository
        self.reschedule_repository = reschedule_repository
        self.audit_repository = audit_repository
        self.slot_transitions = SlotTransitionExecutor(scheduling_repository)
        self.events = EventPublisher(audit_repository)

    def _validate_actor_access(self, booking: Booking, actor: Actor) -> None:
        if actor.is_admin or booking.customer_id == actor.id:
            return
        raise UnauthorizedException("You cannot manage this booking", reason="not_booking_owner")

    def _resolve_customer_id(self, payload: BookingCreate, actor: Actor) -> UUID:
        if actor.is_admin:
            if payload.customer_id is None:
                raise BusinessRuleException("customer_id is required when booking on behalf of a customer")
            return payload.customer_id
        if payload.customer_id is not None and payload.customer_id != actor.id:
            raise UnauthorizedException("Customers can only book for themselves", reason="not_booking_owner")
        return actor.id

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _generate_unique_reference(self) -> str:
        for _ in range(settings.booking_reference_attempts):
            reference = generate_booking_reference(settings.booking_reference_prefix)
            if not await self.booking_repository.reference_exists(reference):
                return reference
        raise ConflictException(
            "Could not allocate a unique booking reference",
            reason="reference_exhausted",
        )

    async def _release_claim(self, claim: SlotTransition, cause: str) -> None:
        logger.warning("Booking insert failed (%s); releasing slot %s", cause, claim.slot_id)
        await self.slot_transitions.revert([claim])

    async def create_booking(self, payload: BookingCreate, actor: Actor) -> Booking:
        """Claim an available slot and record a confirmed booking for it.

        The slot is claimed first with a conditional write; of several
        concurrent callers for one slot only the first gets past it. If the
        booking row cannot be written afterwards the slot is handed back
        before the error propagates.
        """
        customer_id = self._resolve_customer_id(payload, actor)

        slot = await self.scheduling_repository.get_slot_by_id(payload.slot_id)
        if slot is None:
            raise NotFoundException("Slot not found")

        claim = SlotTransition(slot.id, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED)
        try:
            await self.slot_transitions.apply(claim)
        except SlotTransitionConflict as exc:
            record_operation("create_booking", "slot_unavailable")
            raise SlotUnavailableException(
                "Slot is not available, please choose another time",
                reason="slot_cas_lost",
            ) from exc

        try:
            reference = await self._generate_unique_reference()
            booking = await self.booking_repository.create_booking(
                booking_reference=reference,
                customer_id=customer_id,
                slot_id=slot.id,
                price_pence=payload.price_pence,
                details=dict(payload.details),
                actor_id=actor.id,
                created_at=utc_now(),
            )
        except asyncio.CancelledError:
            await self._release_claim(claim, "cancelled")
            raise
        except Exception as exc:
            await self._release_claim(claim, type(exc).__name__)
            record_operation("create_booking", "compensated")
            if isinstance(exc, AppException):
                raise
            raise BookingPersistenceException(
                "Booking could not be saved; the slot was released",
                reason="booking_insert_failed",
            ) from exc

        record_operation("create_booking", "created")
        logger.info("Booking %s created for slot %s", booking.booking_reference, slot.id)
        await self.events.publish(
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type="booking.created",
            payload={
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "customer_id": str(customer_id),
                "slot_id": str(slot.id),
                "price_pence": booking.price_pence,
            },
        )
        return booking

    async def _apply_status_change(
        self,
        booking: Booking,
        to_status: BookingStatusEnum,
        actor: Actor,
        reason: str | None,
        **values,
    ) -> BookingStatusEnum:
        """Validate, conditionally write, and log one status transition."""
        from_status = booking.status
        ensure_transition(from_status, to_status)

        changed_at = utc_now()
        changed = await self.booking_repository.transition_booking_status(
            booking.id,
            from_status,
            to_status,
            changed_at,
            reason,
            **values,
        )
        if not changed:
            raise ConflictException(
                "Booking was modified concurrently, please retry",
                reason="booking_cas_lost",
            )

        await self.booking_repository.append_history(
            booking_id=booking.id,
            from_status=from_status,
            to_status=to_status,
            from_slot_id=booking.slot_id,
            to_slot_id=booking.slot_id,
            actor_id=actor.id,
            reason=reason,
            changed_at=changed_at,
        )
        return from_status

    async def cancel_booking(
        self,
        booking_id: UUID,
        payload: BookingCancelRequest,
        actor: Actor,
    ) -> Booking:
        """Cancel booking and hand its slot back to the calendar."""
        booking = await self._get_booking(booking_id)
        self._validate_actor_access(booking, actor)

        slot_id = booking.slot_id
        now = utc_now()
        await self._apply_status_change(
            booking,
            BookingStatusEnum.CANCELLED,
            actor,
            payload.reason,
            cancelled_at=now,
            cancelled_by_id=actor.id,
        )

        slot_released = True
        try:
            await self.slot_transitions.apply(
                SlotTransition(slot_id, SlotStatusEnum.BOOKED, SlotStatusEnum.AVAILABLE),
            )
        except SlotTransitionConflict:
            slot_released = False
            SLOT_RELEASE_FAILURES_TOTAL.inc()
            logger.warning(
                "Booking %s cancelled but slot %s was not booked; left for admin review",
                booking.id,
                slot_id,
            )

        withdrawn = await self.reschedule_repository.cancel_pending_for_booking(booking.id, now)
        if withdrawn:
            logger.info("Cancelled %s pending reschedule request(s) of booking %s", withdrawn, booking.id)

        record_operation("cancel_booking", "released" if slot_released else "slot_not_released")
        await self.events.publish(
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type="booking.cancelled",
            payload={
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "customer_id": str(booking.customer_id),
                "slot_id": str(slot_id),
                "slot_released": slot_released,
                "cancelled_by": str(actor.id),
                "reason": payload.reason,
            },
        )
        return await self.booking_repository.reload(booking)

    async def update_status(
        self,
        booking_id: UUID,
        payload: BookingStatusUpdate,
        actor: Actor,
    ) -> Booking:
        """Admin status change along the booking graph."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can change booking status", reason="role_not_admin")

        if payload.status == BookingStatusEnum.CANCELLED:
            booking = await self.cancel_booking(booking_id, BookingCancelRequest(reason=payload.reason), actor)
        else:
            booking = await self._get_booking(booking_id)
            from_status = await self._apply_status_change(booking, payload.status, actor, payload.reason)
            booking = await self.booking_repository.reload(booking)
            await self.events.publish(
                aggregate_type="booking",
                aggregate_id=str(booking.id),
                event_type="booking.status.updated",
                payload={
                    "booking_id": str(booking.id),
                    "customer_id": str(booking.customer_id),
                    "from_status": str(from_status),
                    "to_status": str(payload.status),
                },
            )

        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="booking.status.update",
            entity_type="booking",
            entity_id=str(booking.id),
            payload={"to_status": str(payload.status), "reason": payload.reason},
            reason_code="admin_status_update",
        )
        return booking

    async def move_to_slot(
        self,
        booking: Booking,
        requested_slot_id: UUID,
        actor: Actor,
        reason: str | None,
    ) -> Booking:
        """Swap a confirmed booking onto another slot, all or nothing.

        Claims the requested slot and releases the current one in slot id
        order. If either write loses, or the booking itself changed meanwhile,
        every applied slot write is reverted before raising.
        """
        original_slot_id = booking.slot_id
        claim = SlotTransition(requested_slot_id, SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED)
        release = SlotTransition(original_slot_id, SlotStatusEnum.BOOKED, SlotStatusEnum.AVAILABLE)

        try:
            applied = await self.slot_transitions.apply_all([claim, release])
        except SlotTransitionConflict as exc:
            if exc.transition.slot_id == requested_slot_id:
                raise SlotNoLongerAvailableException(
                    "Requested slot is no longer available",
                    reason="requested_slot_cas_lost",
                ) from exc
            raise ConflictException(
                "Current slot is not in booked state; booking left unchanged",
                reason="original_slot_cas_lost",
            ) from exc

        changed_at = utc_now()
        try:
            moved = await self.booking_repository.move_booking_slot(
                booking.id,
                original_slot_id,
                requested_slot_id,
                changed_at,
                reason,
            )
        except (asyncio.CancelledError, Exception):
            await self.slot_transitions.revert(applied)
            raise

        if not moved:
            await self.slot_transitions.revert(applied)
            raise ConflictException(
                "Booking changed while rescheduling; nothing was moved",
                reason="booking_cas_lost",
            )

        await self.booking_repository.append_history(
            booking_id=booking.id,
            from_status=BookingStatusEnum.CONFIRMED,
            to_status=BookingStatusEnum.CONFIRMED,
            from_slot_id=original_slot_id,
            to_slot_id=requested_slot_id,
            actor_id=actor.id,
            reason=reason,
            changed_at=changed_at,
        )
        record_operation("move_booking", "moved")
        return await self.booking_repository.reload(booking)

    async def get_booking(self, booking_id: UUID, actor: Actor) -> Booking:
        booking = await self._get_booking(booking_id)
        self._validate_actor_access(booking, actor)
        return booking

    async def get_history(self, booking_id: UUID, actor: Actor) -> list[BookingHistoryEntry]:
        """Return the booking's change log, oldest first."""
        booking = await self.get_booking(booking_id, actor)
        return await self.booking_repository.list_history(booking.id)

    async def list_bookings(
        self,
        actor: Actor,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """List bookings for actor according to role."""
        customer_id = None if actor.is_admin else actor.id
        return await self.booking_repository.list_bookings(customer_id, limit, offset)


def build_booking_service(session: AsyncSession) -> BookingService:
    return BookingService(
        booking_repository=BookingRepository(session),
        scheduling_repository=SchedulingRepository(session),
        reschedule_repository=RescheduleRepository(session),
        audit_repository=AuditRepository(session),
    )


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return build_booking_service(session)
