"""Reschedule workflow business logic."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import (
    BookingStatusEnum,
    RescheduleDecisionEnum,
    RescheduleStatusEnum,
    SlotStatusEnum,
)
from app.core.metrics import record_operation
from app.modules.audit.publisher import EventPublisher
from app.modules.audit.repository import AuditRepository
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.service import BookingService, build_booking_service
from app.modules.booking.state_machine import TERMINAL_STATUSES
from app.modules.identity.schemas import Actor
from app.modules.reschedule.expiry import TERMINAL_REQUEST_STATUSES, is_expired
from app.modules.reschedule.models import RescheduleRequest
from app.modules.reschedule.repository import RescheduleRepository
from app.modules.reschedule.schemas import RescheduleDecisionRequest, RescheduleRequestCreate
from app.modules.scheduling.repository import SchedulingRepository
from app.shared.exceptions import (
    AlreadyTerminalException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    RequestExpiredException,
    SlotNoLongerAvailableException,
    SlotUnavailableException,
    UnauthorizedException,
)
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class RescheduleService:
    """Request, decide and withdraw reschedule requests.

    Slot changes are delegated to :meth:`BookingService.move_to_slot`; this
    service never writes slot status itself.
    """

    def __init__(
        self,
        reschedule_repository: RescheduleRepository,
        booking_repository: BookingRepository,
        scheduling_repository: SchedulingRepository,
        audit_repository: AuditRepository,
        booking_service: BookingService,
    ) -> None:
        self.reschedule_repository = reschedule_repository
        self.booking_repository = booking_repository
        self.scheduling_repository = scheduling_repository
        self.audit_repository = audit_repository
        self.booking_service = booking_service
        self.events = EventPublisher(audit_repository)

    async def _get_request(self, request_id: UUID) -> RescheduleRequest:
        request = await self.reschedule_repository.get_request_by_id(request_id)
        if request is None:
            raise NotFoundException("Reschedule request not found")
        return request

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _ensure_actionable(request: RescheduleRequest, now: datetime) -> None:
        if request.status in TERMINAL_REQUEST_STATUSES:
            raise AlreadyTerminalException(
                f"Reschedule request is already {request.status}",
                reason="request_terminal",
            )
        if is_expired(request, now):
            raise RequestExpiredException("Reschedule request has expired", reason="request_expired")

    async def request_reschedule(self, payload: RescheduleRequestCreate, actor: Actor) -> RescheduleRequest:
        """Open a pending request; slots are untouched until an admin approves."""
        booking = await self._get_booking(payload.booking_id)
        if booking.customer_id != actor.id:
            raise UnauthorizedException("You can only reschedule your own bookings", reason="not_booking_owner")

        if booking.status in TERMINAL_STATUSES:
            raise AlreadyTerminalException(f"Booking is already {booking.status}", reason="booking_terminal")
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise BusinessRuleException(
                f"Booking cannot be rescheduled - current status: {booking.status}",
                reason="booking_not_confirmed",
            )
        if booking.reschedule_count >= settings.max_reschedules_per_booking:
            raise BusinessRuleException(
                "Maximum reschedule limit reached. Please contact customer service.",
                reason="reschedule_limit_reached",
            )
        if payload.requested_slot_id == booking.slot_id:
            raise BusinessRuleException("Requested slot is the current slot", reason="same_slot")

        now = utc_now()
        existing = await self.reschedule_repository.get_pending_for_booking(booking.id)
        if existing is not None:
            if not is_expired(existing, now):
                raise ConflictException(
                    "You already have a pending reschedule request for this booking",
                    reason="pending_request_exists",
                )
            await self.reschedule_repository.transition_request_status(
                existing.id,
                RescheduleStatusEnum.EXPIRED,
                now,
            )

        requested_slot = await self.scheduling_repository.get_slot_by_id(payload.requested_slot_id)
        if requested_slot is None:
            raise NotFoundException("Requested time slot not found")
        if requested_slot.status != SlotStatusEnum.AVAILABLE:
            raise SlotUnavailableException(
                "Requested time slot is no longer available",
                reason="requested_slot_not_available",
            )

        try:
            request = await self.reschedule_repository.create_request(
                booking_id=booking.id,
                customer_id=booking.customer_id,
                original_slot_id=booking.slot_id,
                requested_slot_id=requested_slot.id,
                reason=payload.reason,
                requested_at=now,
                expires_at=now + timedelta(days=settings.reschedule_request_ttl_days),
            )
        except IntegrityError as exc:
            raise ConflictException(
                "You already have a pending reschedule request for this booking",
                reason="pending_request_exists",
            ) from exc

        record_operation("request_reschedule", "created")
        await self.events.publish(
            aggregate_type="reschedule_request",
            aggregate_id=str(request.id),
            event_type="reschedule.requested",
            payload={
                "request_id": str(request.id),
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "customer_id": str(booking.customer_id),
                "original_slot_id": str(booking.slot_id),
                "requested_slot_id": str(requested_slot.id),
                "reason": payload.reason,
            },
        )
        return request

    async def decide_reschedule(
        self,
        request_id: UUID,
        payload: RescheduleDecisionRequest,
        actor: Actor,
    ) -> tuple[RescheduleRequest, Booking]:
        """Apply an admin decision to a pending request."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can decide reschedule requests", reason="role_not_admin")

        request = await self._get_request(request_id)
        now = utc_now()
        self._ensure_actionable(request, now)

        booking = await self._get_booking(request.booking_id)
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise ConflictException(
                f"Booking is {booking.status}; request can no longer be decided",
                reason="booking_not_confirmed",
            )

        if payload.decision == RescheduleDecisionEnum.DECLINE:
            return await self._decline(request, booking, payload, actor, now)
        return await self._approve(request, booking, payload, actor, now)

    async def _decline(
        self,
        request: RescheduleRequest,
        booking: Booking,
        payload: RescheduleDecisionRequest,
        actor: Actor,
        now: datetime,
    ) -> tuple[RescheduleRequest, Booking]:
        declined = await self.reschedule_repository.transition_request_status(
            request.id,
            RescheduleStatusEnum.DECLINED,
            now,
            admin_id=actor.id,
            admin_notes=payload.admin_notes,
        )
        if not declined:
            raise ConflictException("Reschedule request was modified concurrently", reason="request_cas_lost")

        record_operation("decide_reschedule", "declined")
        await self._record_decision(request, booking, actor, "reschedule.declined", payload.admin_notes)
        return await self.reschedule_repository.reload(request), booking

    async def _approve(
        self,
        request: RescheduleRequest,
        booking: Booking,
        payload: RescheduleDecisionRequest,
        actor: Actor,
        now: datetime,
    ) -> tuple[RescheduleRequest, Booking]:
        if booking.slot_id != request.original_slot_id:
            raise ConflictException(
                "Booking is no longer on the slot this request was made from",
                reason="booking_slot_changed",
            )

        requested_slot = await self.scheduling_repository.get_slot_by_id(request.requested_slot_id)
        if requested_slot is None or requested_slot.status != SlotStatusEnum.AVAILABLE:
            record_operation("decide_reschedule", "slot_no_longer_available")
            raise SlotNoLongerAvailableException(
                "Requested slot is no longer available",
                reason="requested_slot_not_available",
            )

        approved = await self.reschedule_repository.transition_request_status(
            request.id,
            RescheduleStatusEnum.APPROVED,
            now,
            admin_id=actor.id,
            admin_notes=payload.admin_notes,
        )
        if not approved:
            raise ConflictException("Reschedule request was modified concurrently", reason="request_cas_lost")

        try:
            booking = await self.booking_service.move_to_slot(
                booking,
                request.requested_slot_id,
                actor,
                reason=f"Rescheduled by request {request.id}",
            )
        except (asyncio.CancelledError, Exception):
            # Request goes back to pending so it can be decided again.
            await self.reschedule_repository.reopen_request(request.id)
            record_operation("decide_reschedule", "reverted")
            raise

        record_operation("decide_reschedule", "approved")
        await self._record_decision(request, booking, actor, "reschedule.approved", payload.admin_notes)
        return await self.reschedule_repository.reload(request), booking

    async def _record_decision(
        self,
        request: RescheduleRequest,
        booking: Booking,
        actor: Actor,
        event_type: str,
        admin_notes: str | None,
    ) -> None:
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action=event_type,
            entity_type="reschedule_request",
            entity_id=str(request.id),
            payload={"booking_id": str(booking.id), "admin_notes": admin_notes},
            reason_code="admin_decision",
        )
        await self.events.publish(
            aggregate_type="reschedule_request",
            aggregate_id=str(request.id),
            event_type=event_type,
            payload={
                "request_id": str(request.id),
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "customer_id": str(booking.customer_id),
                "slot_id": str(booking.slot_id),
                "admin_notes": admin_notes,
            },
        )

    async def cancel_request(self, request_id: UUID, actor: Actor) -> RescheduleRequest:
        """Withdraw a pending request (owning customer or admin)."""
        request = await self._get_request(request_id)
        if request.customer_id != actor.id and not actor.is_admin:
            raise UnauthorizedException("You can only withdraw your own requests", reason="not_request_owner")

        now = utc_now()
        self._ensure_actionable(request, now)

        cancelled = await self.reschedule_repository.transition_request_status(
            request.id,
            RescheduleStatusEnum.CANCELLED,
            now,
        )
        if not cancelled:
            raise ConflictException("Reschedule request was modified concurrently", reason="request_cas_lost")

        record_operation("cancel_reschedule", "cancelled")
        await self.events.publish(
            aggregate_type="reschedule_request",
            aggregate_id=str(request.id),
            event_type="reschedule.cancelled",
            payload={
                "request_id": str(request.id),
                "booking_id": str(request.booking_id),
                "customer_id": str(request.customer_id),
            },
        )
        return await self.reschedule_repository.reload(request)

    async def list_requests(
        self,
        actor: Actor,
        status: RescheduleStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[RescheduleRequest], int]:
        """List requests by effective status (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can list reschedule requests", reason="role_not_admin")
        return await self.reschedule_repository.list_requests(status, utc_now(), limit, offset)

    async def list_my_requests(self, actor: Actor) -> list[RescheduleRequest]:
        return await self.reschedule_repository.list_customer_requests(actor.id)


async def get_reschedule_service(session: AsyncSession = Depends(get_db_session)) -> RescheduleService:
    """Dependency provider for reschedule service."""
    booking_service = build_booking_service(session)
    return RescheduleService(
        reschedule_repository=booking_service.reschedule_repository,
        booking_repository=booking_service.booking_repository,
        scheduling_repository=booking_service.scheduling_repository,
        audit_repository=booking_service.audit_repository,
        booking_service=booking_service,
    )
