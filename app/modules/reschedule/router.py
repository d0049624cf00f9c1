"""Reschedule API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RescheduleStatusEnum
from app.modules.booking.schemas import BookingRead
from app.modules.identity.service import get_current_actor, require_admin
from app.modules.reschedule.schemas import (
    RescheduleDecisionRead,
    RescheduleDecisionRequest,
    RescheduleRequestCreate,
    RescheduleRequestRead,
)
from app.modules.reschedule.service import RescheduleService, get_reschedule_service
from app.shared.pagination import Page, build_page, get_pagination_params
from app.shared.utils import utc_now

router = APIRouter(prefix="/reschedule-requests", tags=["reschedule"])


@router.post("", response_model=RescheduleRequestRead, status_code=status.HTTP_201_CREATED)
async def request_reschedule(
    payload: RescheduleRequestCreate,
    service: RescheduleService = Depends(get_reschedule_service),
    current_actor=Depends(get_current_actor),
) -> RescheduleRequestRead:
    """Ask for a booking to be moved to another slot."""
    request = await service.request_reschedule(payload, current_actor)
    return RescheduleRequestRead.from_request(request, utc_now())


@router.get("/my", response_model=list[RescheduleRequestRead])
async def list_my_requests(
    service: RescheduleService = Depends(get_reschedule_service),
    current_actor=Depends(get_current_actor),
) -> list[RescheduleRequestRead]:
    now = utc_now()
    items = await service.list_my_requests(current_actor)
    return [RescheduleRequestRead.from_request(item, now) for item in items]


@router.get("", response_model=Page[RescheduleRequestRead])
async def list_requests(
    status_filter: RescheduleStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: RescheduleService = Depends(get_reschedule_service),
    current_actor=Depends(require_admin),
) -> Page[RescheduleRequestRead]:
    """List reschedule requests (admin)."""
    now = utc_now()
    items, total = await service.list_requests(current_actor, status_filter, pagination.limit, pagination.offset)
    serialized = [RescheduleRequestRead.from_request(item, now) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/{request_id}/decision", response_model=RescheduleDecisionRead)
async def decide_reschedule(
    request_id: UUID,
    payload: RescheduleDecisionRequest,
    service: RescheduleService = Depends(get_reschedule_service),
    current_actor=Depends(require_admin),
) -> RescheduleDecisionRead:
    """Approve or decline a pending request (admin)."""
    request, booking = await service.decide_reschedule(request_id, payload, current_actor)
    return RescheduleDecisionRead(
        request=RescheduleRequestRead.from_request(request, utc_now()),
        booking=BookingRead.model_validate(booking),
    )


@router.post("/{request_id}/cancel", response_model=RescheduleRequestRead)
async def cancel_request(
    request_id: UUID,
    service: RescheduleService = Depends(get_reschedule_service),
    current_actor=Depends(get_current_actor),
) -> RescheduleRequestRead:
    """Withdraw a pending request."""
    request = await service.cancel_request(request_id, current_actor)
    return RescheduleRequestRead.from_request(request, utc_now())
