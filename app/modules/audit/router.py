"""Audit API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.modules.audit.schemas import AuditLogRead, OutboxEventRead
from app.modules.audit.service import AuditService, get_audit_service
from app.modules.identity.service import get_current_actor
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=Page[AuditLogRead])
async def list_logs(
    pagination=Depends(get_pagination_params),
    service: AuditService = Depends(get_audit_service),
    current_actor=Depends(get_current_actor),
) -> Page[AuditLogRead]:
    """List audit logs."""
    items, total = await service.list_logs(current_actor, pagination.limit, pagination.offset)
    serialized = [AuditLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/outbox/pending", response_model=list[OutboxEventRead])
async def list_pending_outbox(
    limit: int = Query(default=100, ge=1, le=500),
    service: AuditService = Depends(get_audit_service),
    current_actor=Depends(get_current_actor),
) -> list[OutboxEventRead]:
    """List pending outbox events."""
    items = await service.list_pending_outbox(current_actor, limit=limit)
    return [OutboxEventRead.model_validate(item) for item in items]
