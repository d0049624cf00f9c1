"""Audit business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.audit.models import AuditLog, OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.identity.schemas import Actor
from app.shared.exceptions import UnauthorizedException


class AuditService:
    """Read access to audit logs and the outbox."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def list_logs(self, actor: Actor, limit: int, offset: int) -> tuple[list[AuditLog], int]:
        """List audit logs (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can view audit logs")
        return await self.repository.list_audit_logs(limit=limit, offset=offset)

    async def list_pending_outbox(self, actor: Actor, limit: int) -> list[OutboxEvent]:
        """List pending outbox events (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can view outbox")
        return await self.repository.list_pending_outbox(limit)


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
