"""Identity resolution for request handlers."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request

from app.core.enums import RoleEnum
from app.core.security import decode_token, oauth2_scheme
from app.modules.identity.schemas import Actor
from app.shared.exceptions import UnauthorizedException


def actor_from_claims(payload: dict) -> Actor:
    """Build actor from decoded token claims."""
    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid access token")

    subject = payload.get("sub")
    if not subject:
        raise UnauthorizedException("Token subject is missing")

    try:
        actor_id = UUID(str(subject))
        role = RoleEnum(str(payload.get("role")))
    except ValueError as exc:
        raise UnauthorizedException("Token claims are malformed") from exc

    return Actor(id=actor_id, role=role)


async def get_current_actor(request: Request, token: str = Depends(oauth2_scheme)) -> Actor:
    """Resolve currently authenticated actor from bearer token."""
    actor = actor_from_claims(decode_token(token))
    request.state.actor = actor
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency that only lets admin actors through."""
    if not actor.is_admin:
        raise UnauthorizedException("Operation is restricted to admins", reason="role_not_admin")
    return actor
