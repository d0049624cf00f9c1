"""Identity schemas."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from app.core.enums import RoleEnum


@dataclass(slots=True, frozen=True)
class Actor:
    """Authenticated caller as asserted by the identity provider."""

    id: UUID
    role: RoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN
