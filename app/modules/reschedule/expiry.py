"""Lazy expiry of reschedule requests.

No background sweep exists; every read path derives the effective status
from the stored one and the clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.core.enums import RescheduleStatusEnum
from app.shared.utils import ensure_utc

TERMINAL_REQUEST_STATUSES = frozenset(
    {
        RescheduleStatusEnum.APPROVED,
        RescheduleStatusEnum.DECLINED,
        RescheduleStatusEnum.EXPIRED,
        RescheduleStatusEnum.CANCELLED,
    },
)


class ExpiringRequest(Protocol):
    status: RescheduleStatusEnum
    expires_at: datetime


def is_expired(request: ExpiringRequest, now: datetime) -> bool:
    """True for a pending request whose expiry has passed."""
    return request.status == RescheduleStatusEnum.PENDING and ensure_utc(request.expires_at) <= now


def effective_status(request: ExpiringRequest, now: datetime) -> RescheduleStatusEnum:
    if is_expired(request, now):
        return RescheduleStatusEnum.EXPIRED
    return request.status
