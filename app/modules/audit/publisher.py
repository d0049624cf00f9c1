"""Best-effort domain event publishing through the outbox."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class OutboxWriter(Protocol):
    async def create_outbox_event(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> Any: ...


class EventPublisher:
    """Write domain events for the notification collaborator.

    Publishing never fails the operation that triggered it.
    """

    def __init__(self, outbox: OutboxWriter) -> None:
        self.outbox = outbox

    async def publish(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> bool:
        try:
            await self.outbox.create_outbox_event(
                aggregate_type=aggregate_type,
                aggregate_id=aggregate_id,
                event_type=event_type,
                payload=payload,
            )
        except Exception:
            logger.exception(
                "Failed to publish %s for %s %s; state change kept",
                event_type,
                aggregate_type,
                aggregate_id,
            )
            return False
        return True
