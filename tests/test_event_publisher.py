from __future__ import annotations

import logging

import pytest

from app.modules.audit.publisher import EventPublisher


class FakeAuditRepository:
    def __init__(self) -> None:
        self.events: list[dict] = []
        self.fail_outbox = False

    async def create_outbox_event(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> None:
        if self.fail_outbox:
            raise RuntimeError("outbox table unavailable")
        self.events.append(
            {
                "aggregate_type": aggregate_type,
                "aggregate_id": aggregate_id,
                "event_type": event_type,
                "payload": payload,
            },
        )


@pytest.mark.asyncio
async def test_publish_writes_outbox_event() -> None:
    outbox = FakeAuditRepository()

    published = await EventPublisher(outbox).publish("booking", "b-1", "booking.created", {"x": 1})

    assert published is True
    assert outbox.events == [
        {
            "aggregate_type": "booking",
            "aggregate_id": "b-1",
            "event_type": "booking.created",
            "payload": {"x": 1},
        },
    ]


@pytest.mark.asyncio
async def test_publish_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    outbox = FakeAuditRepository()
    outbox.fail_outbox = True

    with caplog.at_level(logging.ERROR, logger="app.modules.audit.publisher"):
        published = await EventPublisher(outbox).publish("booking", "b-1", "booking.cancelled", {})

    assert published is False
    assert "booking.cancelled" in caplog.text
