from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import Request, Response

import app.main as main_module
from app.core.enums import SlotStatusEnum
from app.core.metrics import build_metrics_response, instrument_http_request, record_operation
from app.modules.scheduling.transitions import (
    SlotTransition,
    SlotTransitionConflict,
    SlotTransitionExecutor,
)


class TakenSlotRepository:
    """Every conditional write finds the slot in another status."""

    async def transition_slot_status(self, slot_id, from_status, to_status) -> bool:
        return False


def _make_request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": b"",
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_http_metrics_instrumentation_tracks_status_and_path() -> None:
    async def _no_content(_: Request) -> Response:
        return Response(status_code=204)

    request = _make_request("/health")
    await instrument_http_request(request, _no_content)

    payload = build_metrics_response().body.decode("utf-8")
    assert "detailing_http_requests_total" in payload
    assert 'path="/health"' in payload
    assert 'status_code="204"' in payload


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_prometheus_payload() -> None:
    response = await main_module.metrics_endpoint(_make_request("/metrics"))
    payload = response.body.decode("utf-8")

    assert response.status_code == 200
    assert "detailing_http_requests_total" in payload


@pytest.mark.asyncio
async def test_slot_conflicts_are_counted() -> None:
    executor = SlotTransitionExecutor(TakenSlotRepository())

    with pytest.raises(SlotTransitionConflict):
        await executor.apply(SlotTransition(uuid4(), SlotStatusEnum.AVAILABLE, SlotStatusEnum.BOOKED))

    payload = build_metrics_response().body.decode("utf-8")
    assert 'detailing_slot_transition_conflicts_total{to_status="booked"}' in payload


def test_operation_outcomes_are_counted() -> None:
    record_operation("create_booking", "created")

    payload = build_metrics_response().body.decode("utf-8")
    assert 'detailing_booking_operations_total{operation="create_booking",outcome="created"}' in payload
