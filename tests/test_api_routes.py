from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from app.core.enums import RoleEnum, SlotStatusEnum
from app.core.security import create_access_token
from app.main import app
from app.modules.booking.service import get_booking_service
from app.modules.reschedule.service import get_reschedule_service
from app.modules.updates.service import UpdatesService, get_updates_service
from tests.fakes import build_services, make_slot


def _auth_headers(actor_id, role: RoleEnum) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(actor_id), role.value)}"}


@pytest_asyncio.fixture()
async def api() -> AsyncIterator[tuple[httpx.AsyncClient, object]]:
    slot = make_slot()
    other = make_slot(day=22, hour=13)
    ctx = build_services(slots=[slot, other])
    ctx.slot, ctx.other = slot, other
    app.dependency_overrides[get_booking_service] = lambda: ctx.booking_service
    app.dependency_overrides[get_reschedule_service] = lambda: ctx.reschedule_service
    app.dependency_overrides[get_updates_service] = lambda: UpdatesService(
        ctx.booking_repo,
        ctx.reschedule_repo,
        ctx.scheduling_repo,
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        yield client, ctx
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_booking_requires_bearer_token(api) -> None:
    client, ctx = api

    response = await client.post("/bookings", json={"slot_id": str(ctx.slot.id), "price_pence": 8500})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_book_then_lose_race_without_reason_leak(api) -> None:
    client, ctx = api
    first, second = uuid4(), uuid4()
    body = {"slot_id": str(ctx.slot.id), "price_pence": 8500, "details": {"vehicle": "Golf"}}

    created = await client.post("/bookings", json=body, headers=_auth_headers(first, RoleEnum.CUSTOMER))
    lost = await client.post("/bookings", json=body, headers=_auth_headers(second, RoleEnum.CUSTOMER))

    assert created.status_code == 201
    assert created.json()["status"] == "confirmed"
    assert lost.status_code == 409
    assert lost.json() == {
        "error": {"code": "slot_unavailable", "message": "Slot is not available, please choose another time"},
    }
    assert ctx.slot.status == SlotStatusEnum.BOOKED


@pytest.mark.asyncio
async def test_reschedule_round_trip_and_polling(api) -> None:
    client, ctx = api
    customer_id = uuid4()
    customer = _auth_headers(customer_id, RoleEnum.CUSTOMER)
    admin = _auth_headers(uuid4(), RoleEnum.ADMIN)

    booking = (
        await client.post("/bookings", json={"slot_id": str(ctx.slot.id), "price_pence": 8500}, headers=customer)
    ).json()
    requested = await client.post(
        "/reschedule-requests",
        json={"booking_id": booking["id"], "requested_slot_id": str(ctx.other.id)},
        headers=customer,
    )
    assert requested.status_code == 201

    forbidden = await client.post(
        f"/reschedule-requests/{requested.json()['id']}/decision",
        json={"decision": "approve"},
        headers=customer,
    )
    assert forbidden.status_code == 403
    assert "reason" not in forbidden.json()["error"]

    decided = await client.post(
        f"/reschedule-requests/{requested.json()['id']}/decision",
        json={"decision": "approve"},
        headers=admin,
    )
    assert decided.status_code == 200
    assert decided.json()["request"]["status"] == "approved"
    assert decided.json()["booking"]["slot_id"] == str(ctx.other.id)

    polled = await client.get("/updates/bookings", headers=customer)
    assert polled.status_code == 200
    update = polled.json()["updates"][0]
    assert update["booking_id"] == booking["id"]
    assert update["current_slot"]["id"] == str(ctx.other.id)
    assert update["reschedule_request"]["status"] == "approved"
    assert update["reschedule_count"] == 1
