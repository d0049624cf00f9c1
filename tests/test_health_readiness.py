from __future__ import annotations

import logging

import httpx
import pytest
from sqlalchemy.exc import OperationalError

import app.main as main_module


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=main_module.app), base_url="http://test")


class UnreachableDatabase:
    """Session factory whose sessions fail on first use."""

    def __call__(self) -> UnreachableDatabase:
        return self

    async def __aenter__(self) -> UnreachableDatabase:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def __aexit__(self, *_exc) -> None:
        return None


def test_app_serves_booking_surfaces() -> None:
    paths = {route.path for route in main_module.app.routes}

    assert main_module.app.title == "DetailingBooking"
    assert {
        "/api/v1/scheduling/slots/available",
        "/api/v1/bookings",
        "/api/v1/reschedule-requests",
        "/api/v1/updates/bookings",
        "/health",
        "/ready",
        "/metrics",
    } <= paths


@pytest.mark.asyncio
async def test_ready_reports_database_ok(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _ready() -> bool:
        return True

    monkeypatch.setattr(main_module, "_is_database_ready", _ready)

    async with _client() as client:
        health = await client.get("/health")
        ready = await client.get("/ready")

    assert health.json() == {"status": "ok"}
    assert ready.status_code == 200
    assert ready.json()["database"] == "ok"
    assert "timestamp" in ready.json()


@pytest.mark.asyncio
async def test_ready_is_503_when_database_is_unreachable(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setattr(main_module, "SessionLocal", UnreachableDatabase())

    with caplog.at_level(logging.ERROR, logger="app.main"):
        async with _client() as client:
            response = await client.get("/ready")

    assert response.status_code == 503
    assert response.json()["error"]["message"] == "Database is not ready"
    assert "Database readiness check failed" in caplog.text

    async with _client() as client:
        metrics = await client.get("/metrics")

    assert 'detailing_http_requests_total{method="GET",path="/ready",status_code="503"}' in metrics.text
