"""Tests for the health and metrics endpoints."""

from __future__ import annotations

from httpx import AsyncClient


async def test_healthz_reports_database_and_connections(client: AsyncClient) -> None:
    response = await client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["dependencies"]["database"] == "healthy"
    assert data["live_connections"] == 0


async def test_metrics_exposes_prometheus_text(client: AsyncClient) -> None:
    await client.post("/api/auth/login", json={"email": "x@example.com", "password": "nope"})

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "classroom_auth_events_total" in response.text
