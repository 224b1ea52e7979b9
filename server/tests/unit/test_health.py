"""Unit tests for health, readiness and metrics endpoints."""

import pytest

from tripsage.core.database import Database


@pytest.mark.asyncio
async def test_health_check(test_client):
    """Test the health check endpoint."""
    response = await test_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "service" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_ready_check(test_client):
    """Test the readiness check endpoint."""
    response = await test_client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_ready_check_store_unreachable(test_app, test_client, monkeypatch):
    """Test that readiness reports 503 when the store does not answer."""

    async def unreachable(self):
        return False

    monkeypatch.setattr(Database, "ping", unreachable)

    response = await test_client.get("/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "unavailable"


@pytest.mark.asyncio
async def test_request_id_is_propagated(test_client):
    response = await test_client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client, seed, auth_headers):
    """Test that unit-of-work outcomes show up in the Prometheus output."""
    user = await seed.user()
    await test_client.post("/v1/notifications/read", json={"notification_id": 1}, headers=auth_headers(user.id))

    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'tripsage_transactions_total{name="mark_notification_read",outcome="not_found"}' in response.text
