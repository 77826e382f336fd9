"""Health endpoint and fallback route tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "OK"
    assert "timestamp" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_unknown_route(client):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Route not found"}
