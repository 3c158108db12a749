"""Tests for health check endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient


class TestHealthEndpoints:
    """Tests for health check routes."""

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_health_live_endpoint(self, client: AsyncClient):
        response = await client.get("/health/live")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"alive": True}

    @pytest.mark.asyncio
    async def test_health_ready_endpoint(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            "inventory.api.routes.health.verify_db_connection", AsyncMock(return_value=True)
        )

        response = await client.get("/health/ready")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"database": True, "header_aliases": True}

    @pytest.mark.asyncio
    async def test_health_ready_degraded(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            "inventory.api.routes.health.verify_db_connection", AsyncMock(return_value=False)
        )

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"] is False

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

        response = await client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 32

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Product Inventory API"
