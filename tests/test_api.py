"""Tests for API endpoints."""

import pytest
from httpx import AsyncClient

ADMIN_HEADERS = {"X-User-Id": "u-admin", "X-User-Role": "admin"}


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test basic health check endpoint."""
    response = await client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert data["version"] == "0.1.0"
    assert data["environment"] == "development"
    assert data["service"] == "Client Portal Dashboard"


@pytest.mark.asyncio
async def test_liveness(client: AsyncClient) -> None:
    """Test liveness probe endpoint."""
    response = await client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_readiness(client: AsyncClient) -> None:
    """Test readiness probe reports the backend client and cache."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {
        "api": "ok",
        "backend_client": "ok",
        "query_cache": "ok",
    }
    assert data["cached_queries"] == 0


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(client: AsyncClient) -> None:
    """Requests without identity headers are rejected."""
    response = await client.get("/dashboard")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_is_unauthorized(client: AsyncClient) -> None:
    """Roles outside the known set are rejected."""
    response = await client.get(
        "/dashboard", headers={"X-User-Id": "u1", "X-User-Role": "owner"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_role_header_is_case_insensitive(client: AsyncClient, backend) -> None:
    """Role header matching ignores case."""
    backend.on("GET", "/api/admin/stats", data={})
    response = await client.get(
        "/dashboard", headers={**ADMIN_HEADERS, "X-User-Role": "Admin"}
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"
