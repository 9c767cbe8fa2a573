"""
Integration tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch


class TestHealthEndpoints:
    """Tests for /api/health endpoints."""

    async def test_health_check_basic(self, anonymous_client):
        """Test basic health check endpoint."""
        response = await anonymous_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_check_live(self, anonymous_client):
        """Test liveness probe endpoint."""
        response = await anonymous_client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_detailed_without_redis(self, anonymous_client):
        """Redis is optional, so its absence only degrades the service."""
        response = await anonymous_client.get("/api/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["database"]["details"]["dialect"] == "sqlite"
        assert data["components"]["redis"]["status"] == "degraded"

    async def test_detailed_all_healthy(self, anonymous_client):
        """Test detailed health check with every component up."""
        with patch(
            "api.routers.health.check_redis",
            new_callable=AsyncMock,
            return_value={"status": "healthy", "latency_ms": 0.4, "version": "7.2.0"},
        ):
            response = await anonymous_client.get("/api/health/detailed")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["redis"]["details"]["version"] == "7.2.0"
        assert "uptimeSeconds" in data

    async def test_detailed_database_down(self, anonymous_client):
        """The database is required for the service to be healthy."""
        with patch(
            "api.routers.health.check_database",
            new_callable=AsyncMock,
            return_value={"status": "unhealthy", "error": "connection refused", "latency_ms": None},
        ):
            response = await anonymous_client.get("/api/health/detailed")

        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"]["error"] == "connection refused"

    async def test_root_endpoint(self, anonymous_client):
        """Test root endpoint returns API info."""
        response = await anonymous_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "VisionCast API"
        assert "version" in data


class TestServiceUnavailable:
    """Tests for endpoints when the database is not configured."""

    async def test_creations_without_database(self):
        from httpx import ASGITransport, AsyncClient

        from api.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/creations/public")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "service_unavailable"
