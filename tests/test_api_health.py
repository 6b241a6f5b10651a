"""Tests for health check endpoints."""

from httpx import AsyncClient

from deckbox.main import app


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness check returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_no_dependency_checks(self, client: AsyncClient) -> None:
        data = (await client.get("/health")).json()

        assert data["database"] is None
        assert data["card_lookup"] is None


class TestReadyEndpoint:
    async def test_ready_when_wired(self, client: AsyncClient) -> None:
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "database": "connected",
            "card_lookup": "configured",
        }

    async def test_not_ready_without_card_library(self, client: AsyncClient) -> None:
        library = app.state.card_library
        del app.state.card_library
        try:
            response = await client.get("/ready")
        finally:
            app.state.card_library = library

        assert response.status_code == 503
        assert response.json()["card_lookup"] == "missing"
