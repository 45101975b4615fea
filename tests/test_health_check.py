import pytest

from modules.core import views as core_views


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_cache_outage_reports_unhealthy(self, client, monkeypatch):
        def broken_cache():
            raise ConnectionError("redis unavailable")

        monkeypatch.setitem(core_views._CHECKS, "cache", broken_cache)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["success"] is False
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"

    def test_health_check_is_public(self, api_client):
        response = api_client.get("/health", HTTP_AUTHORIZATION="Bearer not-a-token")
        assert response.status_code == 200
