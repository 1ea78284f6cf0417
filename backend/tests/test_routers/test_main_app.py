"""Tests for app-level wiring: health check, correlation ids and timing headers."""

from fastapi.testclient import TestClient


class TestAppWiring:
    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json() == {"message": "Osyris Family Portal API"}

    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["storage"] == "local"
        assert set(body["scheduler"]) == {"running", "jobs"}

    def test_generates_correlation_id(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert len(response.headers["X-Correlation-ID"]) == 8
        assert response.headers["X-Response-Time"].endswith("s")

    def test_echoes_safe_correlation_id(self, client: TestClient) -> None:
        response = client.get(
            "/api/health", headers={"X-Correlation-ID": "req-abc-123"}
        )
        assert response.headers["X-Correlation-ID"] == "req-abc-123"

    def test_error_body_carries_correlation_id(self, client: TestClient) -> None:
        response = client.get(
            "/api/activities/12345", headers={"X-Correlation-ID": "trace-42"}
        )
        assert response.status_code == 404
        assert response.json()["correlation_id"] == "trace-42"
