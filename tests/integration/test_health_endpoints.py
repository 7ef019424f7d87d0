from fastapi.testclient import TestClient


class TestHealthEndpoints:

    def test_health_pings_database(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    def test_single_health_route(self, client: TestClient):
        assert client.get("/healthz").status_code == 404
