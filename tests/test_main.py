from fastapi.testclient import TestClient

from helperhub.main import app


class TestApplication:
    """App wiring without the database lifespan"""

    def test_health(self):
        client = TestClient(app)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
        assert "X-Processing-Time" in response.headers

    def test_api_routes_mounted(self):
        # included routers are not plain routes and may carry no path
        paths = {getattr(route, "path", None) for route in app.routes}

        for path in [
            "/api/auth/signup",
            "/api/session",
            "/api/profile",
            "/api/business-info",
            "/api/providers/{service_type}",
            "/api/providers/{provider_id}/reviews",
            "/api/requests",
            "/api/requests/{request_id}/respond",
            "/media",
        ]:
            assert path in paths

    def test_requests_need_login(self):
        response = TestClient(app).get("/api/requests")

        assert response.status_code == 401
        assert response.json()["success"] is False
