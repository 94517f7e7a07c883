from __future__ import annotations

from fastapi.testclient import TestClient

from safeshare.main import app as fastapi_app


def test_health_endpoint(client):
    """GET /api/health should return 200 with status=healthy."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "safeshare-backend"
    assert data["version"] == "0.1.0"
    assert data["checks"]["store"]["status"] == "ok"


def test_readiness_endpoint(client):
    """GET /api/health/ready should return 200 with status=ready."""
    response = client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


# ── Edge Cases ────────────────────────────────────────────────────────


class TestHealthEdgeCases:
    def test_health_reports_item_count(self, client):
        before = client.get("/api/health").json()["checks"]["store"]["items"]
        # Health reads the store created by the app lifespan, not the test override
        fastapi_app.state.share_store.put(b"x", "a.txt", False, 1)
        after = client.get("/api/health").json()["checks"]["store"]["items"]
        assert after == before + 1

    def test_not_ready_without_store(self, client):
        original = fastapi_app.state.share_store
        fastapi_app.state.share_store = None
        try:
            ready = client.get("/api/health/ready")
            health = client.get("/api/health")
        finally:
            fastapi_app.state.share_store = original
        assert ready.status_code == 503
        assert ready.json()["status"] == "not ready"
        assert health.json()["status"] == "unhealthy"
        assert health.json()["checks"]["store"]["status"] == "unavailable"

    def test_lifespan_rehydrates_before_serving(self):
        """A unit already on disk is served right after startup."""
        with TestClient(fastapi_app) as tc:
            item_id = fastapi_app.state.share_store.put(b"persisted", "p.txt", False, 3)

        with TestClient(fastapi_app) as tc:
            assert item_id in fastapi_app.state.share_store
            resp = tc.get(f"/api/info/{item_id}")
            assert resp.status_code == 200
            assert resp.json()["filename"] == "p.txt"
