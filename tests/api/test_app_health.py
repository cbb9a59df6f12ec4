"""
Tests for the assembled application.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from src.api.main import app


def test_health() -> None:
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "api"}


def test_routers_mounted() -> None:
    paths = {route.path for route in app.routes}
    assert "/api/ads/placement" in paths
    assert "/api/ads/inline-plan" in paths
    assert "/api/engagement/score" in paths
    assert "/api/tracking/sessions" in paths
