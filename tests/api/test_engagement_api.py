"""
Tests for Engagement Scoring API.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.deps import get_rules
from src.api.routes.engagement import router
from src.rules.models import Rules


@pytest.fixture
def client(rules: Rules) -> TestClient:
    app = FastAPI()
    app.include_router(router, prefix="/api/engagement")
    app.dependency_overrides[get_rules] = lambda: rules
    return TestClient(app)


class TestScore:
    """POST /api/engagement/score"""

    def test_all_at_cap(self, client: TestClient) -> None:
        response = client.post(
            "/api/engagement/score",
            json={
                "time_on_page_seconds": 300,
                "scroll_depth_percent": 100,
                "interaction_count": 20,
                "page_views": 10,
                "share_count": 5,
                "search_count": 5,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 100
        assert data["level"] == "high"

    def test_empty_body_scores_zero(self, client: TestClient) -> None:
        response = client.post("/api/engagement/score", json={})
        assert response.json()["score"] == 0
        assert response.json()["level"] == "low"

    def test_medium(self, client: TestClient) -> None:
        response = client.post(
            "/api/engagement/score",
            json={"time_on_page_seconds": 300, "scroll_depth_percent": 100},
        )
        data = response.json()
        assert data["score"] == 50
        assert data["level"] == "medium"
        assert data["contributions"]["time_on_page_seconds"] == pytest.approx(0.3)

    def test_negative_rejected(self, client: TestClient) -> None:
        response = client.post("/api/engagement/score", json={"interaction_count": -3})
        assert response.status_code == 422

    def test_scroll_over_hundred_rejected(self, client: TestClient) -> None:
        response = client.post("/api/engagement/score", json={"scroll_depth_percent": 120})
        assert response.status_code == 422
