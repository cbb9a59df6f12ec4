"""
Tests for Tracking Session API.

Sessions run against a manual timer and an in-memory telemetry sink.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.telemetry import InMemoryTelemetrySink
from src.api.deps import get_session_registry
from src.api.routes.tracking import router
from src.api.sessions import TrackingSessionRegistry
from src.components.tracking import TrackingConfig

# --- Test Client Setup ---


@pytest.fixture
def sink() -> InMemoryTelemetrySink:
    return InMemoryTelemetrySink()


@pytest.fixture
def registry(manual_timer, sink) -> TrackingSessionRegistry:
    return TrackingSessionRegistry(timer=manual_timer, sink=sink)


@pytest.fixture
def client(registry: TrackingSessionRegistry) -> TestClient:
    app = FastAPI()
    app.include_router(router, prefix="/api/tracking")
    app.dependency_overrides[get_session_registry] = lambda: registry
    return TestClient(app)


@pytest.fixture
def session_id(client: TestClient) -> str:
    response = client.post("/api/tracking/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def summary(client: TestClient, session_id: str) -> dict:
    response = client.get(f"/api/tracking/sessions/{session_id}")
    assert response.status_code == 200
    return response.json()


# --- Sessions ---


class TestSessions:
    def test_open_session(self, session_id: str, registry: TrackingSessionRegistry) -> None:
        assert session_id.startswith("session_")
        assert len(registry) == 1

    def test_new_session_summary(self, client: TestClient, session_id: str) -> None:
        data = summary(client, session_id)
        assert data["session_id"] == session_id
        assert data["engagement_score"] == 0
        assert data["engagement_level"] == "low"
        assert data["events_count"] == 0
        assert data["metrics"]["interaction_count"] == 0

    def test_unknown_session(self, client: TestClient) -> None:
        response = client.get("/api/tracking/sessions/session_missing")
        assert response.status_code == 404

    def test_close_session(
        self, client: TestClient, session_id: str, registry: TrackingSessionRegistry, manual_timer
    ) -> None:
        response = client.delete(f"/api/tracking/sessions/{session_id}")
        assert response.status_code == 200
        assert response.json()["session_id"] == session_id
        assert len(registry) == 0
        assert manual_timer.callbacks == {}
        assert client.get(f"/api/tracking/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/tracking/sessions/{session_id}").status_code == 404

    def test_session_limit(self, manual_timer) -> None:
        registry = TrackingSessionRegistry(timer=manual_timer, max_sessions=1)
        app = FastAPI()
        app.include_router(router, prefix="/api/tracking")
        app.dependency_overrides[get_session_registry] = lambda: registry
        client = TestClient(app)
        assert client.post("/api/tracking/sessions").status_code == 201
        assert client.post("/api/tracking/sessions").status_code == 503

    def test_foreground_time(self, client: TestClient, session_id: str, manual_timer) -> None:
        manual_timer.fire(30)
        assert summary(client, session_id)["metrics"]["time_on_page_seconds"] == 30


# --- Signals ---


class TestSignals:
    def test_ad_click(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={"kind": "pointer", "tag_name": "div", "class_name": "ad-banner", "width": 728},
        )
        assert response.status_code == 200
        data = summary(client, session_id)
        assert data["metrics"]["interaction_count"] == 1
        assert data["metrics"]["ad_activation_count"] == 1
        assert data["events_count"] == 1

    def test_scroll_milestones(self, client: TestClient, session_id: str) -> None:
        client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={
                "kind": "scroll",
                "scroll_y": 950,
                "scroll_height": 2000,
                "viewport_height": 1000,
            },
        )
        export = client.get(f"/api/tracking/sessions/{session_id}/export").json()
        depths = [e["payload"]["depth"] for e in export["events"]]
        assert depths == [25, 50, 75, 90]
        assert export["session"]["metrics"]["scroll_depth_percent"] == 95.0

    def test_visibility(self, client: TestClient, session_id: str, manual_timer) -> None:
        client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={"kind": "visibility", "hidden": True},
        )
        manual_timer.fire(10)
        assert summary(client, session_id)["metrics"]["time_on_page_seconds"] == 0

    def test_pointer_requires_tag(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={"kind": "pointer"},
        )
        assert response.status_code == 422

    def test_scroll_requires_geometry(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={"kind": "scroll", "scroll_y": 10},
        )
        assert response.status_code == 422

    def test_unknown_kind(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/signals",
            json={"kind": "keyboard"},
        )
        assert response.status_code == 422


# --- Events ---


class TestEvents:
    def test_record_search(
        self, client: TestClient, session_id: str, sink: InMemoryTelemetrySink
    ) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/events",
            json={"event_name": "search", "payload": {"query": "seed drills"}},
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert summary(client, session_id)["metrics"]["search_count"] == 1

        sent = sink.get_all()
        assert len(sent) == 1
        assert sent[0]["sessionId"] == session_id
        assert sent[0]["eventName"] == "search"

    def test_unknown_event_rejected(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/api/tracking/sessions/{session_id}/events",
            json={"event_name": "custom_event"},
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert any(e["code"] == "invalid_event_name" for e in errors)

    def test_engagement_rises(self, client: TestClient, session_id: str, manual_timer) -> None:
        manual_timer.fire(300)
        for _ in range(5):
            client.post(
                f"/api/tracking/sessions/{session_id}/events",
                json={"event_name": "article_share"},
            )
        data = summary(client, session_id)
        # 0.3 (time) + 0.1 (shares)
        assert data["engagement_score"] == 40
        assert data["engagement_level"] == "medium"

    def test_disabled_tracking_not_recorded(self, manual_timer) -> None:
        registry = TrackingSessionRegistry(
            timer=manual_timer, config=TrackingConfig(enabled=False)
        )
        app = FastAPI()
        app.include_router(router, prefix="/api/tracking")
        app.dependency_overrides[get_session_registry] = lambda: registry
        client = TestClient(app)
        session_id = client.post("/api/tracking/sessions").json()["session_id"]

        response = client.post(
            f"/api/tracking/sessions/{session_id}/events",
            json={"event_name": "search", "payload": {"query": "hay"}},
        )
        assert response.status_code == 409
        errors = response.json()["detail"]["errors"]
        assert [e["code"] for e in errors] == ["event_not_recorded"]

        response = client.post(
            f"/api/tracking/sessions/{session_id}/events",
            json={"event_name": "custom_event"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "invalid_event_name"


# --- Idle Sessions ---


class FakeMonotonicClock:
    def __init__(self) -> None:
        self._mono = 0.0

    def now_utc(self) -> datetime:
        return datetime(2026, 1, 14, 12, 0, 0, tzinfo=UTC) + timedelta(seconds=self._mono)

    def monotonic(self) -> float:
        return self._mono

    def advance(self, seconds: float) -> None:
        self._mono += seconds


class TestIdleSessions:
    def test_idle_session_expires(self, manual_timer) -> None:
        clock = FakeMonotonicClock()
        registry = TrackingSessionRegistry(
            timer=manual_timer, max_sessions=1, idle_timeout_seconds=600, clock=clock
        )
        app = FastAPI()
        app.include_router(router, prefix="/api/tracking")
        app.dependency_overrides[get_session_registry] = lambda: registry
        client = TestClient(app)

        abandoned = client.post("/api/tracking/sessions").json()["session_id"]
        clock.advance(601)

        # A full registry makes room by reaping the abandoned session
        assert client.post("/api/tracking/sessions").status_code == 201
        assert client.get(f"/api/tracking/sessions/{abandoned}").status_code == 404
        assert len(manual_timer.callbacks) == 1
