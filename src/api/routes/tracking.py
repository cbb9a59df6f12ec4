"""
Tracking Session API Routes.

Relays page signals from a browser into a live SessionTracker and
exposes its summary. Sessions live in memory only.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import get_session_registry
from src.api.sessions import SessionNotFoundError, TrackedSession, TrackingSessionRegistry
from src.components.tracking import (
    BoundingBox,
    EventName,
    PointerSignal,
    PointerTarget,
    ScrollSignal,
    VisibilitySignal,
)

router = APIRouter()

EVENT_NAMES = frozenset(name.value for name in EventName)


# --- Request/Response Models ---


class SessionResponse(BaseModel):
    session_id: str


class SignalRequest(BaseModel):
    """A pointer, scroll or visibility signal."""

    kind: Literal["pointer", "scroll", "visibility"]
    # pointer
    tag_name: str | None = Field(None, description="Clicked element tag")
    class_name: str = ""
    href: str | None = None
    text: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    # scroll
    scroll_y: float | None = Field(None, ge=0)
    scroll_height: float | None = Field(None, ge=0)
    viewport_height: float | None = Field(None, ge=0)
    # visibility
    hidden: bool | None = None


class EventRecordRequest(BaseModel):
    event_name: str = Field(..., description="Event category, e.g. search")
    payload: dict[str, Any] = Field(default_factory=dict)


class OkResponse(BaseModel):
    ok: bool = True


class SummaryResponse(BaseModel):
    session_id: str
    duration_ms: int
    engagement_score: int
    engagement_level: str
    metrics: dict[str, Any]
    events_count: int
    last_activity: str


# --- Helpers ---


def _lookup(registry: TrackingSessionRegistry, session_id: str) -> TrackedSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None


def _error_detail(code: str, message: str, field: str | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if field is not None:
        error["field"] = field
    return {"ok": False, "errors": [error]}


def _to_signal(body: SignalRequest) -> PointerSignal | ScrollSignal | VisibilitySignal:
    if body.kind == "pointer":
        if not body.tag_name:
            raise HTTPException(status_code=422, detail="pointer signal requires tag_name")
        return PointerSignal(
            target=PointerTarget(
                tag_name=body.tag_name,
                class_name=body.class_name,
                href=body.href,
                text=body.text,
                bounding_box=BoundingBox(body.x, body.y, body.width, body.height),
            )
        )

    if body.kind == "scroll":
        if body.scroll_y is None or body.scroll_height is None or body.viewport_height is None:
            raise HTTPException(
                status_code=422,
                detail="scroll signal requires scroll_y, scroll_height and viewport_height",
            )
        return ScrollSignal(
            scroll_y=body.scroll_y,
            scroll_height=body.scroll_height,
            viewport_height=body.viewport_height,
        )

    if body.hidden is None:
        raise HTTPException(status_code=422, detail="visibility signal requires hidden")
    return VisibilitySignal(hidden=body.hidden)


# --- Routes ---


@router.post("/sessions", response_model=SessionResponse, status_code=201)
def open_session(
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> SessionResponse:
    """Start a tracking session."""
    try:
        session = registry.open()
    except OverflowError:
        raise HTTPException(status_code=503, detail="Too many tracking sessions") from None
    return SessionResponse(session_id=session.tracker.session_id)


@router.post("/sessions/{session_id}/signals", response_model=OkResponse)
def dispatch_signal(
    session_id: str,
    body: SignalRequest,
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> OkResponse:
    """Feed a document signal into the session's tracker."""
    session = _lookup(registry, session_id)
    session.signals.dispatch(body.kind, _to_signal(body))
    return OkResponse()


@router.post("/sessions/{session_id}/events", response_model=OkResponse)
def record_event(
    session_id: str,
    body: EventRecordRequest,
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> OkResponse:
    """Record a site event (search, share, article view...)."""
    session = _lookup(registry, session_id)
    if body.event_name not in EVENT_NAMES:
        raise HTTPException(
            status_code=400,
            detail=_error_detail(
                "invalid_event_name",
                f"Unknown event '{body.event_name}'",
                field="event_name",
            ),
        )

    event = session.tracker.record(body.event_name, body.payload)
    if event is None:
        # Valid name, but tracking is disabled or recording failed
        raise HTTPException(
            status_code=409,
            detail=_error_detail(
                "event_not_recorded",
                f"Event '{body.event_name}' was not recorded",
            ),
        )
    return OkResponse()


@router.get("/sessions/{session_id}", response_model=SummaryResponse)
def session_summary(
    session_id: str,
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> SummaryResponse:
    """Current metrics, score and level."""
    tracker = _lookup(registry, session_id).tracker
    summary = tracker.session_summary().to_dict()
    return SummaryResponse(
        engagement_level=tracker.engagement_level(),
        **summary,
    )


@router.get("/sessions/{session_id}/export", response_model=dict[str, Any])
def export_session(
    session_id: str,
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> dict[str, Any]:
    """Session summary plus the full event log."""
    return _lookup(registry, session_id).tracker.export_data()


@router.delete("/sessions/{session_id}", response_model=SummaryResponse)
def close_session(
    session_id: str,
    registry: TrackingSessionRegistry = Depends(get_session_registry),
) -> SummaryResponse:
    """Tear the tracker down and return its final summary."""
    try:
        tracker = registry.close(session_id).tracker
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None
    summary = tracker.session_summary().to_dict()
    return SummaryResponse(engagement_level=tracker.engagement_level(), **summary)
