"""
Tracking component models.

Session, event and metric types for the per-visit engagement tracker,
plus the browser-style signals the tracker listens to.

Invariants:
- Events are immutable once recorded
- Event log order is chronological
- Metric counters never decrease within a session
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class EventName(str, Enum):
    """Closed set of trackable event categories."""

    LINK_ACTIVATED = "link_click"
    AD_ACTIVATED = "ad_click"
    SCROLL_MILESTONE = "scroll_milestone"
    PAGE_HIDDEN = "page_hidden"
    PAGE_VISIBLE = "page_visible"
    SEARCH_PERFORMED = "search"
    SHARE_PERFORMED = "article_share"
    FORM_SUBMITTED = "form_submission"
    ERROR_OCCURRED = "error"
    ARTICLE_VIEW = "article_view"
    PAGE_VIEW = "page_view"
    AD_IMPRESSION = "ad_impression"
    COMPONENT_LOAD_TIME = "component_load_time"
    API_CALL = "api_call"
    IMAGE_LOAD = "image_load"


SignalKind = Literal["pointer", "scroll", "visibility"]

SIGNAL_KINDS: tuple[SignalKind, ...] = ("pointer", "scroll", "visibility")


# --- Metrics ---


@dataclass
class EngagementMetrics:
    """
    Running per-session metrics.

    Mutated only by the tracker; readers should work from snapshot() copies.
    """

    page_views: int = 0
    time_on_page_seconds: int = 0
    scroll_depth_percent: float = 0.0
    interaction_count: int = 0
    ad_activation_count: int = 0
    share_count: int = 0
    search_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_views": self.page_views,
            "time_on_page_seconds": self.time_on_page_seconds,
            "scroll_depth_percent": self.scroll_depth_percent,
            "interaction_count": self.interaction_count,
            "ad_activation_count": self.ad_activation_count,
            "share_count": self.share_count,
            "search_count": self.search_count,
        }


# Metric fields the recorder may increment, keyed by event category.
COUNTER_EFFECTS: dict[EventName, str] = {
    EventName.LINK_ACTIVATED: "interaction_count",
    EventName.AD_ACTIVATED: "ad_activation_count",
    EventName.SEARCH_PERFORMED: "search_count",
    EventName.SHARE_PERFORMED: "share_count",
    EventName.ARTICLE_VIEW: "page_views",
}


# --- Event ---


@dataclass(frozen=True)
class Event:
    """A single recorded interaction."""

    event_id: str
    name: EventName
    timestamp: datetime
    url: str | None = None
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.payload, MappingProxyType):
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.event_id,
            "event_name": self.name.value,
            "timestamp": self.timestamp.isoformat(),
            "url": self.url,
            "payload": dict(self.payload),
        }


# --- Session ---


@dataclass
class Session:
    """One page-load lifetime of tracking state."""

    session_id: str
    started_at: datetime
    metrics: EngagementMetrics = field(default_factory=EngagementMetrics)
    events: list[Event] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSummary:
    """Point-in-time summary of a session."""

    session_id: str
    duration_ms: int
    engagement_score: int
    metrics: EngagementMetrics
    events_count: int
    last_activity: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "duration_ms": self.duration_ms,
            "engagement_score": self.engagement_score,
            "metrics": self.metrics.to_dict(),
            "events_count": self.events_count,
            "last_activity": self.last_activity.isoformat(),
        }


# --- Signals ---


@dataclass(frozen=True)
class BoundingBox:
    """Element position relative to the viewport."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class PointerTarget:
    """The element a click landed on."""

    tag_name: str
    class_name: str = ""
    href: str | None = None
    text: str = ""
    bounding_box: BoundingBox = field(default_factory=BoundingBox)


@dataclass(frozen=True)
class PointerSignal:
    target: PointerTarget


@dataclass(frozen=True)
class ScrollSignal:
    """Scroll position sample, in pixels."""

    scroll_y: float
    scroll_height: float
    viewport_height: float


@dataclass(frozen=True)
class VisibilitySignal:
    hidden: bool


# --- Configuration ---


@dataclass(frozen=True)
class TrackingConfig:
    """Tracker configuration."""

    enabled: bool = True
    scroll_throttle_ms: int = 1000
    tick_interval_seconds: float = 1.0
    scroll_milestones: tuple[int, ...] = (25, 50, 75, 90)
    link_label_max_chars: int = 50
    title_max_chars: int = 100
    slow_component_load_ms: int = 1000
    slow_api_call_ms: int = 2000
    slow_image_load_ms: int = 3000
    max_events: int | None = None  # None keeps every event
    send_telemetry: bool = True
    initially_visible: bool = True


DEFAULT_CONFIG = TrackingConfig()


# --- Telemetry Envelope ---


class TelemetryEnvelope(BaseModel):
    """JSON body posted to the telemetry sink for each recorded event."""

    id: str
    session_id: str = Field(alias="sessionId")
    event_name: str = Field(alias="eventName")
    timestamp: datetime
    url: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_event(cls, session_id: str, event: Event) -> TelemetryEnvelope:
        return cls(
            id=event.event_id,
            session_id=session_id,
            event_name=event.name.value,
            timestamp=event.timestamp,
            url=event.url,
            payload=dict(event.payload),
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
