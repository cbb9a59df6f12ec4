"""
Tracking component - Session event recording and metric aggregation.
"""

from ._aggregate import MetricAggregator
from .component import (
    AD_CLASS_MARKERS,
    SessionTracker,
    Throttle,
    compute_scroll_percent,
    create_session_tracker,
    crossed_milestones,
    generate_event_id,
    generate_session_id,
    is_ad_surface,
    is_link,
    load_config_from_rules,
    truncate,
)
from .models import (
    COUNTER_EFFECTS,
    DEFAULT_CONFIG,
    SIGNAL_KINDS,
    BoundingBox,
    EngagementMetrics,
    Event,
    EventName,
    PointerSignal,
    PointerTarget,
    ScrollSignal,
    Session,
    SessionSummary,
    SignalKind,
    TelemetryEnvelope,
    TrackingConfig,
    VisibilitySignal,
)
from .ports import (
    ClockPort,
    SignalHandler,
    SignalSourcePort,
    TelemetrySinkPort,
    TimerPort,
    UrlProviderPort,
)

__all__ = [
    # Tracker
    "SessionTracker",
    "MetricAggregator",
    "Throttle",
    "create_session_tracker",
    "load_config_from_rules",
    # Pure functions
    "compute_scroll_percent",
    "crossed_milestones",
    "generate_event_id",
    "generate_session_id",
    "is_ad_surface",
    "is_link",
    "truncate",
    # Models
    "BoundingBox",
    "EngagementMetrics",
    "Event",
    "EventName",
    "PointerSignal",
    "PointerTarget",
    "ScrollSignal",
    "Session",
    "SessionSummary",
    "SignalKind",
    "TelemetryEnvelope",
    "TrackingConfig",
    "VisibilitySignal",
    # Constants
    "AD_CLASS_MARKERS",
    "COUNTER_EFFECTS",
    "DEFAULT_CONFIG",
    "SIGNAL_KINDS",
    # Ports
    "ClockPort",
    "SignalHandler",
    "SignalSourcePort",
    "TelemetrySinkPort",
    "TimerPort",
    "UrlProviderPort",
]
