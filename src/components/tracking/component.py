"""
Tracking component - per-session event recording and metric aggregation.

Turns document signals into an ordered event log and a live metrics
snapshot, and hands each recorded event to the telemetry sink.

Key behaviors:
- Every click counts as an interaction; links and ad surfaces also emit events
- Scroll samples are throttled (default one per 1000 ms)
- Each scroll milestone fires at most once per session
- Foreground time only accrues while the page is visible
- Nothing raised inside the tracker reaches the caller
- teardown() removes every subscription and clears the interval timer
"""

from __future__ import annotations

import logging
import threading
import traceback
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.components.engagement import (
    EngagementLevel,
    ScoringConfig,
    engagement_level,
    score_engagement,
)

from ._aggregate import MetricAggregator
from .models import (
    COUNTER_EFFECTS,
    DEFAULT_CONFIG,
    EngagementMetrics,
    Event,
    EventName,
    PointerSignal,
    PointerTarget,
    ScrollSignal,
    Session,
    SessionSummary,
    TelemetryEnvelope,
    TrackingConfig,
    VisibilitySignal,
)
from .ports import (
    ClockPort,
    SignalSourcePort,
    TelemetrySinkPort,
    TimerPort,
    UrlProviderPort,
)

logger = logging.getLogger(__name__)

AD_CLASS_MARKERS: tuple[str, ...] = ("ad-", "advertisement")


# --- Pure Functions ---


def generate_session_id() -> str:
    return f"session_{uuid4().hex}"


def generate_event_id() -> str:
    return f"event_{uuid4().hex}"


def truncate(text: str | None, max_chars: int) -> str:
    """Trim whitespace and cut text to at most max_chars characters."""
    if not text:
        return ""
    return text.strip()[:max_chars]


def is_link(target: PointerTarget) -> bool:
    return target.tag_name.lower() == "a"


def is_ad_surface(target: PointerTarget) -> bool:
    """Ad surfaces are marked by an ``ad-`` or ``advertisement`` class name."""
    class_name = target.class_name or ""
    return any(marker in class_name for marker in AD_CLASS_MARKERS)


def compute_scroll_percent(
    scroll_y: float,
    scroll_height: float,
    viewport_height: float,
) -> float | None:
    """
    Convert a scroll position to a depth percentage.

    Returns:
        Whole-number percentage clamped to 0-100, or None when the page
        cannot scroll.
    """
    scrollable = scroll_height - viewport_height
    if scrollable <= 0:
        return None
    percent = int(scroll_y / scrollable * 100 + 0.5)
    return float(max(0, min(100, percent)))


def crossed_milestones(
    previous_max: float,
    current_max: float,
    milestones: Iterable[int],
) -> list[int]:
    """Milestones reached by moving the maximum from previous_max to current_max."""
    return [m for m in sorted(milestones) if previous_max < m <= current_max]


class Throttle:
    """Leading-edge throttle: at most one call per interval, extras dropped."""

    def __init__(self, interval_ms: int, clock: ClockPort) -> None:
        self._interval_ms = interval_ms
        self._clock = clock
        self._last: float | None = None

    def allow(self) -> bool:
        now = self._clock.monotonic()
        if self._last is not None and (now - self._last) * 1000 < self._interval_ms:
            return False
        self._last = now
        return True


# --- Session Tracker ---


class SessionTracker:
    """
    Engagement tracker for one session.

    Construct, call init() to start listening, teardown() to stop.
    Several trackers can coexist; none of them hold global state.
    """

    def __init__(
        self,
        signals: SignalSourcePort,
        timer: TimerPort,
        *,
        sink: TelemetrySinkPort | None = None,
        clock: ClockPort | None = None,
        url_provider: UrlProviderPort | None = None,
        config: TrackingConfig | None = None,
        scoring: ScoringConfig | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self._signals = signals
        self._timer = timer
        self._sink = sink
        if clock is None:
            from src.adapters.clock import SystemClock

            clock = SystemClock()
        self._clock = clock
        self._url_provider = url_provider
        self._scoring = scoring

        self._lock = threading.RLock()
        self._session = Session(
            session_id=generate_session_id(),
            started_at=self._clock.now_utc(),
        )
        self._aggregator = MetricAggregator(
            self._session.metrics,
            visible=self.config.initially_visible,
        )
        self._scroll_throttle = Throttle(self.config.scroll_throttle_ms, self._clock)
        self._fired_milestones: set[int] = set()
        self._events_recorded = 0
        self._timer_handle: Any = None
        self._active = False

    # --- Lifecycle ---

    def init(self) -> None:
        """Subscribe to document signals and start the foreground-time timer."""
        if self._active or not self.config.enabled:
            return

        self._signals.subscribe("pointer", self._on_pointer)
        self._signals.subscribe("scroll", self._on_scroll)
        self._signals.subscribe("visibility", self._on_visibility)
        self._timer_handle = self._timer.set_interval(
            self._on_tick, self.config.tick_interval_seconds
        )
        self._active = True
        logger.info("Tracking session %s started", self.session_id)

    def teardown(self) -> None:
        """Remove every subscription and clear the interval timer."""
        if not self._active:
            return

        self._signals.unsubscribe("pointer", self._on_pointer)
        self._signals.unsubscribe("scroll", self._on_scroll)
        self._signals.unsubscribe("visibility", self._on_visibility)
        if self._timer_handle is not None:
            self._timer.clear_interval(self._timer_handle)
            self._timer_handle = None
        self._active = False
        logger.info("Tracking session %s stopped", self.session_id)

    def __enter__(self) -> SessionTracker:
        self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()

    # --- Accessors ---

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def started_at(self) -> datetime:
        return self._session.started_at

    @property
    def is_visible(self) -> bool:
        return self._aggregator.visible

    @property
    def events_recorded(self) -> int:
        """Lifetime count, including events evicted from the log."""
        return self._events_recorded

    @property
    def events(self) -> tuple[Event, ...]:
        with self._lock:
            return tuple(self._session.events)

    @property
    def metrics(self) -> EngagementMetrics:
        with self._lock:
            return self._aggregator.snapshot()

    # --- Recording ---

    def record(
        self,
        event_name: EventName | str,
        payload: Mapping[str, Any] | None = None,
    ) -> Event | None:
        """
        Record an event and apply its counter effect.

        Never raises. Unknown event names are logged and ignored.

        Returns:
            The recorded Event, or None if nothing was recorded.
        """
        try:
            name = EventName(event_name)
        except ValueError:
            logger.warning("Ignoring unknown event name %r", event_name)
            return None
        return self._record(name, payload, apply_counter=True)

    def _record(
        self,
        name: EventName,
        payload: Mapping[str, Any] | None,
        apply_counter: bool,
    ) -> Event | None:
        if not self.config.enabled:
            return None

        try:
            with self._lock:
                event = self._append(name, payload or {})
                counter = COUNTER_EFFECTS.get(name)
                if apply_counter and counter is not None:
                    self._aggregator.increment(counter)
        except Exception:
            logger.exception("Failed to record %s event", name.value)
            return None

        logger.debug("Analytics event %s: %s", name.value, dict(event.payload))
        self._deliver(event)
        return event

    def _append(self, name: EventName, payload: Mapping[str, Any]) -> Event:
        url = self._url_provider.current_url() if self._url_provider else None
        event = Event(
            event_id=generate_event_id(),
            name=name,
            timestamp=self._clock.now_utc(),
            url=url,
            payload=payload,
        )
        events = self._session.events
        events.append(event)
        self._events_recorded += 1

        max_events = self.config.max_events
        if max_events is not None and len(events) > max_events:
            del events[: len(events) - max_events]
        return event

    def _deliver(self, event: Event) -> None:
        if self._sink is None or not self.config.send_telemetry:
            return
        try:
            envelope = TelemetryEnvelope.from_event(self.session_id, event)
            self._sink.send(envelope.to_wire())
        except Exception as e:
            logger.warning("Telemetry delivery failed for %s: %s", event.event_id, e)

    # --- Signal Handlers ---

    def _on_pointer(self, signal: PointerSignal) -> None:
        try:
            target = signal.target
            with self._lock:
                self._aggregator.increment("interaction_count")

            # The click above already counted the interaction.
            if is_link(target):
                self._record(
                    EventName.LINK_ACTIVATED,
                    {
                        "href": target.href,
                        "text": truncate(target.text, self.config.link_label_max_chars),
                    },
                    apply_counter=False,
                )

            if is_ad_surface(target):
                self._record(
                    EventName.AD_ACTIVATED,
                    {
                        "ad_type": target.class_name,
                        "position": target.bounding_box.to_dict(),
                    },
                    apply_counter=True,
                )
        except Exception:
            logger.exception("Pointer handler failed")

    def _on_scroll(self, signal: ScrollSignal) -> None:
        try:
            percent = compute_scroll_percent(
                signal.scroll_y,
                signal.scroll_height,
                signal.viewport_height,
            )
            if percent is None:
                return

            with self._lock:
                if not self._scroll_throttle.allow():
                    return
                previous = self._aggregator.observe_scroll(percent)
                current = self._aggregator.metrics.scroll_depth_percent
                milestones = [
                    m
                    for m in crossed_milestones(
                        previous, current, self.config.scroll_milestones
                    )
                    if m not in self._fired_milestones
                ]
                self._fired_milestones.update(milestones)

            for milestone in milestones:
                self._record(
                    EventName.SCROLL_MILESTONE,
                    {"depth": milestone},
                    apply_counter=False,
                )
        except Exception:
            logger.exception("Scroll handler failed")

    def _on_visibility(self, signal: VisibilitySignal) -> None:
        try:
            with self._lock:
                self._aggregator.set_visible(not signal.hidden)
            name = EventName.PAGE_HIDDEN if signal.hidden else EventName.PAGE_VISIBLE
            self._record(name, {"timestamp": self._now_ms()}, apply_counter=False)
        except Exception:
            logger.exception("Visibility handler failed")

    def _on_tick(self) -> None:
        try:
            with self._lock:
                self._aggregator.tick()
        except Exception:
            logger.exception("Foreground timer tick failed")

    # --- Site Events ---

    def track_page_view(self, path: str, title: str | None = None) -> Event | None:
        return self.record(EventName.PAGE_VIEW, {"path": path, "title": title})

    def track_article_view(
        self,
        article_id: str,
        category: str | None,
        title: str,
        referrer: str | None = None,
    ) -> Event | None:
        return self.record(
            EventName.ARTICLE_VIEW,
            {
                "article_id": article_id,
                "category": category,
                "title": truncate(title, self.config.title_max_chars),
                "referrer": referrer,
            },
        )

    def track_article_share(self, article_id: str, platform: str, title: str) -> Event | None:
        return self.record(
            EventName.SHARE_PERFORMED,
            {
                "article_id": article_id,
                "platform": platform,
                "title": truncate(title, self.config.title_max_chars),
            },
        )

    def track_search(
        self,
        query: str,
        results_count: int,
        category: str | None = None,
    ) -> Event | None:
        return self.record(
            EventName.SEARCH_PERFORMED,
            {
                "query": truncate(query, self.config.title_max_chars),
                "results_count": results_count,
                "category": category,
            },
        )

    def track_ad_impression(
        self,
        ad_id: str,
        position: str,
        category: str | None = None,
        viewport: Mapping[str, float] | None = None,
    ) -> Event | None:
        return self.record(
            EventName.AD_IMPRESSION,
            {
                "ad_id": ad_id,
                "position": position,
                "category": category,
                "viewport_size": dict(viewport) if viewport else None,
            },
        )

    def track_form_submission(self, form_type: str, success: bool = True) -> Event | None:
        return self.record(
            EventName.FORM_SUBMITTED,
            {
                "form_type": form_type,
                "success": success,
                "time_to_complete_ms": self._elapsed_ms(),
            },
        )

    def track_error(
        self,
        error: BaseException,
        context: Mapping[str, Any] | None = None,
    ) -> Event | None:
        return self.record(
            EventName.ERROR_OCCURRED,
            {
                "message": str(error),
                "error_type": type(error).__name__,
                "stack": "".join(traceback.format_exception(error)),
                "context": dict(context or {}),
            },
        )

    def track_component_load(self, component_name: str, load_time_ms: float) -> Event | None:
        return self.record(
            EventName.COMPONENT_LOAD_TIME,
            {
                "component_name": component_name,
                "load_time_ms": load_time_ms,
                "is_slow_load": load_time_ms > self.config.slow_component_load_ms,
            },
        )

    def track_api_call(
        self,
        endpoint: str,
        duration_ms: float,
        success: bool = True,
    ) -> Event | None:
        return self.record(
            EventName.API_CALL,
            {
                "endpoint": endpoint,
                "duration_ms": duration_ms,
                "success": success,
                "is_slow": duration_ms > self.config.slow_api_call_ms,
            },
        )

    def track_image_load(
        self,
        src: str,
        load_time_ms: float,
        success: bool = True,
    ) -> Event | None:
        return self.record(
            EventName.IMAGE_LOAD,
            {
                "src": truncate(src, self.config.title_max_chars),
                "load_time_ms": load_time_ms,
                "success": success,
                "is_slow": load_time_ms > self.config.slow_image_load_ms,
            },
        )

    # --- Scoring & Summaries ---

    def engagement_score(self) -> int:
        return score_engagement(self.metrics, self._scoring)

    def engagement_level(self) -> EngagementLevel:
        return engagement_level(self.engagement_score(), self._scoring)

    def session_summary(self) -> SessionSummary:
        with self._lock:
            metrics = self._aggregator.snapshot()
            events = self._session.events
            last_activity = events[-1].timestamp if events else self.started_at
            events_count = len(events)

        return SessionSummary(
            session_id=self.session_id,
            duration_ms=self._elapsed_ms(),
            engagement_score=score_engagement(metrics, self._scoring),
            metrics=metrics,
            events_count=events_count,
            last_activity=last_activity,
        )

    def export_data(self) -> dict[str, Any]:
        """Session summary plus the full event log, as plain data."""
        summary = self.session_summary()
        return {
            "session": summary.to_dict(),
            "events": [event.to_dict() for event in self.events],
        }

    # --- Helpers ---

    def _now_ms(self) -> int:
        return int(self._clock.now_utc().timestamp() * 1000)

    def _elapsed_ms(self) -> int:
        delta = self._clock.now_utc() - self.started_at
        return int(delta.total_seconds() * 1000)


# --- Factory ---


def create_session_tracker(
    signals: SignalSourcePort,
    timer: TimerPort,
    sink: TelemetrySinkPort | None = None,
    config: TrackingConfig | None = None,
    scoring: ScoringConfig | None = None,
    start: bool = True,
) -> SessionTracker:
    """Create a tracker and, by default, start it."""
    tracker = SessionTracker(
        signals,
        timer,
        sink=sink,
        config=config,
        scoring=scoring,
    )
    if start:
        tracker.init()
    return tracker


def load_config_from_rules(rules: dict[str, Any]) -> TrackingConfig:
    """
    Load TrackingConfig from the ``tracking`` section of rules.yaml.

    Missing keys fall back to TrackingConfig defaults.
    """
    tracking = rules.get("tracking", {}) or {}
    defaults = DEFAULT_CONFIG
    milestones = tracking.get("scroll_milestones", defaults.scroll_milestones)
    return TrackingConfig(
        enabled=tracking.get("enabled", defaults.enabled),
        scroll_throttle_ms=tracking.get("scroll_throttle_ms", defaults.scroll_throttle_ms),
        tick_interval_seconds=tracking.get(
            "tick_interval_seconds", defaults.tick_interval_seconds
        ),
        scroll_milestones=tuple(int(m) for m in milestones),
        link_label_max_chars=tracking.get(
            "link_label_max_chars", defaults.link_label_max_chars
        ),
        title_max_chars=tracking.get("title_max_chars", defaults.title_max_chars),
        slow_component_load_ms=tracking.get(
            "slow_component_load_ms", defaults.slow_component_load_ms
        ),
        slow_api_call_ms=tracking.get("slow_api_call_ms", defaults.slow_api_call_ms),
        slow_image_load_ms=tracking.get("slow_image_load_ms", defaults.slow_image_load_ms),
        max_events=tracking.get("max_events", defaults.max_events),
        send_telemetry=tracking.get("send_telemetry", defaults.send_telemetry),
        initially_visible=tracking.get("initially_visible", defaults.initially_visible),
    )
