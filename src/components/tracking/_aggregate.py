"""
MetricAggregator - running per-session metric snapshot.

Key behaviors:
- Foreground time accrues one second per tick, only while visible
- No catch-up for ticks missed while hidden
- Scroll depth keeps the maximum ever observed
- Counters only move through increment(); no classification happens here
"""

from __future__ import annotations

from dataclasses import replace

from .models import EngagementMetrics

_COUNTER_FIELDS = frozenset(
    {
        "page_views",
        "interaction_count",
        "ad_activation_count",
        "share_count",
        "search_count",
    }
)


class MetricAggregator:
    """Owns one EngagementMetrics instance and the visibility gate."""

    def __init__(
        self,
        metrics: EngagementMetrics | None = None,
        visible: bool = True,
    ) -> None:
        self._metrics = metrics if metrics is not None else EngagementMetrics()
        self._visible = visible

    @property
    def metrics(self) -> EngagementMetrics:
        return self._metrics

    @property
    def visible(self) -> bool:
        return self._visible

    def set_visible(self, visible: bool) -> None:
        self._visible = visible

    def tick(self) -> bool:
        """Account one elapsed second. Returns True if it counted."""
        if not self._visible:
            return False
        self._metrics.time_on_page_seconds += 1
        return True

    def observe_scroll(self, percent: float) -> float:
        """
        Fold a scroll depth sample into the running maximum.

        Returns:
            The maximum before this sample.
        """
        previous = self._metrics.scroll_depth_percent
        if percent > previous:
            self._metrics.scroll_depth_percent = float(percent)
        return previous

    def increment(self, counter: str, amount: int = 1) -> None:
        if counter not in _COUNTER_FIELDS:
            raise ValueError(f"Unknown counter: {counter}")
        if amount < 0:
            raise ValueError("Counters cannot decrease")
        setattr(self._metrics, counter, getattr(self._metrics, counter) + amount)

    def snapshot(self) -> EngagementMetrics:
        """Independent copy of the current metrics."""
        return replace(self._metrics)
