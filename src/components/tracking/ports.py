"""
Tracking component port definitions.

The tracker owns its subscriptions but not the things it subscribes to:
signal source, interval timer, clock and telemetry sink are all injected.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from .models import SignalKind

SignalHandler = Callable[[Any], None]


class SignalSourcePort(Protocol):
    """Source of document-level signals (clicks, scrolls, visibility changes)."""

    def subscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        """Register handler for a signal kind."""
        ...

    def unsubscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        """Remove a previously registered handler. Unknown handlers are ignored."""
        ...


class TimerPort(Protocol):
    """Repeating timer interface."""

    def set_interval(self, callback: Callable[[], None], interval_seconds: float) -> Any:
        """Invoke callback every interval_seconds. Returns an opaque handle."""
        ...

    def clear_interval(self, handle: Any) -> None:
        """Stop a repeating timer. Unknown handles are ignored."""
        ...


class ClockPort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

    def monotonic(self) -> float:
        """Monotonic seconds, for throttling."""
        ...


class TelemetrySinkPort(Protocol):
    """Outbound delivery of recorded events."""

    def send(self, envelope: dict[str, Any]) -> None:
        """
        Deliver one event envelope.

        Must not block the caller. Delivery failures are the sink's concern.
        """
        ...


class UrlProviderPort(Protocol):
    """Current page URL, attached to every event."""

    def current_url(self) -> str | None:
        ...
