"""
In-memory registry of live tracking sessions.

Each session owns its signal bus and tracker; all sessions share one
interval timer. Closing a session tears the tracker down, so no
listener or timer outlives it. Nothing here is persisted.

Browsers usually leave without closing their session, so sessions idle
for longer than idle_timeout_seconds are reaped: on every open() and on
the sweeper interval.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from src.adapters.clock import SystemClock
from src.adapters.signal_bus import InProcessSignalBus
from src.components.engagement import ScoringConfig
from src.components.tracking import (
    ClockPort,
    SessionTracker,
    TelemetrySinkPort,
    TimerPort,
    TrackingConfig,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is not registered."""


@dataclass
class TrackedSession:
    tracker: SessionTracker
    signals: InProcessSignalBus
    last_seen: float  # ClockPort.monotonic() of the last request


class TrackingSessionRegistry:
    def __init__(
        self,
        timer: TimerPort,
        sink: TelemetrySinkPort | None = None,
        config: TrackingConfig | None = None,
        scoring: ScoringConfig | None = None,
        max_sessions: int = 10_000,
        idle_timeout_seconds: float = 1800.0,
        clock: ClockPort | None = None,
    ) -> None:
        self._timer = timer
        self._clock = clock or SystemClock()
        self._sink = sink
        self._config = config
        self._scoring = scoring
        self._max_sessions = max_sessions
        self._idle_timeout = idle_timeout_seconds
        self._sessions: dict[str, TrackedSession] = {}
        self._lock = threading.Lock()
        self._sweeper: Any = None

    @property
    def sink(self) -> TelemetrySinkPort | None:
        return self._sink

    def open(self) -> TrackedSession:
        self.reap_idle()
        with self._lock:
            if len(self._sessions) >= self._max_sessions:
                raise OverflowError("Too many open tracking sessions")

        signals = InProcessSignalBus()
        tracker = SessionTracker(
            signals,
            self._timer,
            sink=self._sink,
            clock=self._clock,
            config=self._config,
            scoring=self._scoring,
        )
        tracker.init()
        session = TrackedSession(
            tracker=tracker,
            signals=signals,
            last_seen=self._clock.monotonic(),
        )
        with self._lock:
            self._sessions[tracker.session_id] = session
        return session

    def get(self, session_id: str) -> TrackedSession:
        """Look up a session and mark it active."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_seen = self._clock.monotonic()
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> TrackedSession:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.tracker.teardown()
        return session

    def reap_idle(self) -> int:
        """Tear down and forget sessions idle past the timeout."""
        cutoff = self._clock.monotonic() - self._idle_timeout
        with self._lock:
            idle = [sid for sid, s in self._sessions.items() if s.last_seen <= cutoff]
            reaped = [self._sessions.pop(sid) for sid in idle]

        for session in reaped:
            session.tracker.teardown()
        if reaped:
            logger.info("Reaped %d idle tracking sessions", len(reaped))
        return len(reaped)

    def start_sweeper(self, interval_seconds: float) -> None:
        """Reap idle sessions every interval_seconds on the shared timer."""
        if self._sweeper is None:
            self._sweeper = self._timer.set_interval(self.reap_idle, interval_seconds)

    def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._timer.clear_interval(self._sweeper)
            self._sweeper = None

    def close_all(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.tracker.teardown()
        if sessions:
            logger.info("Closed %d tracking sessions", len(sessions))
        return len(sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
