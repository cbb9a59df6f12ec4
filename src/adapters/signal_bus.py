"""
In-process signal bus.

Stands in for the document's global listeners: hosts dispatch pointer,
scroll and visibility signals; trackers subscribe and unsubscribe.
Handler errors are logged and never reach the dispatcher.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from src.components.tracking import SIGNAL_KINDS, SignalHandler, SignalKind

logger = logging.getLogger(__name__)


class InProcessSignalBus:
    """Satisfies SignalSourcePort."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[str, list[SignalHandler]] = {kind: [] for kind in SIGNAL_KINDS}

    def subscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        if kind not in self._handlers:
            raise ValueError(f"Unknown signal kind: {kind}")
        with self._lock:
            self._handlers[kind].append(handler)

    def unsubscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

    def dispatch(self, kind: SignalKind, signal: Any) -> int:
        """
        Deliver a signal to every current subscriber.

        Returns:
            Number of handlers invoked
        """
        with self._lock:
            handlers = list(self._handlers.get(kind, []))

        for handler in handlers:
            try:
                handler(signal)
            except Exception:
                logger.exception("Signal handler failed for %s", kind)
        return len(handlers)

    def listener_count(self, kind: SignalKind | None = None) -> int:
        with self._lock:
            if kind is not None:
                return len(self._handlers.get(kind, []))
            return sum(len(handlers) for handlers in self._handlers.values())
