"""
Threaded interval timer.

Background-thread implementation of TimerPort. Each interval runs on its
own daemon thread and waits on a stop event between callbacks, so
clear_interval() returns promptly.

Key behaviors:
- Callback errors are logged; the interval keeps running
- Missed intervals are not replayed
- clear_all() stops every interval (process shutdown)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class IntervalHandle:
    """Opaque handle returned by set_interval()."""

    id: str = field(default_factory=lambda: uuid4().hex)
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None


class ThreadingIntervalTimer:
    """Satisfies TimerPort."""

    def __init__(self, join_timeout_seconds: float = 5.0) -> None:
        self._join_timeout = join_timeout_seconds
        self._handles: dict[str, IntervalHandle] = {}
        self._lock = threading.Lock()

    def set_interval(
        self,
        callback: Callable[[], None],
        interval_seconds: float,
    ) -> IntervalHandle:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        handle = IntervalHandle()
        handle.thread = threading.Thread(
            target=self._loop,
            args=(handle, callback, interval_seconds),
            name=f"interval-{handle.id[:8]}",
            daemon=True,
        )
        with self._lock:
            self._handles[handle.id] = handle
        handle.thread.start()
        logger.debug("Interval %s started (%.2fs)", handle.id, interval_seconds)
        return handle

    def clear_interval(self, handle: IntervalHandle) -> None:
        with self._lock:
            known = self._handles.pop(handle.id, None)
        if known is None:
            return

        known.stop_event.set()
        if known.thread and known.thread is not threading.current_thread():
            known.thread.join(timeout=self._join_timeout)
        logger.debug("Interval %s cleared", handle.id)

    def clear_all(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
        for handle in handles:
            self.clear_interval(handle)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def _loop(
        self,
        handle: IntervalHandle,
        callback: Callable[[], None],
        interval_seconds: float,
    ) -> None:
        while not handle.stop_event.wait(timeout=interval_seconds):
            try:
                callback()
            except Exception:
                logger.exception("Error in interval callback")
