"""
Telemetry sink adapters.

Implementations of TelemetrySinkPort:
- HttpTelemetrySink: POSTs envelopes as JSON from a background worker
- LoggingTelemetrySink: logs envelopes (development)
- InMemoryTelemetrySink: keeps envelopes in memory (testing)

Delivery is best-effort: failures are logged and dropped, never retried.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_STOP = object()


class HttpTelemetrySink:
    """
    Non-blocking HTTP telemetry sink.

    send() only enqueues; a daemon worker thread performs the POST.
    A full queue drops the envelope rather than blocking the caller.
    """

    def __init__(
        self,
        endpoint: str,
        client: httpx.Client | None = None,
        timeout_seconds: float = 5.0,
        max_queue_size: int = 1000,
    ) -> None:
        if not httpx.URL(endpoint).is_absolute_url:
            raise ValueError(f"Telemetry endpoint must be an absolute URL, got {endpoint!r}")
        self.endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._owns_client = client is None
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=max_queue_size)
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.delivered = 0
        self.failed = 0
        self.dropped = 0

    def start(self) -> None:
        """Start the delivery worker (send() starts it on demand)."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(
                target=self._worker, name="telemetry-sink", daemon=True
            )
            self._thread.start()
        logger.info("Telemetry sink started for %s", self.endpoint)

    def stop(self, timeout_seconds: float = 5.0) -> None:
        """Deliver what is queued, then stop the worker."""
        thread = self._thread
        if thread is None:
            return
        self._queue.put(_STOP)
        thread.join(timeout=timeout_seconds)
        self._thread = None
        if self._owns_client:
            self._client.close()
        logger.info("Telemetry sink stopped")

    def send(self, envelope: dict[str, Any]) -> None:
        self.start()
        try:
            self._queue.put_nowait(envelope)
        except queue.Full:
            self.dropped += 1
            logger.warning("Telemetry queue full, dropping event %s", envelope.get("id"))

    def flush(self) -> None:
        """Block until every queued envelope has been attempted."""
        self._queue.join()

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._post(item)
            finally:
                self._queue.task_done()

    def _post(self, envelope: dict[str, Any]) -> None:
        try:
            response = self._client.post(self.endpoint, json=envelope)
            response.raise_for_status()
            self.delivered += 1
        except httpx.HTTPError as e:
            self.failed += 1
            logger.warning("Analytics tracking failed for %s: %s", envelope.get("id"), e)
        except Exception:
            self.failed += 1
            logger.exception("Unexpected telemetry error for %s", envelope.get("id"))


class LoggingTelemetrySink:
    """Logs each envelope instead of sending it."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def send(self, envelope: dict[str, Any]) -> None:
        logger.log(self.level, "Analytics event: %s", envelope)


class InMemoryTelemetrySink:
    """In-memory sink for testing/dev."""

    def __init__(self) -> None:
        self._envelopes: list[dict[str, Any]] = []

    def send(self, envelope: dict[str, Any]) -> None:
        self._envelopes.append(envelope)

    def get_all(self) -> list[dict[str, Any]]:
        """Get all received envelopes (for testing)."""
        return list(self._envelopes)

    def clear(self) -> None:
        self._envelopes.clear()
