"""
Tests for telemetry sink adapters.

HttpTelemetrySink is exercised against httpx.MockTransport.
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from src.adapters.telemetry import (
    HttpTelemetrySink,
    InMemoryTelemetrySink,
    LoggingTelemetrySink,
)

ENVELOPE = {
    "id": "event_1",
    "sessionId": "session_1",
    "eventName": "search",
    "timestamp": "2026-01-14T12:00:00Z",
    "url": None,
    "payload": {"query": "hay"},
}


def make_sink(handler) -> HttpTelemetrySink:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpTelemetrySink("http://telemetry.test/api/analytics/track", client=client)


class TestHttpTelemetrySink:
    def test_relative_endpoint_rejected(self):
        with pytest.raises(ValueError, match="absolute URL"):
            HttpTelemetrySink("/api/analytics/track", client=httpx.Client())

    def test_posts_json(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append((request.method, str(request.url), json.loads(request.content)))
            return httpx.Response(204)

        sink = make_sink(handler)
        sink.send(ENVELOPE)
        sink.flush()
        sink.stop()

        assert received == [("POST", "http://telemetry.test/api/analytics/track", ENVELOPE)]
        assert sink.delivered == 1
        assert sink.failed == 0

    def test_server_error_counted_not_raised(self):
        sink = make_sink(lambda request: httpx.Response(500))
        sink.send(ENVELOPE)
        sink.flush()
        sink.stop()
        assert sink.delivered == 0
        assert sink.failed == 1

    def test_transport_error_counted_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        sink = make_sink(handler)
        sink.send(ENVELOPE)
        sink.send(ENVELOPE)
        sink.flush()
        sink.stop()
        assert sink.failed == 2

    def test_stop_without_start(self):
        sink = make_sink(lambda request: httpx.Response(204))
        sink.stop()
        assert sink.delivered == 0


class TestInMemoryTelemetrySink:
    def test_collects_and_clears(self):
        sink = InMemoryTelemetrySink()
        sink.send(ENVELOPE)
        assert sink.get_all() == [ENVELOPE]
        sink.clear()
        assert sink.get_all() == []


class TestLoggingTelemetrySink:
    def test_logs_envelope(self, caplog: pytest.LogCaptureFixture):
        sink = LoggingTelemetrySink(level=logging.INFO)
        with caplog.at_level(logging.INFO, logger="src.adapters.telemetry"):
            sink.send(ENVELOPE)
        assert "event_1" in caplog.text
