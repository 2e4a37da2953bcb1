"""
Unit tests for StatsCollector and statusline rendering.
"""

import pytest
from prometheus_client import CollectorRegistry

from notion_throttle.observability.collector import UnifiedMetricsCollector
from notion_throttle.observability.constants import (
    CALLBACK_ERRORS_TOTAL,
    QUEUE_REJECTIONS_TOTAL,
    REQUESTS_CANCELLED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    RETRIES_TOTAL,
)
from notion_throttle.observability.stats import StatsCollector, format_statusline
from notion_throttle.types import ThrottleStats


def make_stats(**overrides):
    values = {
        "queue_length": 0,
        "available_tokens": 10.0,
        "requests_in_flight": 0,
        "total_requests": 0,
        "total_retries": 0,
        "total_cancelled": 0,
    }
    values.update(overrides)
    return ThrottleStats(**values)


@pytest.fixture
def stats(clock):
    return StatsCollector(clock=clock, error_display_window=5.0)


class TestCounters:
    def test_records(self, stats):
        stats.record_submitted()
        stats.record_submitted()
        stats.record_retry("server_error")
        stats.record_cancelled(3)
        stats.record_rejected()

        snapshot = stats.snapshot(
            queue_length=1, available_tokens=2.5, requests_in_flight=1
        )
        assert snapshot.total_requests == 2
        assert snapshot.total_retries == 1
        assert snapshot.total_cancelled == 3
        assert snapshot.total_rejected == 1
        assert snapshot.queue_length == 1
        assert snapshot.available_tokens == 2.5
        assert snapshot.paused is False

    def test_record_cancelled_ignores_zero(self, stats):
        stats.record_cancelled(0)
        assert stats.total_cancelled == 0

    def test_reset(self, stats):
        stats.record_submitted()
        stats.record_failed("client_error")
        stats.reset()
        assert stats.total_requests == 0
        assert stats.had_error is False


class TestErrorFlag:
    def test_flag_clears_after_window(self, stats, clock):
        assert stats.had_error is False
        stats.record_failed("server_error")
        assert stats.had_error is True
        clock.advance(4.0)
        assert stats.had_error is True
        clock.advance(1.0)
        assert stats.had_error is False

    def test_new_error_extends_window(self, stats, clock):
        stats.record_error()
        clock.advance(4.0)
        stats.record_error()
        clock.advance(4.0)
        assert stats.had_error is True


class TestMetricsMirroring:
    def test_events_reach_collector(self, clock):
        collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        stats = StatsCollector(clock=clock, metrics_collector=collector)

        stats.record_rejected()
        stats.record_retry("rate_limited")
        stats.record_failed("client_error")
        stats.record_cancelled(2)
        stats.record_callback_error()

        flat = collector.get_flat_metrics()
        assert flat[QUEUE_REJECTIONS_TOTAL] == 1
        assert flat[f"{RETRIES_TOTAL}{{reason=rate_limited}}"] == 1
        assert flat[f"{REQUESTS_FAILED_TOTAL}{{reason=client_error}}"] == 1
        assert flat[REQUESTS_CANCELLED_TOTAL] == 2
        assert flat[CALLBACK_ERRORS_TOTAL] == 1

    def test_no_collector_is_fine(self, stats):
        stats.observe_latency(0.1)
        stats.update_gauges(1, 1, 1.0)


class TestFormatStatusline:
    def test_idle_is_empty(self):
        assert format_statusline(make_stats(), False, 5) == ""

    def test_error_wins(self):
        stats = make_stats(queue_length=20, paused=True, pause_remaining=3.0)
        assert format_statusline(stats, True, 5) == "✗"

    def test_pause_rounds_up(self):
        stats = make_stats(paused=True, pause_remaining=2.1)
        assert format_statusline(stats, False, 5) == "⏸ 3s"

    def test_backlog_above_threshold(self):
        assert format_statusline(make_stats(queue_length=6), False, 5) == "⏳6"

    def test_backlog_at_threshold_is_empty(self):
        assert format_statusline(make_stats(queue_length=5), False, 5) == ""
