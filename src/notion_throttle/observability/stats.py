# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler statistics and statusline rendering.

StatsCollector keeps the cumulative counters exposed by
``ThrottleScheduler.get_stats()`` and, when a UnifiedMetricsCollector is
attached, mirrors every event into it for Prometheus export.
"""

import logging
import math
import time
from collections.abc import Callable

from ..types.stats import ThrottleStats
from .collector import UnifiedMetricsCollector
from .constants import (
    AVAILABLE_TOKENS,
    CALLBACK_ERRORS_TOTAL,
    QUEUE_DEPTH,
    QUEUE_REJECTIONS_TOTAL,
    REQUESTS_CANCELLED_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_IN_FLIGHT,
    REQUESTS_SUBMITTED_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_LATENCY_SECONDS,
)

logger = logging.getLogger(__name__)

ERROR_GLYPH = "✗"
PAUSE_GLYPH = "⏸"
BACKLOG_GLYPH = "⏳"


class StatsCollector:
    """
    Cumulative request counters plus a transient error flag.

    Attributes:
        total_requests: Accepted submissions
        total_retries: 429 re-queues plus backoff retries
        total_cancelled: Requests newly marked cancelled
        total_rejected: Submissions rejected because the queue was full
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        error_display_window: float = 5.0,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        self._clock = clock
        self.error_display_window = error_display_window
        self.metrics_collector = metrics_collector
        self.total_requests = 0
        self.total_retries = 0
        self.total_cancelled = 0
        self.total_rejected = 0
        self._error_until: float | None = None

    def _inc(self, name: str, value: int = 1, reason: str | None = None) -> None:
        if self.metrics_collector is None:
            return
        labels = {"reason": reason} if reason is not None else None
        self.metrics_collector.inc_counter(name, value, labels=labels)

    # ===== EVENTS =====

    def record_submitted(self) -> None:
        self.total_requests += 1
        self._inc(REQUESTS_SUBMITTED_TOTAL)

    def record_rejected(self) -> None:
        self.total_rejected += 1
        self._inc(QUEUE_REJECTIONS_TOTAL)

    def record_retry(self, reason: str) -> None:
        self.total_retries += 1
        self._inc(RETRIES_TOTAL, reason=reason)

    def record_cancelled(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.total_cancelled += count
        self._inc(REQUESTS_CANCELLED_TOTAL, count)

    def record_completed(self) -> None:
        self._inc(REQUESTS_COMPLETED_TOTAL)

    def record_failed(self, reason: str) -> None:
        """Count a terminal failure and raise the error flag."""
        self._inc(REQUESTS_FAILED_TOTAL, reason=reason)
        self.record_error()

    def record_error(self) -> None:
        """Raise the error flag for ``error_display_window`` seconds."""
        self._error_until = self._clock() + self.error_display_window

    def record_callback_error(self) -> None:
        self._inc(CALLBACK_ERRORS_TOTAL)

    def observe_latency(self, seconds: float) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.observe_histogram(TRANSPORT_LATENCY_SECONDS, seconds)

    def update_gauges(
        self, queue_depth: int, in_flight: int, available_tokens: float
    ) -> None:
        if self.metrics_collector is None:
            return
        self.metrics_collector.set_gauge(QUEUE_DEPTH, queue_depth)
        self.metrics_collector.set_gauge(REQUESTS_IN_FLIGHT, in_flight)
        self.metrics_collector.set_gauge(AVAILABLE_TOKENS, available_tokens)

    # ===== QUERIES =====

    @property
    def had_error(self) -> bool:
        """True within ``error_display_window`` of the last terminal error."""
        if self._error_until is None:
            return False
        if self._clock() >= self._error_until:
            self._error_until = None
            return False
        return True

    def snapshot(
        self,
        queue_length: int,
        available_tokens: float,
        requests_in_flight: int,
        paused: bool = False,
        pause_remaining: float | None = None,
    ) -> ThrottleStats:
        return ThrottleStats(
            queue_length=queue_length,
            available_tokens=available_tokens,
            requests_in_flight=requests_in_flight,
            total_requests=self.total_requests,
            total_retries=self.total_retries,
            total_cancelled=self.total_cancelled,
            total_rejected=self.total_rejected,
            paused=paused,
            pause_remaining=pause_remaining,
        )

    def reset(self) -> None:
        """Zero all counters and clear the error flag."""
        self.total_requests = 0
        self.total_retries = 0
        self.total_cancelled = 0
        self.total_rejected = 0
        self._error_until = None
        logger.debug("Throttle stats reset")


def format_statusline(
    stats: ThrottleStats, had_error: bool, queue_warning_threshold: int
) -> str:
    """
    Render a compact status token for an editor statusline.

    Returns the first match of: the error glyph, the pause glyph with the
    remaining seconds rounded up, the backlog glyph with the queue length, or
    an empty string.
    """
    if had_error:
        return ERROR_GLYPH
    if stats.paused and stats.pause_remaining is not None:
        return f"{PAUSE_GLYPH} {math.ceil(stats.pause_remaining)}s"
    if stats.queue_length > queue_warning_threshold:
        return f"{BACKLOG_GLYPH}{stats.queue_length}"
    return ""


__all__ = [
    "BACKLOG_GLYPH",
    "ERROR_GLYPH",
    "PAUSE_GLYPH",
    "StatsCollector",
    "format_statusline",
]
