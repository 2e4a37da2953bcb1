# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability for the Notion request throttle.

This package provides:
    - StatsCollector: cumulative counters, error flag and statusline
    - UnifiedMetricsCollector: dict snapshot plus Prometheus export
    - check_throttle_health: health report from a stats snapshot
    - Metric name constants (notion_throttle_ prefix)

Example:
    >>> from notion_throttle.observability import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.start_http_server(port=9090)
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    AVAILABLE_TOKENS,
    CALLBACK_ERRORS_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
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
from .health import HealthCheck, HealthStatus, check_throttle_health
from .stats import StatsCollector, format_statusline

__all__ = [
    "AVAILABLE_TOKENS",
    "CALLBACK_ERRORS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "QUEUE_REJECTIONS_TOTAL",
    "REQUESTS_CANCELLED_TOTAL",
    "REQUESTS_COMPLETED_TOTAL",
    "REQUESTS_FAILED_TOTAL",
    "REQUESTS_IN_FLIGHT",
    "REQUESTS_SUBMITTED_TOTAL",
    "RETRIES_TOTAL",
    "TRANSPORT_LATENCY_SECONDS",
    "HealthCheck",
    "HealthStatus",
    "MetricDefinition",
    "StatsCollector",
    "UnifiedMetricsCollector",
    "check_throttle_health",
    "format_statusline",
    "get_metrics_collector",
    "reset_metrics_collector",
]
