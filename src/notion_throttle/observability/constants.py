# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `notion_throttle_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    The only label is `reason`, an enum:
    - failures: client_error, server_error, transport_error, rate_limited
    - retries: rate_limited, server_error, transport_error

    NEVER use `request_id` or `endpoint` as a label; both are unbounded.

Usage:
    >>> from notion_throttle.observability.constants import RETRIES_TOTAL
    >>> print(RETRIES_TOTAL)
    'notion_throttle_retries_total'
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "notion_throttle"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Request Lifecycle Counters
# =============================================================================

REQUESTS_SUBMITTED_TOTAL = f"{METRIC_PREFIX}_requests_submitted_total"
"""Total submissions accepted into the queue."""

REQUESTS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_requests_completed_total"
"""Total requests delivered with a successful response."""

REQUESTS_FAILED_TOTAL = f"{METRIC_PREFIX}_requests_failed_total"
"""Total requests delivered with a terminal failure, by reason."""

REQUESTS_CANCELLED_TOTAL = f"{METRIC_PREFIX}_requests_cancelled_total"
"""Total requests marked cancelled."""

QUEUE_REJECTIONS_TOTAL = f"{METRIC_PREFIX}_queue_rejections_total"
"""Total submissions rejected because the queue was full."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retries (429 re-queues and backoff retries), by reason."""

CALLBACK_ERRORS_TOTAL = f"{METRIC_PREFIX}_callback_errors_total"
"""Total exceptions raised by caller continuations."""


# =============================================================================
# Gauges
# =============================================================================

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Requests waiting for dispatch."""

REQUESTS_IN_FLIGHT = f"{METRIC_PREFIX}_requests_in_flight"
"""Requests dispatched and awaiting a transport response."""

AVAILABLE_TOKENS = f"{METRIC_PREFIX}_available_tokens"
"""Tokens currently available in the bucket."""


# =============================================================================
# Histograms
# =============================================================================

TRANSPORT_LATENCY_SECONDS = f"{METRIC_PREFIX}_transport_latency_seconds"
"""Duration of a single transport exchange."""

LATENCY_BUCKETS: list[float] = [
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
]
"""Transport latency buckets (in seconds, up to the 30 s HTTP timeout)."""


# =============================================================================
# Label values
# =============================================================================

REASON_CLIENT_ERROR = "client_error"
REASON_SERVER_ERROR = "server_error"
REASON_TRANSPORT_ERROR = "transport_error"
REASON_RATE_LIMITED = "rate_limited"


def reason_for_status(status: int) -> str:
    """Map a response status onto a `reason` label value."""
    if status == 0:
        return REASON_TRANSPORT_ERROR
    if status == 429:
        return REASON_RATE_LIMITED
    if status >= 500:
        return REASON_SERVER_ERROR
    return REASON_CLIENT_ERROR


__all__ = [
    "AVAILABLE_TOKENS",
    "CALLBACK_ERRORS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "QUEUE_REJECTIONS_TOTAL",
    "REASON_CLIENT_ERROR",
    "REASON_RATE_LIMITED",
    "REASON_SERVER_ERROR",
    "REASON_TRANSPORT_ERROR",
    "REQUESTS_CANCELLED_TOTAL",
    "REQUESTS_COMPLETED_TOTAL",
    "REQUESTS_FAILED_TOTAL",
    "REQUESTS_IN_FLIGHT",
    "REQUESTS_SUBMITTED_TOTAL",
    "RETRIES_TOTAL",
    "TRANSPORT_LATENCY_SECONDS",
    "reason_for_status",
]
