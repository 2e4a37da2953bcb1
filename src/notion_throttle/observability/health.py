# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Health report built from a throttle stats snapshot.
"""

from dataclasses import dataclass
from enum import Enum

from ..types.stats import ThrottleStats

LARGE_QUEUE_THRESHOLD = 50


class HealthStatus(Enum):
    OK = "ok"
    WARN = "warn"
    INFO = "info"


@dataclass(frozen=True)
class HealthCheck:
    """
    One line of a health report.

    Attributes:
        status: Severity of the check
        message: Human-readable summary
        advice: Optional follow-up hint for the user
    """

    status: HealthStatus
    message: str
    advice: str | None = None


def check_throttle_health(
    stats: ThrottleStats,
    tokens_per_second: float,
    large_queue_threshold: int = LARGE_QUEUE_THRESHOLD,
) -> list[HealthCheck]:
    """
    Summarize queue, rate limiter and counter state.

    Args:
        stats: Snapshot from ``ThrottleScheduler.get_stats()``
        tokens_per_second: Configured refill rate, shown in the report
        large_queue_threshold: Queue length above which the queue check warns

    Returns:
        Queue check, rate limiter check and an informational counter summary
    """
    checks: list[HealthCheck] = []

    if stats.queue_length > large_queue_threshold:
        checks.append(
            HealthCheck(
                HealthStatus.WARN, f"Large request queue: {stats.queue_length} pending"
            )
        )
    elif stats.queue_length > 0:
        checks.append(
            HealthCheck(HealthStatus.OK, f"Request queue: {stats.queue_length} pending")
        )
    else:
        checks.append(HealthCheck(HealthStatus.OK, "Request queue: empty"))

    if stats.paused:
        remaining = stats.pause_remaining or 0.0
        checks.append(
            HealthCheck(
                HealthStatus.WARN,
                f"Rate limiter paused ({remaining:.1f}s remaining)",
                advice="Requests will resume automatically",
            )
        )
    else:
        checks.append(
            HealthCheck(
                HealthStatus.OK,
                f"Rate limiter: {stats.available_tokens:.1f} tokens available "
                f"({tokens_per_second:g}/s refill)",
            )
        )

    checks.append(
        HealthCheck(
            HealthStatus.INFO,
            f"Throttle stats: {stats.total_requests} requests, "
            f"{stats.total_retries} retries, {stats.total_cancelled} cancelled",
        )
    )
    return checks


__all__ = [
    "LARGE_QUEUE_THRESHOLD",
    "HealthCheck",
    "HealthStatus",
    "check_throttle_health",
]
