# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Notion Throttle - rate-limited, retrying request scheduling for the Notion API.

Callers submit requests and get an id back immediately; a continuation later
receives the terminal result. In between, the scheduler enforces a token
bucket, queues excess work, retries transient failures with exponential
backoff and honours server-issued 429 pauses.

Key Features:
    - Token bucket rate limiting with burst capacity
    - FIFO queue with admission control
    - Exponential backoff for 5xx and network failures
    - Retry-After pauses for 429 responses
    - Cancellation of queued, in-flight and backing-off requests
    - Stats, statusline, health report and Prometheus metrics

Quick Start:
    >>> from notion_throttle import NotionHttpTransport, create_scheduler
    >>>
    >>> async with NotionHttpTransport() as transport:
    ...     async with create_scheduler(transport, tokens_per_second=3) as scheduler:
    ...         result = await scheduler.execute("/pages/abc", token)
    ...         page = result.raise_for_error().body

Note: NotionHttpTransport requires the 'http' extra. Install with:
    pip install notion-throttle[http]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING

from .exceptions import (
    ClientError,
    ConfigurationError,
    QueueFullError,
    RateLimitedError,
    RequestCancelledError,
    RequestFailedError,
    SchedulerError,
    ServerError,
    ThrottleError,
    TransportError,
)
from .observability import (
    HealthCheck,
    HealthStatus,
    UnifiedMetricsCollector,
    check_throttle_health,
    get_metrics_collector,
)
from .protocols import TransportProtocol
from .scheduler import (
    ThrottleConfig,
    ThrottleScheduler,
    TokenBucket,
    create_scheduler,
)
from .strategies import RetryAction, RetryDecision, RetryPolicy
from .types import (
    Outcome,
    QueuedRequest,
    RequestOptions,
    RequestState,
    SchedulerState,
    ThrottleResult,
    ThrottleStats,
    TransportResponse,
)

# Lazy import for the optional httpx transport
if TYPE_CHECKING:
    from .transport import NotionHttpTransport

__all__ = [
    "ClientError",
    # Exceptions
    "ConfigurationError",
    # Observability
    "HealthCheck",
    "HealthStatus",
    "NotionHttpTransport",  # Lazy loaded - requires http extra
    "Outcome",
    "QueueFullError",
    "QueuedRequest",
    "RateLimitedError",
    "RequestCancelledError",
    "RequestFailedError",
    # Types
    "RequestOptions",
    "RequestState",
    # Retry
    "RetryAction",
    "RetryDecision",
    "RetryPolicy",
    "SchedulerError",
    "SchedulerState",
    "ServerError",
    # Scheduler
    "ThrottleConfig",
    "ThrottleError",
    "ThrottleResult",
    "ThrottleScheduler",
    "ThrottleStats",
    "TokenBucket",
    "TransportError",
    # Protocols
    "TransportProtocol",
    "TransportResponse",
    "UnifiedMetricsCollector",
    "check_throttle_health",
    "create_scheduler",
    "get_metrics_collector",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional httpx transport."""
    if name == "NotionHttpTransport":
        from .transport import NotionHttpTransport

        return NotionHttpTransport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
