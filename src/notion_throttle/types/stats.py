# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot types for throttle statistics and internal state inspection.
"""

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from .request import QueuedRequest

if TYPE_CHECKING:
    from ..scheduler.bucket import TokenBucket


@dataclass(frozen=True)
class ThrottleStats:
    """
    Point-in-time view of the scheduler.

    Attributes:
        queue_length: Requests waiting for dispatch
        available_tokens: Tokens in the bucket after a refill
        requests_in_flight: Requests dispatched but not yet resolved
        total_requests: Accepted submissions (queue-full rejections excluded)
        total_retries: 429 re-queues plus 5xx/transport retries
        total_cancelled: Requests newly marked cancelled
        total_rejected: Submissions rejected because the queue was full
        paused: Whether the bucket is currently paused
        pause_remaining: Seconds until the pause ends, None if not paused
    """

    queue_length: int
    available_tokens: float
    requests_in_flight: int
    total_requests: int
    total_retries: int
    total_cancelled: int
    total_rejected: int = 0
    paused: bool = False
    pause_remaining: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SchedulerState:
    """
    Live references to the scheduler's internals (for tests only).

    Attributes:
        queue: Pending requests in dispatch order
        in_flight: Requests awaiting a transport response, by id
        backing_off: Requests waiting out a retry delay, by id
        bucket: The scheduler's token bucket
    """

    queue: list[QueuedRequest] = field(default_factory=list)
    in_flight: dict[str, QueuedRequest] = field(default_factory=dict)
    backing_off: dict[str, QueuedRequest] = field(default_factory=dict)
    bucket: "TokenBucket | None" = None


__all__ = ["SchedulerState", "ThrottleStats"]
