# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request types for the Notion request throttle.

This module defines the options a caller attaches to a request and the
record the scheduler keeps for each request over its lifetime.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .result import ThrottleResult

ResultCallback = Callable[["ThrottleResult"], Any]
"""Continuation invoked exactly once with the request's terminal result."""


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-request options handed to the transport.

    Attributes:
        method: HTTP method (GET, POST, PATCH, DELETE)
        body: JSON-serializable request body, if any
        headers: Extra headers merged over the transport's defaults
    """

    method: str = "GET"
    body: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None


class RequestState(Enum):
    """
    Lifecycle state of a queued request.

    QUEUED -> IN_FLIGHT -> DONE
                        -> RETRYING -> QUEUED   (5xx / transport backoff)
                        -> QUEUED               (429, front of queue)
                        -> CANCELLED
    QUEUED -> CANCELLED                         (cancelled head popped)
    """

    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.DONE, RequestState.CANCELLED)


@dataclass
class QueuedRequest:
    """
    A request owned by the scheduler from submission until its terminal state.

    The caller only ever holds ``id``; everything else is scheduler-private.

    Attributes:
        id: Unique request identifier for the lifetime of the process
        endpoint: API endpoint path (e.g. "/pages/<id>")
        credential: Integration token passed through to the transport
        options: Method, body and headers for the transport
        callback: Continuation receiving the terminal ThrottleResult
        attempt: Transport attempt number, 1-based; 429s do not advance it
        created_at: Scheduler clock reading at submission
        cancelled: Set by cancel(); the next transition resolves as cancelled
        state: Current lifecycle state
        rate_limit_retries: Number of times this request was re-queued by a 429
    """

    id: str
    endpoint: str
    credential: str
    options: RequestOptions
    callback: ResultCallback
    attempt: int = 1
    created_at: float = 0.0
    cancelled: bool = False
    state: RequestState = RequestState.QUEUED
    rate_limit_retries: int = field(default=0)

    @property
    def is_live(self) -> bool:
        """True while the request can still be cancelled."""
        return not self.cancelled and not self.state.is_terminal


__all__ = [
    "QueuedRequest",
    "RequestOptions",
    "RequestState",
    "ResultCallback",
]
