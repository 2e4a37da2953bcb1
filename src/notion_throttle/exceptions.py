# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the Notion request throttle.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from ThrottleError, making it easy to catch
all throttle-related exceptions with a single except clause.

The scheduler itself never raises these for request outcomes: every outcome
is delivered to the caller's continuation as a ThrottleResult. The request
outcome exceptions below are produced by ``ThrottleResult.raise_for_error()``
for callers that prefer exception-based control flow.
"""

from typing import Any


class ThrottleError(Exception):
    """Base exception for all throttle errors.

    Example:
        try:
            result = await scheduler.execute("/pages/abc", token)
            result.raise_for_error()
        except ThrottleError as e:
            logger.error(f"Notion request failed: {e}")
    """

    pass


class ConfigurationError(ThrottleError, ValueError):
    """Raised when throttle configuration is invalid.

    Common causes include:
    - Non-positive rate, burst, queue size or delay values
    - A max_retry_delay_ms smaller than base_retry_delay_ms
    - Unknown option names passed to ``ThrottleConfig.from_options``

    Also a ValueError so that generic validation handlers catch it.
    """

    pass


class SchedulerError(ThrottleError):
    """Raised when the scheduler is used outside of its execution context.

    The scheduler is bound to a running asyncio event loop. Submitting work
    with no running loop raises this error.
    """

    pass


class QueueFullError(ThrottleError):
    """Raised for a submission rejected by admission control.

    Attributes:
        max_queue_size: The configured queue limit that was reached.
            May be None if the limit is not known.
    """

    def __init__(
        self, message: str = "Request queue full", max_queue_size: int | None = None
    ):
        super().__init__(message)
        self.max_queue_size = max_queue_size


class RequestCancelledError(ThrottleError):
    """Raised for a request that was cancelled before it completed.

    Attributes:
        request_id: The identifier of the cancelled request.
    """

    def __init__(self, request_id: str | None = None):
        super().__init__(f"Request cancelled: {request_id}")
        self.request_id = request_id


class RequestFailedError(ThrottleError):
    """Raised for a request that reached a terminal failure.

    Attributes:
        status: HTTP status code (0 for transport-level failures).
        body: Parsed response body, if any.
        request_id: The identifier of the failed request.
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        body: Any | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body
        self.request_id = request_id


class ClientError(RequestFailedError):
    """A 4xx response other than 429. Never retried."""

    pass


class RateLimitedError(RequestFailedError):
    """A 429 response surfaced after ``max_rate_limit_retries`` was exhausted."""

    pass


class ServerError(RequestFailedError):
    """A 5xx response surfaced after all retries were exhausted."""

    pass


class TransportError(RequestFailedError):
    """A transport-level failure (no HTTP status) after all retries."""

    pass


__all__ = [
    "ClientError",
    "ConfigurationError",
    "QueueFullError",
    "RateLimitedError",
    "RequestCancelledError",
    "RequestFailedError",
    "SchedulerError",
    "ServerError",
    "ThrottleError",
    "TransportError",
]
