# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry policy for the throttle scheduler.

This module is pure decision logic: given a transport response and the
request's retry history, it decides whether the response is delivered, the
request is paused and re-queued (429), retried after a backoff delay
(5xx / transport failure), or failed terminally.

429 is handled separately from 5xx because the server states how long to
wait. 5xx and network failures carry no such signal and use exponential
backoff instead.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..types.result import TransportResponse

if TYPE_CHECKING:
    from ..scheduler.config import ThrottleConfig

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 1.0
MIN_RETRY_AFTER = 1.0
MAX_RETRY_AFTER = 60.0


class RetryAction(Enum):
    """What the scheduler should do with a response."""

    DELIVER = "deliver"
    RATE_LIMITED = "rate_limited"
    BACKOFF = "backoff"
    FAIL = "fail"


@dataclass(frozen=True)
class RetryDecision:
    """
    Outcome of RetryPolicy.decide.

    Attributes:
        action: The transition to perform
        delay: Seconds to pause (RATE_LIMITED) or wait before re-queueing
            (BACKOFF); 0 otherwise
    """

    action: RetryAction
    delay: float = 0.0


def _coerce_seconds(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def parse_retry_after(response: TransportResponse) -> float:
    """
    Read the server-provided wait time from a 429 response.

    The ``retry_after`` body field is checked first, then the Retry-After
    header. Missing or unparseable values fall back to 1 second; the result
    is clamped to [1, 60] seconds.

    Args:
        response: The 429 transport response

    Returns:
        Seconds to pause the bucket
    """
    retry_after: float | None = None
    if isinstance(response.body, Mapping):
        retry_after = _coerce_seconds(response.body.get("retry_after"))
    if retry_after is None and response.headers:
        retry_after = _coerce_seconds(_header(response.headers, "retry-after"))
    if retry_after is None:
        retry_after = DEFAULT_RETRY_AFTER
    return min(max(retry_after, MIN_RETRY_AFTER), MAX_RETRY_AFTER)


class RetryPolicy:
    """
    Decides terminal success, terminal failure, or retry-with-delay.

    Attributes:
        max_retries: Retries allowed for 5xx and transport errors; a request
            makes at most ``max_retries + 1`` transport calls
        base_retry_delay: Backoff unit in seconds (the first retry waits 2x)
        max_retry_delay: Backoff cap in seconds
        max_rate_limit_retries: Cap on 429 re-queues, None for no cap

    Example:
        >>> policy = RetryPolicy(max_retries=3)
        >>> policy.decide(TransportResponse(status=503), attempt=1)
        RetryDecision(action=<RetryAction.BACKOFF: 'backoff'>, delay=2.0)
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
        max_retry_delay: float = 8.0,
        max_rate_limit_retries: int | None = None,
    ):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self.max_retry_delay = max_retry_delay
        self.max_rate_limit_retries = max_rate_limit_retries

    @classmethod
    def from_config(cls, config: "ThrottleConfig") -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_retry_delay=config.base_retry_delay,
            max_retry_delay=config.max_retry_delay,
            max_rate_limit_retries=config.max_rate_limit_retries,
        )

    def backoff_delay(self, attempt: int) -> float:
        """
        Exponential backoff to wait before making ``attempt``.

        Args:
            attempt: 1-based number of the attempt about to be made; the
                first retry is attempt 2

        Returns:
            min(base * 2^(attempt-1), max) in seconds
        """
        delay = self.base_retry_delay * (2 ** max(attempt - 1, 0))
        return float(min(delay, self.max_retry_delay))

    def should_retry(self, response: TransportResponse) -> bool:
        """True for responses that are retried with backoff (5xx, transport)."""
        return response.is_transport_error or 500 <= response.status <= 599

    def decide(
        self,
        response: TransportResponse,
        attempt: int,
        rate_limit_retries: int = 0,
    ) -> RetryDecision:
        """
        Classify a transport response.

        Args:
            response: The transport response
            attempt: The request's current 1-based attempt number
            rate_limit_retries: How many times the request was already
                re-queued because of a 429

        Returns:
            The transition the scheduler should perform
        """
        if response.status == 429:
            if (
                self.max_rate_limit_retries is not None
                and rate_limit_retries >= self.max_rate_limit_retries
            ):
                logger.warning(
                    f"Rate limit retry cap ({self.max_rate_limit_retries}) reached"
                )
                return RetryDecision(RetryAction.FAIL)
            return RetryDecision(RetryAction.RATE_LIMITED, parse_retry_after(response))

        if self.should_retry(response):
            if attempt <= self.max_retries:
                return RetryDecision(
                    RetryAction.BACKOFF, self.backoff_delay(attempt + 1)
                )
            return RetryDecision(RetryAction.FAIL)

        if response.status >= 400:
            return RetryDecision(RetryAction.FAIL)

        return RetryDecision(RetryAction.DELIVER)


__all__ = [
    "DEFAULT_RETRY_AFTER",
    "MAX_RETRY_AFTER",
    "MIN_RETRY_AFTER",
    "RetryAction",
    "RetryDecision",
    "RetryPolicy",
    "parse_retry_after",
]
