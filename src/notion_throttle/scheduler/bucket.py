# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Token bucket with pause windows.

The bucket gates every dispatch. It refills continuously at
``tokens_per_second`` up to ``burst_size`` and can be paused, either by the
server (429 Retry-After) or manually by the caller.
"""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TokenBucket:
    """
    Token bucket rate limiter with an optional pause window.

    Not thread-safe: the bucket is owned by a single scheduler and only
    touched from its event loop.

    Attributes:
        tokens_per_second: Refill rate
        burst_size: Capacity; tokens never exceed this value
        tokens: Currently available tokens (0 <= tokens <= burst_size)
        last_refill: Clock reading of the last refill
        paused_until: Clock reading at which the pause ends, or None

    Example:
        >>> bucket = TokenBucket(tokens_per_second=3, burst_size=10)
        >>> bucket.try_acquire()
        True
        >>> bucket.pause(2.0)
        >>> bucket.try_acquire()
        False
    """

    def __init__(
        self,
        tokens_per_second: float,
        burst_size: int,
        clock: Clock = time.monotonic,
    ):
        self._clock = clock
        self.tokens_per_second = float(tokens_per_second)
        self.burst_size = burst_size
        self.tokens = float(burst_size)
        self.last_refill = clock()
        self.paused_until: float | None = None

    def refill(self) -> None:
        """Add tokens for the time elapsed since the last refill."""
        now = self._clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(
            float(self.burst_size), self.tokens + elapsed * self.tokens_per_second
        )
        self.last_refill = now

    def try_acquire(self) -> bool:
        """
        Consume one token if the bucket is not paused and has capacity.

        Returns:
            True if a token was consumed
        """
        if self.paused_until is not None:
            if self._clock() < self.paused_until:
                return False
            self.paused_until = None
            logger.info("Rate limit pause ended")

        self.refill()

        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def pause(self, duration: float) -> None:
        """Pause the bucket for ``duration`` seconds from now."""
        self.paused_until = self._clock() + duration

    def resume(self) -> bool:
        """
        Clear any pause immediately.

        Returns:
            True if the bucket had a pause set
        """
        if self.paused_until is None:
            return False
        self.paused_until = None
        return True

    def is_paused(self) -> bool:
        if self.paused_until is None:
            return False
        return self._clock() < self.paused_until

    def pause_remaining(self) -> float | None:
        """Seconds until the pause ends, or None when not paused."""
        if self.paused_until is None:
            return None
        remaining = self.paused_until - self._clock()
        return remaining if remaining > 0 else None

    def reconfigure(self, tokens_per_second: float, burst_size: int) -> None:
        """Apply a new rate and capacity, refill to full and clear any pause."""
        self.tokens_per_second = float(tokens_per_second)
        self.burst_size = burst_size
        self.tokens = float(burst_size)
        self.last_refill = self._clock()
        self.paused_until = None
        logger.debug(
            f"Token bucket configured: {burst_size} burst, {tokens_per_second}/s refill"
        )


__all__ = ["Clock", "TokenBucket"]
