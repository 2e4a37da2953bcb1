# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler Configuration for the Notion request throttle

This module provides the configuration class for the throttle scheduler,
covering rate limiting, retry backoff, admission control and the
observability thresholds used by the statusline.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from typing_extensions import Self

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class ThrottleConfig:
    """
    Configuration for the throttle scheduler.

    Instances are immutable; ``ThrottleScheduler.setup`` replaces the active
    configuration wholesale.
    """

    # === Rate Limiting ===

    tokens_per_second: float = 3.0
    """Rate of token refill (steady-state throughput)."""

    burst_size: int = 10
    """Maximum tokens, i.e. back-to-back requests before throttling begins."""

    # === Retry Handling ===

    max_retries: int = 3
    """Maximum retries for 5xx and transport errors. 429s are not counted."""

    base_retry_delay_ms: float = 1000.0
    """Backoff unit: attempt n waits base * 2^(n-1), so the first retry waits 2x."""

    max_retry_delay_ms: float = 8000.0
    """Upper bound on the backoff delay."""

    max_rate_limit_retries: int | None = None
    """Cap on 429 re-queues per request. None keeps retrying for as long as
    the server keeps answering 429."""

    # === Admission Control ===

    max_queue_size: int = 100
    """Maximum pending requests; further submissions are rejected."""

    # === Observability ===

    queue_warning_threshold: int = 5
    """Queue length above which the statusline shows a backlog indicator."""

    pause_notify_threshold: float = 10.0
    """429 pauses of at least this many seconds trigger a user notice."""

    error_display_window: float = 5.0
    """Seconds the statusline keeps showing the error glyph."""

    # === Dispatcher ===

    tick_interval: float = 0.05
    """Interval between dispatcher ticks in seconds."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        positive = (
            "tokens_per_second",
            "burst_size",
            "max_retries",
            "base_retry_delay_ms",
            "max_retry_delay_ms",
            "max_queue_size",
            "queue_warning_threshold",
            "pause_notify_threshold",
            "error_display_window",
            "tick_interval",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.max_retry_delay_ms < self.base_retry_delay_ms:
            raise ConfigurationError(
                "max_retry_delay_ms must be at least base_retry_delay_ms"
            )
        if self.max_rate_limit_retries is not None and self.max_rate_limit_retries < 0:
            raise ConfigurationError("max_rate_limit_retries must be non-negative")

    @classmethod
    def from_options(
        cls, options: Mapping[str, Any] | None = None, **overrides: Any
    ) -> Self:
        """
        Merge user options over the defaults.

        Args:
            options: Mapping of option names to values
            **overrides: Keyword options, applied after ``options``

        Returns:
            A validated configuration

        Raises:
            ConfigurationError: On unknown option names or invalid values
        """
        merged = {**(options or {}), **overrides}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f"Unknown throttle options: {', '.join(unknown)}")
        return cls(**merged)

    def with_overrides(self, **overrides: Any) -> Self:
        """Return a copy with the given fields replaced (validated)."""
        return replace(self, **overrides)

    @property
    def base_retry_delay(self) -> float:
        """Base retry delay in seconds."""
        return self.base_retry_delay_ms / 1000.0

    @property
    def max_retry_delay(self) -> float:
        """Maximum retry delay in seconds."""
        return self.max_retry_delay_ms / 1000.0


DEFAULT_CONFIG = ThrottleConfig()


__all__ = [
    "DEFAULT_CONFIG",
    "ThrottleConfig",
]
