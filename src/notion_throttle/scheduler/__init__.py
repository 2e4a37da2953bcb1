# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler for rate-limited, retrying Notion API requests.

This module provides:
- ThrottleScheduler: Tick-driven dispatcher with retry and cancellation
- ThrottleConfig: Configuration for rate, retries and admission control
- TokenBucket: Rate limiter with pause windows
- RequestQueue: Pending queue, in-flight map and backoff area
"""

from .bucket import Clock, TokenBucket
from .config import DEFAULT_CONFIG, ThrottleConfig
from .queue import RequestQueue
from .scheduler import Notifier, ThrottleScheduler, create_scheduler

__all__ = [
    "DEFAULT_CONFIG",
    "Clock",
    "Notifier",
    "RequestQueue",
    # Config
    "ThrottleConfig",
    # Scheduler
    "ThrottleScheduler",
    "TokenBucket",
    "create_scheduler",
]
