# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Core types for the Notion request throttle.

This module provides the data structures shared by the scheduler, the
retry policy, transports and callers.
"""

from .request import QueuedRequest, RequestOptions, RequestState, ResultCallback
from .result import QUEUE_FULL_MESSAGE, Outcome, ThrottleResult, TransportResponse
from .stats import SchedulerState, ThrottleStats

__all__ = [
    "QUEUE_FULL_MESSAGE",
    "Outcome",
    "QueuedRequest",
    "RequestOptions",
    "RequestState",
    "ResultCallback",
    "SchedulerState",
    "ThrottleResult",
    "ThrottleStats",
    "TransportResponse",
]
