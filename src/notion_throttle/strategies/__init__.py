# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry strategy for the Notion request throttle.
"""

from .retry import (
    DEFAULT_RETRY_AFTER,
    MAX_RETRY_AFTER,
    MIN_RETRY_AFTER,
    RetryAction,
    RetryDecision,
    RetryPolicy,
    parse_retry_after,
)

__all__ = [
    "DEFAULT_RETRY_AFTER",
    "MAX_RETRY_AFTER",
    "MIN_RETRY_AFTER",
    "RetryAction",
    "RetryDecision",
    "RetryPolicy",
    "parse_retry_after",
]
