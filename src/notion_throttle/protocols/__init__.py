# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocols for the Notion request throttle.
"""

from .transport import TransportProtocol

__all__ = ["TransportProtocol"]
