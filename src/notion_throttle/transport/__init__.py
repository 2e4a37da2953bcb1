# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Transports for the Notion request throttle.

NotionHttpTransport requires the 'http' extra:
    pip install notion-throttle[http]
"""

from .http import NOTION_BASE_URL, NOTION_VERSION, NotionHttpTransport, build_headers

__all__ = [
    "NOTION_BASE_URL",
    "NOTION_VERSION",
    "NotionHttpTransport",
    "build_headers",
]
