# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Transport Protocol for the Notion request throttle.

This module defines the interface the scheduler uses to perform a single
request/response exchange. The scheduler never speaks HTTP itself.
"""

from typing import Protocol, runtime_checkable

from ..types.request import RequestOptions
from ..types.result import TransportResponse


@runtime_checkable
class TransportProtocol(Protocol):
    """
    Protocol for performing one exchange with the Notion API.

    Implementations run on the scheduler's event loop. Blocking work must be
    handed off (``loop.run_in_executor``) and awaited so that completion
    resumes on the loop.

    A transport may raise instead of returning; the scheduler converts the
    exception into a status-0 transport error and retries it like any other
    transport failure.
    """

    async def execute(
        self, endpoint: str, credential: str, options: RequestOptions
    ) -> TransportResponse:
        """
        Perform one exchange.

        Args:
            endpoint: API path relative to the base URL (e.g. "/pages/<id>")
            credential: Integration token
            options: Method, body and extra headers

        Returns:
            The response; status 0 signals a transport-level failure
        """
        ...
