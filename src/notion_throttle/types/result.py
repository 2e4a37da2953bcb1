# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Response and result types for the Notion request throttle.

TransportResponse is what a transport hands back for one exchange.
ThrottleResult is what a caller's continuation receives once a request
reaches a terminal state. Every outcome, including queue-full rejections
and cancellations, is expressed as a ThrottleResult.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typing_extensions import Self

from ..exceptions import (
    ClientError,
    QueueFullError,
    RateLimitedError,
    RequestCancelledError,
    RequestFailedError,
    ServerError,
    TransportError,
)

QUEUE_FULL_MESSAGE = "Request queue full"


@dataclass(frozen=True)
class TransportResponse:
    """
    Result of a single transport exchange.

    Attributes:
        status: HTTP status code, or 0 for a transport-level failure
        body: Parsed JSON body, if any
        error: Error description, if the exchange failed
        headers: Response headers (used to read Retry-After)
    """

    status: int
    body: Any | None = None
    error: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_transport_error(self) -> bool:
        return self.status == 0


class Outcome(Enum):
    """Terminal outcome of a request."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ThrottleResult:
    """
    Terminal result delivered to a request's continuation.

    Attributes:
        status: HTTP status code (0 for cancelled, rejected or transport errors)
        body: Parsed JSON body, if any
        error: Error description for failures and rejections
        cancelled: True if the request was cancelled
        request_id: The request's id (None for queue-full rejections)
        outcome: Classification of the terminal state
        headers: Response headers of the final exchange, if any
        max_queue_size: Queue limit that caused a REJECTED outcome
    """

    status: int
    body: Any | None = None
    error: str | None = None
    cancelled: bool = False
    request_id: str | None = None
    outcome: Outcome = Outcome.SUCCESS
    headers: Mapping[str, str] = field(default_factory=dict)
    max_queue_size: int | None = None

    @classmethod
    def from_response(
        cls, response: TransportResponse, request_id: str | None = None
    ) -> Self:
        """Build the terminal result for a delivered transport response."""
        succeeded = 0 < response.status < 400 and response.error is None
        return cls(
            status=response.status,
            body=response.body,
            error=response.error,
            request_id=request_id,
            outcome=Outcome.SUCCESS if succeeded else Outcome.FAILURE,
            headers=response.headers,
        )

    @classmethod
    def cancelled_result(cls, request_id: str) -> Self:
        return cls(
            status=0,
            cancelled=True,
            request_id=request_id,
            outcome=Outcome.CANCELLED,
        )

    @classmethod
    def queue_full(cls, max_queue_size: int | None = None) -> Self:
        return cls(
            status=0,
            error=QUEUE_FULL_MESSAGE,
            outcome=Outcome.REJECTED,
            max_queue_size=max_queue_size,
        )

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    def raise_for_error(self) -> Self:
        """
        Raise the matching ThrottleError unless the request succeeded.

        Returns:
            self, so calls can be chained on success

        Raises:
            QueueFullError: the submission was rejected by admission control
            RequestCancelledError: the request was cancelled
            TransportError: transport-level failure (status 0)
            RateLimitedError: 429 after the rate-limit retry cap
            ServerError: 5xx after all retries
            ClientError: any other 4xx
            RequestFailedError: an error on an otherwise successful status
        """
        if self.outcome is Outcome.SUCCESS:
            return self
        if self.outcome is Outcome.REJECTED:
            raise QueueFullError(
                self.error or QUEUE_FULL_MESSAGE, max_queue_size=self.max_queue_size
            )
        if self.outcome is Outcome.CANCELLED:
            raise RequestCancelledError(self.request_id)

        message = self.error or f"HTTP {self.status}"
        error_cls: type[RequestFailedError]
        if self.status == 0:
            error_cls = TransportError
        elif self.status == 429:
            error_cls = RateLimitedError
        elif 500 <= self.status <= 599:
            error_cls = ServerError
        elif 400 <= self.status <= 499:
            error_cls = ClientError
        else:
            error_cls = RequestFailedError
        raise error_cls(
            message, status=self.status, body=self.body, request_id=self.request_id
        )


__all__ = [
    "QUEUE_FULL_MESSAGE",
    "Outcome",
    "ThrottleResult",
    "TransportResponse",
]
