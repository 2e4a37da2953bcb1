# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Pending queue and in-flight bookkeeping for the throttle scheduler.

RequestQueue holds every live request in exactly one of three places:

- the pending deque (QUEUED), dispatched in FIFO order
- the in-flight map (IN_FLIGHT), awaiting a transport response
- the backoff map (RETRYING), waiting out a retry delay

Each method that moves a request between places also performs the matching
RequestState transition.
"""

from collections import deque
from collections.abc import Iterator

from ..types.request import QueuedRequest, RequestState


class RequestQueue:
    """
    FIFO of not-yet-dispatched requests plus in-flight and backoff maps.

    Example:
        >>> queue = RequestQueue()
        >>> queue.append(request)
        >>> head = queue.popleft()
        >>> queue.mark_in_flight(head)
        >>> queue.complete(head.id) is head
        True
    """

    def __init__(self) -> None:
        self._pending: deque[QueuedRequest] = deque()
        self._in_flight: dict[str, QueuedRequest] = {}
        self._backing_off: dict[str, QueuedRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    @property
    def backing_off_count(self) -> int:
        return len(self._backing_off)

    @property
    def is_idle(self) -> bool:
        """True when nothing is pending or in flight."""
        return not self._pending and not self._in_flight

    # ===== TRANSITIONS =====

    def append(self, request: QueuedRequest) -> None:
        """Queue a request at the tail."""
        request.state = RequestState.QUEUED
        self._pending.append(request)

    def appendleft(self, request: QueuedRequest) -> None:
        """Queue a request at the head, ahead of everything pending."""
        request.state = RequestState.QUEUED
        self._pending.appendleft(request)

    def popleft(self) -> QueuedRequest | None:
        """Remove and return the head of the queue, or None if empty."""
        if not self._pending:
            return None
        return self._pending.popleft()

    def mark_in_flight(self, request: QueuedRequest) -> None:
        request.state = RequestState.IN_FLIGHT
        self._in_flight[request.id] = request

    def complete(self, request_id: str) -> QueuedRequest | None:
        """Remove a request from the in-flight map once its transport returns."""
        return self._in_flight.pop(request_id, None)

    def hold_for_backoff(self, request: QueuedRequest) -> None:
        request.state = RequestState.RETRYING
        self._backing_off[request.id] = request

    def release_backoff(self, request_id: str) -> QueuedRequest | None:
        """Remove a request from the backoff map when its delay elapses."""
        return self._backing_off.pop(request_id, None)

    # ===== LOOKUP =====

    def find(self, request_id: str) -> QueuedRequest | None:
        """Look a request up in the queue, then in flight, then in backoff."""
        for request in self._pending:
            if request.id == request_id:
                return request
        request = self._in_flight.get(request_id)
        if request is not None:
            return request
        return self._backing_off.get(request_id)

    def __iter__(self) -> Iterator[QueuedRequest]:
        """Iterate over every tracked request (pending, in flight, backing off)."""
        yield from self._pending
        yield from self._in_flight.values()
        yield from self._backing_off.values()

    # ===== SNAPSHOTS AND CLEANUP =====

    def pending(self) -> list[QueuedRequest]:
        return list(self._pending)

    def in_flight(self) -> dict[str, QueuedRequest]:
        return dict(self._in_flight)

    def backing_off(self) -> dict[str, QueuedRequest]:
        return dict(self._backing_off)

    def clear(self) -> list[QueuedRequest]:
        """
        Drop all tracked state.

        Returns:
            The pending and backing-off requests that were dropped. In-flight
            requests are not returned: they resolve when their transport call
            completes.
        """
        dropped = list(self._pending) + list(self._backing_off.values())
        self._pending.clear()
        self._in_flight.clear()
        self._backing_off.clear()
        return dropped


__all__ = ["RequestQueue"]
