"""
Unit tests for RequestQueue placement and state transitions.
"""

import pytest

from notion_throttle.scheduler.queue import RequestQueue
from notion_throttle.types import QueuedRequest, RequestOptions, RequestState


def make_request(request_id: str) -> QueuedRequest:
    return QueuedRequest(
        id=request_id,
        endpoint=f"/pages/{request_id}",
        credential="secret",
        options=RequestOptions(),
        callback=lambda result: None,
    )


@pytest.fixture
def queue():
    return RequestQueue()


class TestFifo:
    def test_popleft_is_fifo(self, queue):
        for rid in ("a", "b", "c"):
            queue.append(make_request(rid))
        assert [queue.popleft().id for _ in range(3)] == ["a", "b", "c"]

    def test_popleft_empty_returns_none(self, queue):
        assert queue.popleft() is None

    def test_appendleft_jumps_the_queue(self, queue):
        queue.append(make_request("a"))
        queue.appendleft(make_request("b"))
        assert queue.popleft().id == "b"

    def test_len_counts_pending_only(self, queue):
        queue.append(make_request("a"))
        queue.mark_in_flight(make_request("b"))
        queue.hold_for_backoff(make_request("c"))
        assert len(queue) == 1
        assert queue.in_flight_count == 1
        assert queue.backing_off_count == 1


class TestTransitions:
    def test_in_flight_round_trip(self, queue):
        request = make_request("a")
        queue.append(request)
        head = queue.popleft()
        queue.mark_in_flight(head)
        assert head.state is RequestState.IN_FLIGHT
        assert queue.complete("a") is head
        assert queue.complete("a") is None
        assert queue.is_idle

    def test_backoff_round_trip(self, queue):
        request = make_request("a")
        queue.hold_for_backoff(request)
        assert request.state is RequestState.RETRYING
        assert queue.release_backoff("a") is request
        assert queue.release_backoff("a") is None

    def test_requeue_sets_queued(self, queue):
        request = make_request("a")
        request.state = RequestState.RETRYING
        queue.append(request)
        assert request.state is RequestState.QUEUED

    def test_backing_off_does_not_block_idle(self, queue):
        queue.hold_for_backoff(make_request("a"))
        assert queue.is_idle


class TestLookup:
    def test_find_searches_every_place(self, queue):
        pending, flying, waiting = (make_request(r) for r in ("p", "f", "w"))
        queue.append(pending)
        queue.mark_in_flight(flying)
        queue.hold_for_backoff(waiting)

        assert queue.find("p") is pending
        assert queue.find("f") is flying
        assert queue.find("w") is waiting
        assert queue.find("missing") is None

    def test_iter_yields_all_tracked(self, queue):
        queue.append(make_request("p"))
        queue.mark_in_flight(make_request("f"))
        queue.hold_for_backoff(make_request("w"))
        assert sorted(r.id for r in queue) == ["f", "p", "w"]


class TestClear:
    def test_clear_returns_pending_and_backing_off(self, queue):
        queue.append(make_request("p"))
        queue.mark_in_flight(make_request("f"))
        queue.hold_for_backoff(make_request("w"))

        dropped = queue.clear()

        assert sorted(r.id for r in dropped) == ["p", "w"]
        assert len(queue) == 0
        assert queue.in_flight_count == 0
        assert queue.backing_off_count == 0

    def test_snapshots_are_copies(self, queue):
        queue.append(make_request("p"))
        snapshot = queue.pending()
        snapshot.clear()
        assert len(queue) == 1
