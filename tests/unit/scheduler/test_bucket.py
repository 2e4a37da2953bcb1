"""
Unit tests for TokenBucket.

All timing uses the FakeClock fixture; nothing here sleeps.
"""

import logging

import pytest

from notion_throttle.scheduler.bucket import TokenBucket


@pytest.fixture
def bucket(clock):
    return TokenBucket(tokens_per_second=3, burst_size=10, clock=clock)


class TestRefill:
    def test_starts_full(self, bucket):
        assert bucket.tokens == 10

    def test_refill_adds_elapsed_tokens(self, bucket, clock):
        for _ in range(10):
            assert bucket.try_acquire()
        clock.advance(1.0)
        bucket.refill()
        assert bucket.tokens == pytest.approx(3.0)

    def test_refill_capped_at_burst(self, bucket, clock):
        clock.advance(3600)
        bucket.refill()
        assert bucket.tokens == 10

    @pytest.mark.parametrize(
        ("rate", "burst"), [(0.5, 1), (3, 10), (100, 5), (1, 1000)]
    )
    def test_tokens_stay_within_bounds(self, clock, rate, burst):
        bucket = TokenBucket(tokens_per_second=rate, burst_size=burst, clock=clock)
        for step in range(200):
            if step % 3:
                bucket.try_acquire()
            clock.advance(0.07 * (step % 5))
            bucket.refill()
            assert 0 <= bucket.tokens <= burst


class TestTryAcquire:
    def test_burst_then_empty(self, bucket):
        assert all(bucket.try_acquire() for _ in range(10))
        assert not bucket.try_acquire()

    def test_next_token_after_one_over_rate(self, bucket, clock):
        for _ in range(10):
            bucket.try_acquire()
        clock.advance(0.3)
        assert not bucket.try_acquire()
        clock.advance(0.034)
        assert bucket.try_acquire()

    def test_failed_acquire_does_not_consume(self, bucket, clock):
        for _ in range(10):
            bucket.try_acquire()
        clock.advance(0.2)
        assert not bucket.try_acquire()
        assert bucket.tokens == pytest.approx(0.6)


class TestPause:
    def test_pause_blocks_acquire(self, bucket):
        bucket.pause(2.0)
        assert bucket.is_paused()
        assert not bucket.try_acquire()
        assert bucket.tokens == 10

    def test_pause_remaining(self, bucket, clock):
        assert bucket.pause_remaining() is None
        bucket.pause(2.0)
        clock.advance(0.5)
        assert bucket.pause_remaining() == pytest.approx(1.5)

    def test_expired_pause_cleared_on_acquire(self, bucket, clock, caplog):
        bucket.pause(2.0)
        clock.advance(2.0)
        assert not bucket.is_paused()
        assert bucket.pause_remaining() is None

        with caplog.at_level(logging.INFO, logger="notion_throttle.scheduler.bucket"):
            assert bucket.try_acquire()
        assert bucket.paused_until is None
        assert "Rate limit pause ended" in caplog.text

    def test_resume_clears_pause(self, bucket):
        bucket.pause(30.0)
        assert bucket.resume() is True
        assert not bucket.is_paused()
        assert bucket.try_acquire()

    def test_resume_without_pause(self, bucket):
        assert bucket.resume() is False


class TestReconfigure:
    def test_refills_to_new_capacity_and_clears_pause(self, bucket):
        for _ in range(10):
            bucket.try_acquire()
        bucket.pause(5.0)

        bucket.reconfigure(tokens_per_second=5, burst_size=2)

        assert bucket.tokens_per_second == 5
        assert bucket.burst_size == 2
        assert bucket.tokens == 2
        assert not bucket.is_paused()
