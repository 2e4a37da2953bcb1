# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Throttle scheduler for the Notion API.

ThrottleScheduler owns a token bucket, a FIFO request queue and a retry
policy. Callers submit requests with a continuation and receive an id
immediately; the continuation later fires exactly once with the terminal
ThrottleResult.

Everything runs on a single asyncio event loop:

- a tick task drains the queue while the bucket has tokens
- each dispatched request runs its transport call as a task
- backoff retries are ``loop.call_later`` timers
- queue-full rejections are delivered with ``loop.call_soon``

Bucket, queue and stats are only touched from that loop, so no locks are
needed. Public methods must be called from the loop's thread.
"""

import asyncio
import contextlib
import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict
from typing import Any

from typing_extensions import Self

from ..exceptions import SchedulerError
from ..observability.collector import UnifiedMetricsCollector, get_metrics_collector
from ..observability.constants import (
    REASON_RATE_LIMITED,
    REASON_SERVER_ERROR,
    REASON_TRANSPORT_ERROR,
    reason_for_status,
)
from ..observability.health import HealthCheck, check_throttle_health
from ..observability.stats import StatsCollector, format_statusline
from ..protocols.transport import TransportProtocol
from ..strategies.retry import RetryAction, RetryPolicy
from ..types.request import QueuedRequest, RequestOptions, RequestState, ResultCallback
from ..types.result import Outcome, ThrottleResult, TransportResponse
from ..types.stats import SchedulerState, ThrottleStats
from .bucket import Clock, TokenBucket
from .config import ThrottleConfig
from .queue import RequestQueue

logger = logging.getLogger(__name__)

Notifier = Callable[[str], Any]


def _log_notice(message: str) -> None:
    logger.warning(message)


class ThrottleScheduler:
    """
    Rate-limited, retrying, cancellable request scheduler.

    Example:
        >>> async with ThrottleScheduler(NotionHttpTransport()) as scheduler:
        ...     result = await scheduler.execute("/pages/abc", token)
        ...     result.raise_for_error()
    """

    def __init__(
        self,
        transport: TransportProtocol,
        config: ThrottleConfig | None = None,
        *,
        clock: Clock = time.monotonic,
        metrics_enabled: bool = False,
        metrics_collector: UnifiedMetricsCollector | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """
        Initialize the scheduler. No event loop is needed until work is submitted.

        Args:
            transport: Performs one request/response exchange
            config: Scheduler configuration (defaults if omitted)
            clock: Monotonic clock in seconds, used by the bucket and stats
            metrics_enabled: Mirror events into the shared metrics collector
            metrics_collector: Explicit collector (implies metrics enabled)
            notifier: Receives user-facing notices for long 429 pauses;
                defaults to a logged warning
        """
        self.transport = transport
        self.config = config or ThrottleConfig()
        self._clock = clock

        if metrics_collector is None and metrics_enabled:
            metrics_collector = get_metrics_collector()
        self.metrics_collector = metrics_collector

        self._bucket = TokenBucket(
            self.config.tokens_per_second, self.config.burst_size, clock=clock
        )
        self._queue = RequestQueue()
        self._policy = RetryPolicy.from_config(self.config)
        self._stats = StatsCollector(
            clock=clock,
            error_display_window=self.config.error_display_window,
            metrics_collector=metrics_collector,
        )
        self._notifier: Notifier = notifier or _log_notice

        self._loop: asyncio.AbstractEventLoop | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._transport_tasks: dict[str, asyncio.Task[None]] = {}
        self._retry_handles: dict[str, asyncio.TimerHandle] = {}
        self._request_counter = 0

    # ===== CONFIGURATION =====

    def setup(
        self, options: Mapping[str, Any] | None = None, **overrides: Any
    ) -> ThrottleConfig:
        """
        Apply options over the defaults, refill the bucket and clear any pause.

        Raises:
            ConfigurationError: On unknown options or invalid values
        """
        config = ThrottleConfig.from_options(options, **overrides)
        self.config = config
        self._bucket.reconfigure(config.tokens_per_second, config.burst_size)
        self._policy = RetryPolicy.from_config(config)
        self._stats.error_display_window = config.error_display_window
        logger.debug(f"Throttle configured: {config}")
        return config

    # ===== SUBMISSION =====

    def submit(
        self,
        endpoint: str,
        credential: str,
        options: RequestOptions | Mapping[str, Any] | None,
        callback: ResultCallback,
    ) -> str | None:
        """
        Queue a request.

        Args:
            endpoint: API path (e.g. "/pages/<id>")
            credential: Integration token, passed through to the transport
            options: Method, body and headers (a RequestOptions or a mapping)
            callback: Receives the terminal ThrottleResult exactly once

        Returns:
            The request id, or None if the queue was full. A rejected
            submission still receives a REJECTED result on the next loop
            iteration.

        Raises:
            SchedulerError: If called with no running event loop
        """
        loop = self._get_loop()

        if len(self._queue) >= self.config.max_queue_size:
            self._stats.record_rejected()
            logger.error(
                f"Request queue full ({self.config.max_queue_size}), "
                f"rejecting {endpoint}"
            )
            rejected = ThrottleResult.queue_full(self.config.max_queue_size)
            loop.call_soon(self._safe_callback, callback, rejected)
            return None

        if options is None:
            options = RequestOptions()
        elif not isinstance(options, RequestOptions):
            options = RequestOptions(**options)

        self._request_counter += 1
        request_id = f"req_{self._request_counter}_{time.monotonic_ns()}"
        request = QueuedRequest(
            id=request_id,
            endpoint=endpoint,
            credential=credential,
            options=options,
            callback=callback,
            created_at=self._clock(),
        )
        self._queue.append(request)
        self._stats.record_submitted()
        logger.debug(f"Queued {request_id}: {options.method} {endpoint}")

        self._ensure_ticking()
        return request_id

    def get(
        self, endpoint: str, credential: str, callback: ResultCallback
    ) -> str | None:
        return self.submit(endpoint, credential, RequestOptions(method="GET"), callback)

    def post(
        self,
        endpoint: str,
        credential: str,
        body: Mapping[str, Any] | None,
        callback: ResultCallback,
    ) -> str | None:
        return self.submit(
            endpoint, credential, RequestOptions(method="POST", body=body), callback
        )

    def patch(
        self,
        endpoint: str,
        credential: str,
        body: Mapping[str, Any] | None,
        callback: ResultCallback,
    ) -> str | None:
        return self.submit(
            endpoint, credential, RequestOptions(method="PATCH", body=body), callback
        )

    async def execute(
        self,
        endpoint: str,
        credential: str,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ThrottleResult:
        """
        Submit a request and await its terminal result.

        Cancelling the awaiting task cancels the request.
        """
        loop = self._get_loop()
        future: asyncio.Future[ThrottleResult] = loop.create_future()

        def deliver(result: ThrottleResult) -> None:
            if not future.done():
                future.set_result(result)

        request_id = self.submit(endpoint, credential, options, deliver)
        try:
            return await future
        except asyncio.CancelledError:
            if request_id is not None:
                self.cancel(request_id)
            raise

    # ===== CANCELLATION =====

    def cancel(self, request_id: str) -> bool:
        """
        Mark a queued, in-flight or backing-off request as cancelled.

        Returns:
            True if a live request was newly marked
        """
        request = self._queue.find(request_id)
        if request is None or not request.is_live:
            return False

        request.cancelled = True
        self._stats.record_cancelled()
        logger.debug(f"Cancelled {request_id} ({request.state.value})")
        return True

    def cancel_all(self) -> int:
        """Mark every live request as cancelled and return how many were marked."""
        count = 0
        for request in self._queue:
            if request.is_live:
                request.cancelled = True
                count += 1

        self._stats.record_cancelled(count)
        if count:
            logger.info(f"Cancelled {count} requests")
        return count

    # ===== PAUSE / RESUME =====

    def pause(self, duration_ms: float) -> None:
        """Stop dispatching for ``duration_ms`` milliseconds."""
        self._bucket.pause(duration_ms / 1000.0)
        logger.info(f"Throttle paused for {duration_ms / 1000.0:.1f}s")

    def resume(self) -> bool:
        """
        Clear any pause and restart dispatching if work is pending.

        Returns:
            True if a pause was cleared
        """
        cleared = self._bucket.resume()
        if cleared:
            logger.info("Throttle resumed")
        self._ensure_ticking()
        return cleared

    def is_paused(self) -> bool:
        return self._bucket.is_paused()

    # ===== STATS =====

    def get_stats(self) -> ThrottleStats:
        """Refill the bucket and return a snapshot of queue, bucket and counters."""
        self._bucket.refill()
        stats = self._stats.snapshot(
            queue_length=len(self._queue),
            available_tokens=self._bucket.tokens,
            requests_in_flight=self._queue.in_flight_count,
            paused=self._bucket.is_paused(),
            pause_remaining=self._bucket.pause_remaining(),
        )
        self._stats.update_gauges(
            stats.queue_length, stats.requests_in_flight, stats.available_tokens
        )
        return stats

    def statusline(self) -> str:
        """Compact status token: error, pause countdown, backlog or empty."""
        return format_statusline(
            self.get_stats(),
            had_error=self._stats.had_error,
            queue_warning_threshold=self.config.queue_warning_threshold,
        )

    def check_health(self) -> list[HealthCheck]:
        return check_throttle_health(self.get_stats(), self.config.tokens_per_second)

    # ===== LIFECYCLE =====

    def shutdown(self) -> None:
        """
        Cancel all work and stop the dispatcher.

        Queued and backing-off requests receive their cancelled result now.
        In-flight requests receive it when their transport call returns.
        Cumulative stats are kept.
        """
        self.cancel_all()

        if self._tick_task is not None:
            if not self._tick_task.get_loop().is_closed():
                self._tick_task.cancel()
            self._tick_task = None

        for handle in self._retry_handles.values():
            handle.cancel()
        self._retry_handles.clear()

        for request in self._queue.clear():
            self._resolve(request, ThrottleResult.cancelled_result(request.id))

        logger.info("Throttle scheduler shut down")

    async def aclose(self) -> None:
        """Shut down, abort transport calls and wait for the tick to stop."""
        tick = self._tick_task
        tasks = list(self._transport_tasks.values())

        self.shutdown()

        for task in tasks:
            if not task.done():
                task.cancel()

        if tick is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await tick

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._transport_tasks.clear()

    async def __aenter__(self) -> Self:
        """
        Async context manager entry.

        Example:
            async with ThrottleScheduler(transport) as scheduler:
                result = await scheduler.execute("/users/me", token)
        """
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Shut the scheduler down even if the block raised."""
        await self.aclose()

    def reset(self) -> None:
        """Shut down, then wipe stats, refill the bucket and restart ids. For tests."""
        self.shutdown()
        self._stats.reset()
        self._bucket.reconfigure(self.config.tokens_per_second, self.config.burst_size)
        self._request_counter = 0

    def inspect_internal_state(self) -> SchedulerState:
        """Expose queue, in-flight map, backoff area and bucket. For tests."""
        return SchedulerState(
            queue=self._queue.pending(),
            in_flight=self._queue.in_flight(),
            backing_off=self._queue.backing_off(),
            bucket=self._bucket,
        )

    # ===== DISPATCHER =====

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError(
                "ThrottleScheduler requires a running asyncio event loop"
            ) from e

        if self._loop is not loop:
            if (
                self._loop is not None
                and not self._loop.is_closed()
                and (not self._queue.is_idle or self._queue.backing_off_count)
            ):
                raise SchedulerError(
                    "ThrottleScheduler has pending work on a different event loop"
                )
            self._loop = loop
        return loop

    def _ensure_ticking(self) -> None:
        if self._queue.is_idle:
            return
        if self._tick_task is not None and not self._tick_task.done():
            return
        self._tick_task = self._get_loop().create_task(self._tick_loop())

    async def _tick_loop(self) -> None:
        """Drain the queue every tick until nothing is pending or in flight."""
        try:
            while True:
                self._process_queue()
                if self._queue.is_idle:
                    return
                await asyncio.sleep(self.config.tick_interval)
        finally:
            if self._tick_task is asyncio.current_task():
                self._tick_task = None

    def _process_queue(self) -> None:
        while len(self._queue) > 0 and self._bucket.try_acquire():
            request = self._queue.popleft()
            if request is None:
                break
            if request.cancelled:
                self._resolve(request, ThrottleResult.cancelled_result(request.id))
                continue
            self._dispatch(request)

        self._stats.update_gauges(
            len(self._queue), self._queue.in_flight_count, self._bucket.tokens
        )

    def _dispatch(self, request: QueuedRequest) -> None:
        self._queue.mark_in_flight(request)
        logger.debug(
            f"Dispatching {request.id}: {request.options.method} {request.endpoint} "
            f"(attempt {request.attempt})"
        )
        task = self._get_loop().create_task(self._run_transport(request))
        self._transport_tasks[request.id] = task
        task.add_done_callback(
            lambda t, req=request: self._on_transport_task_done(req, t)
        )

    async def _run_transport(self, request: QueuedRequest) -> None:
        started = time.perf_counter()
        try:
            response = await self.transport.execute(
                request.endpoint, request.credential, request.options
            )
        except Exception as e:
            logger.warning(f"Transport raised for {request.id}: {e}")
            response = TransportResponse(status=0, error=f"Transport failed: {e}")
        finally:
            self._stats.observe_latency(time.perf_counter() - started)

        self._on_transport_complete(request, response)

    def _on_transport_task_done(
        self, request: QueuedRequest, task: "asyncio.Task[None]"
    ) -> None:
        if self._transport_tasks.get(request.id) is task:
            del self._transport_tasks[request.id]
        if task.cancelled():
            self._queue.complete(request.id)
            self._resolve(request, ThrottleResult.cancelled_result(request.id))
        elif task.exception() is not None:
            # Only reachable if the dispatcher itself raised
            logger.error(
                f"Dispatcher failed for {request.id}: {task.exception()!r}"
            )
            self._queue.complete(request.id)
            self._resolve(
                request,
                ThrottleResult.from_response(
                    TransportResponse(status=0, error=str(task.exception())),
                    request.id,
                ),
            )

    # ===== TRANSITIONS =====

    def _on_transport_complete(
        self, request: QueuedRequest, response: TransportResponse
    ) -> None:
        self._queue.complete(request.id)

        if request.cancelled:
            self._resolve(request, ThrottleResult.cancelled_result(request.id))
            return

        decision = self._policy.decide(
            response, request.attempt, request.rate_limit_retries
        )
        if decision.action is RetryAction.RATE_LIMITED:
            self._handle_rate_limited(request, decision.delay)
        elif decision.action is RetryAction.BACKOFF:
            reason = (
                REASON_TRANSPORT_ERROR
                if response.is_transport_error
                else REASON_SERVER_ERROR
            )
            self._schedule_retry(request, decision.delay, reason)
        else:
            self._resolve(request, ThrottleResult.from_response(response, request.id))

    def _handle_rate_limited(self, request: QueuedRequest, retry_after: float) -> None:
        """Pause the bucket and put the request back at the head of the queue."""
        self._bucket.pause(retry_after)
        request.rate_limit_retries += 1
        self._stats.record_retry(REASON_RATE_LIMITED)
        self._queue.appendleft(request)
        logger.warning(f"Rate limited, pausing for {retry_after:.1f}s")

        if retry_after >= self.config.pause_notify_threshold:
            self._notify(
                f"Notion rate limited. Resuming in {math.ceil(retry_after)}s..."
            )
        self._ensure_ticking()

    def _schedule_retry(
        self, request: QueuedRequest, delay: float, reason: str
    ) -> None:
        """Park the request in the backoff area and re-queue it after ``delay``."""
        request.attempt += 1
        self._stats.record_retry(reason)
        self._queue.hold_for_backoff(request)
        logger.info(
            f"Retrying {request.id} in {delay:.1f}s "
            f"(attempt {request.attempt}/{self.config.max_retries + 1})"
        )
        self._retry_handles[request.id] = self._get_loop().call_later(
            delay, self._requeue_after_backoff, request.id
        )

    def _requeue_after_backoff(self, request_id: str) -> None:
        self._retry_handles.pop(request_id, None)
        request = self._queue.release_backoff(request_id)
        if request is None:
            return
        if request.cancelled:
            self._resolve(request, ThrottleResult.cancelled_result(request.id))
            return
        self._queue.append(request)
        self._ensure_ticking()

    def _resolve(self, request: QueuedRequest, result: ThrottleResult) -> None:
        """Deliver the terminal result; repeat calls for a request are ignored."""
        if request.state.is_terminal:
            return
        request.state = (
            RequestState.CANCELLED if result.cancelled else RequestState.DONE
        )

        if result.outcome is Outcome.SUCCESS:
            self._stats.record_completed()
        elif result.outcome is Outcome.FAILURE:
            self._stats.record_failed(reason_for_status(result.status))
            logger.debug(
                f"Request {request.id} failed: {result.error or result.status}"
            )

        self._safe_callback(request.callback, result)

    def _safe_callback(self, callback: ResultCallback, result: ThrottleResult) -> None:
        try:
            callback(result)
        except Exception:
            self._stats.record_callback_error()
            logger.exception(f"Result callback for {result.request_id} raised")

    def _notify(self, message: str) -> None:
        try:
            self._notifier(message)
        except Exception:
            logger.exception("Throttle notifier raised")


def create_scheduler(
    transport: TransportProtocol,
    config: ThrottleConfig | None = None,
    **kwargs: Any,
) -> ThrottleScheduler:
    """
    Factory function to create a ThrottleScheduler.

    Args:
        transport: Performs one request/response exchange
        config: Optional configuration (defaults if omitted)
        **kwargs: Keyword arguments for ThrottleScheduler (clock,
            metrics_enabled, metrics_collector, notifier); any other keys are
            treated as configuration options

    Returns:
        Configured ThrottleScheduler instance

    Raises:
        ConfigurationError: On unknown or invalid configuration options
    """
    scheduler_keys = {"clock", "metrics_enabled", "metrics_collector", "notifier"}
    scheduler_kwargs = {k: v for k, v in kwargs.items() if k in scheduler_keys}
    options = {k: v for k, v in kwargs.items() if k not in scheduler_keys}

    if options:
        base = config or ThrottleConfig()
        config = ThrottleConfig.from_options(asdict(base), **options)

    return ThrottleScheduler(transport, config, **scheduler_kwargs)


__all__ = [
    "Notifier",
    "ThrottleScheduler",
    "create_scheduler",
]
