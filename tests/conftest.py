"""
Shared fixtures for the notion-throttle test suite.

Timing properties are tested with an injected fake clock driving the token
bucket and the error window; the dispatcher tick and backoff timers still run
on the real event loop, so configs used here keep those intervals small.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from notion_throttle.scheduler.config import ThrottleConfig
from notion_throttle.types.request import RequestOptions
from notion_throttle.types.result import ThrottleResult, TransportResponse

OK_RESPONSE = TransportResponse(status=200, body={"object": "page", "id": "abc"})


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedTransport:
    """
    Transport returning scripted responses in order, then ``default``.

    Scripted items that are exceptions are raised instead of returned.
    """

    def __init__(
        self,
        *responses: TransportResponse | BaseException,
        default: TransportResponse = OK_RESPONSE,
    ) -> None:
        self.responses = list(responses)
        self.default = default
        self.calls: list[tuple[str, str, RequestOptions]] = []

    async def execute(
        self, endpoint: str, credential: str, options: RequestOptions
    ) -> TransportResponse:
        self.calls.append((endpoint, credential, options))
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        return item


class GatedTransport:
    """Transport whose calls block until ``release()`` is called."""

    def __init__(self, response: TransportResponse = OK_RESPONSE) -> None:
        self.response = response
        self.calls: list[tuple[str, str, RequestOptions]] = []
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def execute(
        self, endpoint: str, credential: str, options: RequestOptions
    ) -> TransportResponse:
        self.calls.append((endpoint, credential, options))
        await self._gate.wait()
        return self.response


class ResultRecorder:
    """Callback collecting every delivered result."""

    def __init__(self) -> None:
        self.results: list[ThrottleResult] = []

    def __call__(self, result: ThrottleResult) -> None:
        self.results.append(result)

    def for_id(self, request_id: str | None) -> list[ThrottleResult]:
        return [r for r in self.results if r.request_id == request_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> ResultRecorder:
    return ResultRecorder()


@pytest.fixture
def fast_config() -> ThrottleConfig:
    """Defaults with a short tick and millisecond backoff."""
    return ThrottleConfig(
        tick_interval=0.01,
        base_retry_delay_ms=10,
        max_retry_delay_ms=80,
    )


@pytest.fixture
def make_transport() -> Callable[..., ScriptedTransport]:
    def factory(*responses: Any, **kwargs: Any) -> ScriptedTransport:
        return ScriptedTransport(*responses, **kwargs)

    return factory


@pytest.fixture
def gated_transport() -> GatedTransport:
    return GatedTransport()


@pytest.fixture
def make_gated_transport() -> Callable[..., GatedTransport]:
    return GatedTransport


@pytest.fixture
def drain() -> Callable[..., Awaitable[None]]:
    """Let ready callbacks and tasks run without advancing real time much."""

    async def _drain(iterations: int = 10) -> None:
        for _ in range(iterations):
            await asyncio.sleep(0)

    return _drain


@pytest.fixture
def wait_for() -> Callable[..., Awaitable[None]]:
    """Poll a condition on the real loop until it holds or the timeout expires."""

    async def _wait_for(
        condition: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() >= deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(interval)

    return _wait_for
