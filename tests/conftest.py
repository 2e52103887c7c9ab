from __future__ import annotations

import heapq
from typing import Any, Callable

import pytest


class FakeHandle:
    def __init__(self, when_ms: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when_ms = when_ms
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual-clock stand-in for the `call_later` part of an asyncio loop."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: list[tuple[int, int, FakeHandle]] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now_ms + round(delay * 1000), callback, args)
        heapq.heappush(self._queue, (handle.when_ms, self._seq, handle))
        self._seq += 1
        return handle

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = handle.when_ms
            handle.callback(*handle.args)
        self.now_ms = target

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()
