"""Clocks used to await fixed delays between UI phases."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Source of time for awaited delays, in milliseconds."""

    def now(self) -> float: ...

    async def sleep(self, milliseconds: float) -> None: ...


class AsyncioClock:
    """Real clock backed by the running event loop."""

    def now(self) -> float:
        return time.monotonic() * 1000

    async def sleep(self, milliseconds: float) -> None:
        await asyncio.sleep(max(0.0, milliseconds) / 1000)


class ManualClock:
    """Virtual clock that fast-forwards instead of waiting.

    Each sleep advances the virtual time immediately and yields once to the
    event loop so that concurrently scheduled work still interleaves.

    Attributes:
        sleeps: Every requested delay, in call order.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    async def sleep(self, milliseconds: float) -> None:
        delay = max(0.0, milliseconds)
        self.sleeps.append(delay)
        self._now += delay
        await asyncio.sleep(0)


__all__ = ["Clock", "AsyncioClock", "ManualClock"]
