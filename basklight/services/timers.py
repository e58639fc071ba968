"""Wall-clock tick sources for countdowns."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Protocol

TickCallback = Callable[[], None]


class TickHandle(Protocol):
    def cancel(self) -> None:
        ...

    @property
    def cancelled(self) -> bool:
        ...


class Scheduler(Protocol):
    """Creates repeating timers that call back every ``interval`` seconds."""

    def every(self, interval: float, callback: TickCallback) -> TickHandle:
        ...


class _AsyncioTimer:
    def __init__(
        self, loop: asyncio.AbstractEventLoop, interval: float, callback: TickCallback
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """Scheduler driven by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def every(self, interval: float, callback: TickCallback) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioTimer(loop, interval, callback)


@dataclass(eq=False)
class ManualTimer:
    interval: float
    callback: TickCallback
    due: float
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Deterministic scheduler whose clock only moves through :meth:`advance`."""

    now: float = 0.0
    timers: list[ManualTimer] = field(default_factory=list)

    def every(self, interval: float, callback: TickCallback) -> ManualTimer:
        timer = ManualTimer(interval=interval, callback=callback, due=self.now + interval)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every tick that falls due, in order."""

        target = self.now + seconds
        while True:
            pending = [timer for timer in self.active if timer.due <= target]
            if not pending:
                break
            timer = min(pending, key=lambda item: item.due)
            self.now = timer.due
            timer.due += timer.interval
            timer.callback()
        self.now = target
