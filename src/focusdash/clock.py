"""One-second tick sources for the scheduler.

A clock holds at most one callback and only fires it while started. The next
tick is never delivered before the previous callback has returned.
"""
from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

TickCallback = Callable[[], None]


class Clock(Protocol):
    @property
    def running(self) -> bool: ...

    def start(self, callback: TickCallback) -> None: ...

    def stop(self) -> None: ...


class _BaseClock:
    def __init__(self) -> None:
        self._callback: Optional[TickCallback] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def _fire(self) -> bool:
        callback = self._callback
        if callback is None:
            return False
        callback()
        return True


class ManualClock(_BaseClock):
    """Ticks only when told to. Used by tests and scripted runs."""

    def advance(self, seconds: int = 1) -> int:
        """Deliver up to ``seconds`` ticks; returns how many were delivered."""
        delivered = 0
        for _ in range(seconds):
            if not self._fire():
                break
            delivered += 1
        return delivered


class SleepClock(_BaseClock):
    """Blocking loop that sleeps ``second_length`` between ticks."""

    def __init__(self, second_length: float = 1.0, sleep: Callable[[float], None] = time.sleep):
        super().__init__()
        self.second_length = second_length
        self._sleep = sleep

    def run(self) -> int:
        """Tick until the callback is cleared; returns the number of ticks."""
        delivered = 0
        while self.running:
            self._sleep(self.second_length)
            if not self._fire():
                break
            delivered += 1
        return delivered


class WallClock(_BaseClock):
    """Catches up on whole elapsed seconds whenever the caller polls it.

    Suits rerun-driven front ends that cannot block between ticks.
    """

    def __init__(self, now: Callable[[], float] = time.monotonic):
        super().__init__()
        self._now = now
        self._last_tick: float = 0.0

    def start(self, callback: TickCallback) -> None:
        super().start(callback)
        self._last_tick = self._now()

    def catch_up(self) -> int:
        if not self.running:
            return 0
        due = int(self._now() - self._last_tick)
        delivered = 0
        for _ in range(due):
            if not self._fire():
                break
            self._last_tick += 1
            delivered += 1
        return delivered
