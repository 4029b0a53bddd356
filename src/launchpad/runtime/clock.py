# src/launchpad/runtime/clock.py
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current time in whole seconds."""

    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to. TEST/TOOLING use."""

    def __init__(self, start: int = 0) -> None:
        self._t = int(start)

    def now(self) -> int:
        return self._t

    def set(self, t: int) -> None:
        self._t = int(t)

    def advance(self, seconds: int) -> int:
        self._t += int(seconds)
        return self._t


__all__ = ["Clock", "ManualClock", "SystemClock"]
