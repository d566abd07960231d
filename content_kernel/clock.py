"""
Content Kernel — Injectable Clocks

The engine never reads system time itself. It asks a clock for unix
seconds, and only to stamp created_at / saved_at. Replays carry their
original timestamps on the commands and never consult a clock.
"""

from __future__ import annotations

import time


class SystemClock:
    """Wall-clock unix seconds, never stepping backwards."""

    def __init__(self) -> None:
        self._last = 0

    def __call__(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class FixedClock:
    """Manually driven clock for tests and deterministic scripts."""

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int = 1) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now
