from __future__ import annotations

import time
from collections import deque
from typing import Callable


class SimpleRateLimiter:
    """Sliding-window counter kept in process memory.

    Each worker keeps its own window, so the effective limit scales with the
    number of workers.
    """

    def __init__(
        self,
        *,
        max_events: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        window_start = now - self.window_seconds
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(window_start)
            self._last_sweep = now
        events = self._events.setdefault(key, deque())
        while events and events[0] <= window_start:
            events.popleft()
        if len(events) >= self.max_events:
            return False
        events.append(now)
        return True

    def _sweep(self, window_start: float) -> None:
        # Keys whose newest event left the window hold nothing worth keeping.
        stale = [key for key, events in self._events.items() if not events or events[-1] <= window_start]
        for key in stale:
            del self._events[key]

    def reset(self, key: str) -> None:
        self._events.pop(key, None)

    def clear(self) -> None:
        self._events.clear()
