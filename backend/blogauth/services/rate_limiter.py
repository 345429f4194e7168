"""In-memory sliding-window limiter for sign-in, refresh and reset requests."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional


class InMemoryRateLimiter:
    """Per-key request log; only suitable for a single process.

    Keys whose hits have all left the longest window seen so far are swept,
    so a stream of distinct keys cannot grow the log without bound.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}
        self._max_window = 0
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        cutoff = now - self._max_window
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def _prune(self, key: str, now: float, window_seconds: int) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = now - window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record a hit for key unless limit hits already fall inside the window."""
        with self._lock:
            now = self._clock()
            self._max_window = max(self._max_window, window_seconds)
            self._sweep(now)

            hits = self._prune(key, now, window_seconds)
            if len(hits) >= limit:
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)


rate_limiter = InMemoryRateLimiter()
