"""Sliding-window request limiter keyed by client address."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_s: float


class SlidingWindowRateLimiter:
    def __init__(self, *, max_requests: int, window_s: float) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_s = float(window_s)
        self._lock = asyncio.Lock()
        self._events: dict[str, deque[float]] = {}

    def _prune(self, events: deque[float], now: float) -> None:
        cutoff = now - self.window_s
        while events and events[0] <= cutoff:
            events.popleft()

    async def hit(self, key: str, *, now: float | None = None) -> RateLimitDecision:
        now = time.monotonic() if now is None else float(now)
        async with self._lock:
            events = self._events.setdefault(key, deque())
            self._prune(events, now)
            if len(events) >= self.max_requests:
                retry_after = max(0.0, events[0] + self.window_s - now)
                return RateLimitDecision(False, self.max_requests, 0, retry_after)
            events.append(now)
            # Drop idle clients so the table does not grow without bound.
            for other in [k for k, v in self._events.items() if k != key and v and v[-1] <= now - self.window_s]:
                del self._events[other]
            return RateLimitDecision(True, self.max_requests, self.max_requests - len(events), 0.0)

    def reset(self) -> None:
        self._events.clear()
