# memeboard/cache.py
"""In-process snapshot cache and per-caller request budget."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from memeboard.models import AggregateSnapshot
from memeboard.thresholds import (
    CACHE_DURATION_SECONDS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


class SnapshotCache:
    """Holds the latest snapshot and when it was stored."""

    def __init__(self, max_age_seconds: float = CACHE_DURATION_SECONDS, clock: Clock = time.monotonic):
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._snapshot: Optional[AggregateSnapshot] = None
        self._stored_at: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self._snapshot is None

    def age_seconds(self) -> Optional[float]:
        if self._stored_at is None:
            return None
        return self._clock() - self._stored_at

    def get_if_fresh(self, max_age_seconds: Optional[float] = None) -> Optional[AggregateSnapshot]:
        limit = self.max_age_seconds if max_age_seconds is None else max_age_seconds
        age = self.age_seconds()
        if self._snapshot is None or age is None or age >= limit:
            return None
        return self._snapshot

    def get_any(self) -> Optional[AggregateSnapshot]:
        """Latest snapshot regardless of age (for stale-on-error serving)."""
        return self._snapshot

    def set(self, snapshot: AggregateSnapshot) -> None:
        self._snapshot = snapshot
        self._stored_at = self._clock()
        LOGGER.info("Snapshot cached (%d players)", snapshot.player_count)


class SlidingWindowRateLimiter:
    """Allow at most N attempts per caller within a trailing time window."""

    def __init__(
        self,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        clock: Clock = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._calls: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _evict(self, key: str, cutoff: float) -> None:
        calls = self._calls.get(key)
        if calls is None:
            return
        while calls and calls[0] <= cutoff:
            calls.popleft()
        if not calls:
            del self._calls[key]

    def is_within_budget(
        self,
        caller_key: str,
        window_seconds: Optional[float] = None,
        max_requests: Optional[int] = None,
    ) -> bool:
        """Check the budget and, when allowed, record this attempt."""
        window = self.window_seconds if window_seconds is None else window_seconds
        limit = self.max_requests if max_requests is None else max_requests

        with self._lock:
            now = self._clock()
            self._evict(caller_key, now - window)
            # forget callers idle for longer than any window in use
            idle_cutoff = now - max(window, self.window_seconds)
            for key in list(self._calls):
                if key != caller_key:
                    self._evict(key, idle_cutoff)

            calls = self._calls.get(caller_key, ())
            if len(calls) >= limit:
                LOGGER.warning("Rate limit hit for %s (%d in %ss)", caller_key, len(calls), window)
                return False

            self._calls.setdefault(caller_key, deque()).append(now)
            return True

    def calls_in_window(self, caller_key: str) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for ts in self._calls.get(caller_key, ()) if ts > now - self.window_seconds)

    @property
    def tracked_callers(self) -> int:
        return len(self._calls)

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
