"""
Sliding-window rate limiter for outgoing error reports.

Problem Solved:
An endpoint failing on every request would otherwise produce one Telegram
message per request. The limiter caps deliveries to ``max_events`` per
``window_ms`` across all event types.

Window Semantics:
- An admitted entry is counted while its age is < window_ms
- Entries aged >= window_ms are evicted on every admit() and by the sweep
- A rejected call records nothing
"""

import logging
import threading
import time
from typing import Callable, Dict

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class SlidingWindowRateLimiter:
    """
    Admit at most ``max_events`` events within any ``window_ms`` span.

    Usage:
        limiter = SlidingWindowRateLimiter(window_ms=60000, max_events=10)
        if limiter.admit():
            deliver(...)
    """

    def __init__(self, window_ms: int = 60000, max_events: int = 10, clock: Clock = monotonic_ms):
        self.window_ms = window_ms
        self.max_events = max_events
        self._clock = clock
        self._lock = threading.Lock()

        # Track admissions: {timestamp_ms: count}
        self._entries: Dict[float, int] = {}

    def admit(self) -> bool:
        """
        Decide whether one more event may be delivered now.

        Returns:
            True if admitted (and recorded), False if the window is full
        """
        with self._lock:
            now = self._clock()
            self._evict_locked(now)

            if sum(self._entries.values()) >= self.max_events:
                return False

            self._entries[now] = self._entries.get(now, 0) + 1
            return True

    def evict_expired(self) -> int:
        """Drop entries that fell out of the window. Returns the number of buckets removed."""
        with self._lock:
            return self._evict_locked(self._clock())

    def count(self) -> int:
        """Number of admissions currently inside the window."""
        with self._lock:
            now = self._clock()
            return sum(n for ts, n in self._entries.items() if now - ts < self.window_ms)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of timestamp buckets held, expired or not."""
        with self._lock:
            return len(self._entries)

    def _evict_locked(self, now: float) -> int:
        expired = [ts for ts in self._entries if now - ts >= self.window_ms]
        for ts in expired:
            del self._entries[ts]
        return len(expired)
