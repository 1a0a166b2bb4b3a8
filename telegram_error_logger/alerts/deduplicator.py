"""
Deduplication of repeated identical events.

Keeps ``{identity_hash: last_seen_ms}``. A repeat inside the window is
suppressed without refreshing the timestamp, so a failure that keeps
recurring is reported again once per window rather than never.

Key cardinality is bounded only by sweep eviction: many distinct
identities inside one window all stay in memory until they go stale.
"""

import logging
import threading
from typing import Dict

from telegram_error_logger.alerts.rate_limiter import Clock, monotonic_ms
from telegram_error_logger.utils.hash_utils import compute_identity_hash

logger = logging.getLogger(__name__)


class Deduplicator:
    """
    Suppress events whose identity was admitted less than ``window_ms`` ago.

    Usage:
        dedup = Deduplicator(window_ms=300000)
        if dedup.admit("ValueError:bad input:/orders"):
            deliver(...)
    """

    def __init__(self, window_ms: int = 300000, clock: Clock = monotonic_ms):
        self.window_ms = window_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._last_seen: Dict[str, float] = {}

    def admit(self, identity: str) -> bool:
        """
        Check and record an identity.

        Args:
            identity: Deterministic identity string for the event

        Returns:
            True if novel (recorded), False if a duplicate within the window
        """
        key = compute_identity_hash(identity)
        with self._lock:
            now = self._clock()
            last_seen = self._last_seen.get(key)
            if last_seen is not None and now - last_seen < self.window_ms:
                return False

            self._last_seen[key] = now
            return True

    def evict_expired(self) -> int:
        """Drop stale records. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, ts in self._last_seen.items() if now - ts >= self.window_ms]
            for key in expired:
                del self._last_seen[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._last_seen.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_seen)
