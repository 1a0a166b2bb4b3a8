"""
Delivery governor: rate limiting, deduplication and the logger facade.
"""

from .events import Event, EventKind
from .rate_limiter import SlidingWindowRateLimiter, monotonic_ms
from .deduplicator import Deduplicator
from .sweeper import PeriodicTask, ThreadingScheduler
from .error_logger import TelegramErrorLogger

__all__ = [
    'Event',
    'EventKind',
    'SlidingWindowRateLimiter',
    'monotonic_ms',
    'Deduplicator',
    'PeriodicTask',
    'ThreadingScheduler',
    'TelegramErrorLogger',
]
