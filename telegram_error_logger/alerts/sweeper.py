"""
Periodic background sweep.

The logger owns one PeriodicTask for its lifetime: created in the
constructor, cancelled in destroy(). The scheduler is injectable so tests
can fire the sweep by hand instead of waiting on a real timer.

Thread Safety:
The task runs on a daemon thread, so an undestroyed logger never keeps the
interpreter alive. cancel() only signals the thread; it does not join it and
never waits on in-flight deliveries.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs ``callback`` every ``interval_seconds`` on a daemon thread until cancelled."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None], name: str = 'telegram-sweep'):
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> 'PeriodicTask':
        if self._thread is None:
            self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
            self._thread.start()
        return self

    def cancel(self) -> None:
        """Stop future runs. Safe to call more than once."""
        self._stopped.set()

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def _loop(self):
        # Event.wait returns True as soon as cancel() is called
        while not self._stopped.wait(self.interval_seconds):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Periodic task {self.name} failed: {e}", exc_info=True)


class ThreadingScheduler:
    """Default scheduler: one daemon thread per periodic task."""

    def schedule_periodic(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
        name: str = 'telegram-sweep',
    ) -> PeriodicTask:
        return PeriodicTask(interval_seconds, callback, name=name).start()
