"""
Retry Driver

Wraps TelegramTransport with bounded exponential-backoff retries.

Retry strategy:
- Attempts: 3 by default, never fewer than 1
- Delay between attempt i and i+1 (0-indexed): 2 ** i seconds, no jitter
- No delay after the last attempt

Retry sequence with defaults: attempt, 1s, attempt, 2s, attempt

Usage:
    from telegram_error_logger.clients.retry import RetryDriver

    driver = RetryDriver(transport)
    result = driver.send("<b>Nightly job failed</b>", max_attempts=3)
"""

import logging
import time
from typing import Callable, Optional

from telegram_error_logger.clients.telegram_transport import DeliveryResult, TelegramTransport

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 2


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the given 0-indexed failed attempt."""
    return float(BACKOFF_BASE_SECONDS ** attempt)


class RetryDriver:
    """
    Deliver through a transport, retrying failed attempts.

    Args:
        transport: Object with a ``deliver(message, **options) -> DeliveryResult`` method
        max_attempts: Default attempt budget (default: 3)
        sleep: Sleep function, injectable for tests (default: time.sleep)
    """

    def __init__(
        self,
        transport: TelegramTransport,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.max_attempts = max(1, max_attempts)
        self._sleep = sleep

    def send(self, message: str, max_attempts: Optional[int] = None, **options) -> DeliveryResult:
        """
        Send a message, retrying on failure.

        Args:
            message: Rendered message text
            max_attempts: Attempt budget for this call (clamped to >= 1)
            **options: Passed through to transport.deliver()

        Returns:
            The first successful DeliveryResult, or the last failure.
            Never raises.
        """
        attempts = max(1, max_attempts if max_attempts is not None else self.max_attempts)
        last_result: Optional[DeliveryResult] = None

        for attempt in range(attempts):
            try:
                result = self.transport.deliver(message, **options)
            except Exception as e:
                logger.warning(f"Transport raised on attempt {attempt + 1}/{attempts}: {e}")
                result = DeliveryResult.failure(f"{type(e).__name__}: {e}", cause=e)

            if result.ok:
                if attempt > 0:
                    logger.info(f"Telegram delivery succeeded on attempt {attempt + 1}/{attempts}")
                return result.with_attempts(attempt + 1)

            last_result = result
            if attempt < attempts - 1:
                delay = backoff_delay(attempt)
                logger.debug(
                    f"Telegram delivery attempt {attempt + 1}/{attempts} failed "
                    f"({result.error}), retrying in {delay:.0f}s"
                )
                self._sleep(delay)

        return last_result.with_attempts(attempts)
