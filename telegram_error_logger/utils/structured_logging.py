"""
Structured Logging Utility

Provides JSON-queryable log fields for the logger's own non-fatal signals
(suppressed events, failed deliveries) so they can be filtered in Cloud
Logging or any JSON log sink.

Before: String-based logging hard to query
    logger.warning(f"Rate limit exceeded, skipping {identity}")

After: Structured logging with queryable fields
    log_event_suppressed(reason='rate_limited', identity=identity)
    # Query: jsonPayload.event="event_suppressed" AND jsonPayload.reason="rate_limited"

Structured fields are only attached when ENABLE_STRUCTURED_LOGGING=true;
otherwise plain messages are emitted, so nothing changes for hosts that
use a basic logging.Formatter.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    Structured logging wrapper that adds JSON fields to log records.

    Usage:
        logger = StructuredLogger(__name__)
        logger.warning("Event suppressed", extra={
            'event': 'event_suppressed',
            'reason': 'deduplicated',
        })
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.enabled = os.getenv('ENABLE_STRUCTURED_LOGGING', 'false').lower() == 'true'

    def _log(self, level: int, msg: str, extra: Optional[Dict[str, Any]], exc_info: bool = False):
        if self.enabled and extra:
            self.logger.log(level, msg, extra=extra, exc_info=exc_info)
        else:
            self.logger.log(level, msg, exc_info=exc_info)

    def info(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with structured fields."""
        self._log(logging.INFO, msg, extra)

    def warning(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with structured fields."""
        self._log(logging.WARNING, msg, extra)

    def error(self, msg: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """Log error message with structured fields."""
        self._log(logging.ERROR, msg, extra, exc_info=exc_info)

    def debug(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with structured fields."""
        self._log(logging.DEBUG, msg, extra)


# Convenience functions for the logger's own signals

def log_event_suppressed(reason: str, identity: Optional[str] = None, **extra):
    """Log that an event was dropped by policy (rate_limited, deduplicated)."""
    logger = StructuredLogger('telegram_error_logger.governor')
    logger.warning(f"Telegram error logger: event suppressed ({reason})", extra={
        'event': 'event_suppressed',
        'reason': reason,
        'identity': identity,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        **extra
    })


def log_delivery_failure(error: Optional[str], attempts: int, **extra):
    """Log a delivery that failed after exhausting its attempts."""
    logger = StructuredLogger('telegram_error_logger.delivery')
    logger.error(f"Failed to send Telegram message after {attempts} attempt(s): {error}", extra={
        'event': 'delivery_failed',
        'error_message': error,
        'attempts': attempts,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        **extra
    })


def log_delivery_success(attempts: int, message_id: Optional[int] = None, **extra):
    """Log a successful delivery."""
    logger = StructuredLogger('telegram_error_logger.delivery')
    logger.info(f"Sent Telegram message (attempts={attempts})", extra={
        'event': 'delivery_succeeded',
        'attempts': attempts,
        'message_id': message_id,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        **extra
    })
