"""
TelegramErrorLogger - Error reporting to Telegram with rate limiting and deduplication.

Features:
- Optional error filter (consulted first, free of rate/dedup cost)
- Sliding-window rate limiting (prevent alert spam during an outage)
- Deduplication of identical errors within a window
- Retried delivery with exponential backoff (1s, 2s, ...)
- Periodic sweep of stale throttling state, owned by the logger

Problem Solved:
A failing endpoint under load raises the same exception hundreds of times a
minute. Without volume controls every one becomes a Telegram message, the bot
hits Telegram's own limits and the chat becomes useless.

Failure Policy:
Nothing raised inside the pipeline reaches the caller. A suppressed or failed
delivery returns None and emits a log signal; the logger's own failure must
never replace the application error it was reporting.
"""

import logging
import threading
from typing import Any, Callable, Dict, Mapping, Optional

from telegram_error_logger.alerts.deduplicator import Deduplicator
from telegram_error_logger.alerts.events import Event
from telegram_error_logger.alerts.rate_limiter import Clock, SlidingWindowRateLimiter, monotonic_ms
from telegram_error_logger.alerts.sweeper import ThreadingScheduler
from telegram_error_logger.clients.retry import RetryDriver
from telegram_error_logger.clients.telegram_transport import DeliveryResult, TelegramTransport
from telegram_error_logger.config.governor_config import GovernorConfig
from telegram_error_logger.formatters.error_formatter import ErrorFormatter
from telegram_error_logger.formatters.message_formatter import MessageFormatter
from telegram_error_logger.utils.hash_utils import fallback_identity
from telegram_error_logger.utils.structured_logging import (
    log_delivery_failure,
    log_delivery_success,
    log_event_suppressed,
)

logger = logging.getLogger(__name__)


class TelegramErrorLogger:
    """
    Governs delivery of error reports and custom messages to one Telegram chat.

    Usage:
        config = GovernorConfig(bot_token='123:abc', chat_id='-100200300', deduplicate=True)
        error_logger = TelegramErrorLogger(config)

        try:
            handle_request()
        except Exception as e:
            error_logger.send_error(e, {'method': 'POST', 'url': '/orders', 'route': '/orders'})

        # Operator notifications are never throttled
        error_logger.send_custom_message("Deploy finished", level='success')

        # On shutdown
        error_logger.destroy()

    Args:
        config: GovernorConfig snapshot (or pass keyword fields instead)
        transport: Transport to deliver through (default: TelegramTransport from config)
        clock: Millisecond clock shared by limiter and deduplicator
        sleep: Sleep function used between retries
        scheduler: Object with schedule_periodic(interval_seconds, callback)
        error_formatter / message_formatter: Rendering collaborators
        **config_fields: GovernorConfig fields, when ``config`` is omitted

    Raises:
        ConfigurationError: If bot token or chat id is missing
    """

    def __init__(
        self,
        config: Optional[GovernorConfig] = None,
        transport: Optional[TelegramTransport] = None,
        clock: Clock = monotonic_ms,
        sleep: Optional[Callable[[float], None]] = None,
        scheduler: Optional[Any] = None,
        error_formatter: Optional[ErrorFormatter] = None,
        message_formatter: Optional[MessageFormatter] = None,
        **config_fields
    ):
        if config is None:
            config = GovernorConfig(**config_fields)
        elif config_fields:
            config = config.replace(**config_fields)
        self.config = config

        self.transport = transport or TelegramTransport(
            bot_token=config.bot_token,
            chat_id=config.chat_id,
            api_base_url=config.api_base_url,
            max_message_length=config.max_message_length,
            timeout=config.request_timeout_seconds,
            parse_mode=config.parse_mode,
            disable_web_page_preview=config.disable_web_page_preview,
        )
        self._owns_transport = transport is None

        retry_kwargs = {'sleep': sleep} if sleep is not None else {}
        self.retry_driver = RetryDriver(self.transport, max_attempts=config.retry_attempts, **retry_kwargs)

        self.error_formatter = error_formatter or ErrorFormatter(
            app_name=config.app_name,
            environment=config.environment,
            enable_stack_trace=config.enable_stack_trace,
            max_stack_trace_lines=config.max_stack_trace_lines,
            sensitive_body_fields=config.sensitive_body_fields,
            sensitive_headers=config.sensitive_headers,
        )
        self.message_formatter = message_formatter or MessageFormatter(
            app_name=config.app_name,
            environment=config.environment,
        )

        self.rate_limiter = SlidingWindowRateLimiter(
            window_ms=config.rate_limit_window_ms,
            max_events=config.rate_limit_max,
            clock=clock,
        )
        self.deduplicator = Deduplicator(window_ms=config.deduplicate_window_ms, clock=clock)

        # Outcome counters for get_stats()
        self._stats_lock = threading.Lock()
        self._stats = {'rate_limited': 0, 'deduplicated': 0, 'delivered': 0, 'failed': 0}

        self._destroyed = False
        self._scheduler = scheduler or ThreadingScheduler()
        self._sweep_task = self._scheduler.schedule_periodic(
            config.cleanup_interval_ms / 1000.0, self.sweep
        )

    def __enter__(self):
        """Enter context manager - allows using the logger with 'with' statement."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager - stop the sweep and release state."""
        self.destroy()
        return False  # Don't suppress exceptions

    def report_event(self, event: Event, context: Optional[Mapping[str, Any]] = None) -> Optional[DeliveryResult]:
        """
        Report an error event, subject to filter, rate limit and deduplication.

        Args:
            event: Event to report
            context: Sanitized request context (method, url, route, user, ...)

        Returns:
            DeliveryResult if delivered, None if filtered, suppressed or failed
        """
        context = context or {}
        try:
            if not self._passes_filter(event, context):
                return None

            if not self.rate_limiter.admit():
                self._count('rate_limited')
                log_event_suppressed('rate_limited', error_type=event.error_type)
                return None

            if self.config.deduplicate:
                identity = self.resolve_identity(event, context)
                if not self.deduplicator.admit(identity):
                    self._count('deduplicated')
                    log_event_suppressed('deduplicated', identity=identity)
                    return None

            message = self.error_formatter.format(event, context)
            return self._deliver(message, kind=event.kind.value)
        except Exception as e:
            logger.error(f"Failed to send error to Telegram: {e}", exc_info=True)
            return None

    def send_error(
        self,
        exc: BaseException,
        context: Optional[Mapping[str, Any]] = None,
        identity: Optional[str] = None,
        severity: Optional[str] = None,
    ) -> Optional[DeliveryResult]:
        """Build an Event from an exception and report it. See report_event()."""
        try:
            event = Event.from_exception(exc, identity=identity, severity=severity)
        except Exception as e:
            logger.error(f"Failed to describe exception for Telegram: {e}", exc_info=True)
            return None
        return self.report_event(event, context)

    def send_custom_message(
        self,
        message: str,
        level: str = 'info',
        title: Optional[str] = None,
        data: Any = None,
        include_timestamp: bool = True,
        include_app_info: bool = True,
    ) -> Optional[DeliveryResult]:
        """
        Send an operator notification.

        Custom messages bypass rate limiting and deduplication so they are
        never silently dropped, but are still retried.

        Returns:
            DeliveryResult if delivered, None on failure
        """
        try:
            formatted = self.message_formatter.format(
                message,
                level=level,
                title=title,
                data=data,
                include_timestamp=include_timestamp,
                include_app_info=include_app_info,
            )
            return self._deliver(formatted, kind='custom')
        except Exception as e:
            logger.error(f"Failed to send custom message to Telegram: {e}", exc_info=True)
            return None

    def send_raw_message(self, message: str, **options) -> Optional[DeliveryResult]:
        """
        Send text as-is with a single attempt: no formatting, throttling or retry.

        Args:
            message: Message text
            **options: Transport options (parse_mode, disable_web_page_preview, ...)

        Returns:
            DeliveryResult if delivered, None on failure
        """
        try:
            result = self.transport.deliver(message, **options)
        except Exception as e:
            logger.error(f"Failed to send raw message to Telegram: {e}", exc_info=True)
            return None

        if not result.ok:
            self._count('failed')
            log_delivery_failure(result.error, attempts=1, kind='raw', status_code=result.status_code)
            return None

        self._count('delivered')
        return result

    def resolve_identity(self, event: Event, context: Mapping[str, Any]) -> str:
        """Identity used for deduplication: the event's own, else type + message + route."""
        if event.identity:
            return event.identity
        return fallback_identity(event.error_type, event.message, context)

    def sweep(self) -> None:
        """Evict stale rate-limit and dedup entries."""
        evicted_rate = self.rate_limiter.evict_expired()
        evicted_dedup = self.deduplicator.evict_expired()
        if evicted_rate or evicted_dedup:
            logger.debug(
                f"Sweep evicted {evicted_rate} rate-limit bucket(s) and {evicted_dedup} dedup record(s)"
            )

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about throttling state and delivery outcomes.

        Returns:
            Dictionary with window count, dedup entries and outcome counters
        """
        with self._stats_lock:
            stats = dict(self._stats)
        stats['rate_limit_window_count'] = self.rate_limiter.count()
        stats['dedup_entries'] = len(self.deduplicator)
        return stats

    def destroy(self) -> None:
        """Cancel the sweep and release throttling state. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True

        if self._sweep_task is not None:
            self._sweep_task.cancel()
            self._sweep_task = None

        self.rate_limiter.clear()
        self.deduplicator.clear()

        if self._owns_transport:
            self.transport.close()

    def _passes_filter(self, event: Event, context: Mapping[str, Any]) -> bool:
        error_filter = self.config.error_filter
        if error_filter is None:
            return True
        try:
            return bool(error_filter(event, context))
        except Exception as e:
            # A raising filter never suppresses the event
            logger.warning(f"error_filter raised {type(e).__name__}: {e}; reporting event anyway")
            return True

    def _deliver(self, message: str, kind: str) -> Optional[DeliveryResult]:
        result = self.retry_driver.send(message)
        if not result.ok:
            self._count('failed')
            log_delivery_failure(result.error, attempts=result.attempts, kind=kind,
                                 status_code=result.status_code)
            return None

        self._count('delivered')
        log_delivery_success(result.attempts, message_id=result.message_id, kind=kind)
        return result

    def _count(self, outcome: str) -> None:
        with self._stats_lock:
            self._stats[outcome] += 1
