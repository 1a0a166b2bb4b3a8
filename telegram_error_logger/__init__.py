"""
telegram-error-logger

Reports web application errors to a Telegram chat with rate limiting,
deduplication and retried delivery.

Usage:
    from telegram_error_logger import GovernorConfig, TelegramErrorLogger

    error_logger = TelegramErrorLogger(GovernorConfig.from_env())
    error_logger.send_error(exc, {'method': 'GET', 'url': '/health'})
"""

__version__ = '1.0.0'

from telegram_error_logger.config import ConfigurationError, GovernorConfig
from telegram_error_logger.alerts import Event, EventKind, TelegramErrorLogger
from telegram_error_logger.clients import DeliveryResult, RetryDriver, TelegramTransport

__all__ = [
    '__version__',
    'ConfigurationError',
    'GovernorConfig',
    'Event',
    'EventKind',
    'TelegramErrorLogger',
    'DeliveryResult',
    'RetryDriver',
    'TelegramTransport',
]
