"""
Delivery clients

- TelegramTransport: one sendMessage call per deliver(), with truncation and timeout
- RetryDriver: exponential-backoff retries around a transport
- create_http_session(): pooled requests.Session without adapter retries

Usage:
    from telegram_error_logger.clients import RetryDriver, TelegramTransport

    transport = TelegramTransport(bot_token, chat_id)
    result = RetryDriver(transport).send("<b>hello</b>")
"""

from telegram_error_logger.clients.http_pool import close_session, create_http_session
from telegram_error_logger.clients.retry import RetryDriver, backoff_delay
from telegram_error_logger.clients.telegram_transport import (
    DeliveryResult,
    TelegramTransport,
    TRUNCATION_NOTICE,
    truncate_message,
)

__all__ = [
    'close_session',
    'create_http_session',
    'RetryDriver',
    'backoff_delay',
    'DeliveryResult',
    'TelegramTransport',
    'TRUNCATION_NOTICE',
    'truncate_message',
]
