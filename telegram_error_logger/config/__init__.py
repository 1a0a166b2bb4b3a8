"""
Configuration for the Telegram error logger.
"""

from telegram_error_logger.config.governor_config import (
    ConfigurationError,
    GovernorConfig,
    TELEGRAM_API_BASE_URL,
    TELEGRAM_MAX_MESSAGE_LENGTH,
)

__all__ = [
    'ConfigurationError',
    'GovernorConfig',
    'TELEGRAM_API_BASE_URL',
    'TELEGRAM_MAX_MESSAGE_LENGTH',
]
