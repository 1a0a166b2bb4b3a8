"""
Governor Configuration
======================
Immutable configuration snapshot for a single TelegramErrorLogger instance.

Each logger captures one GovernorConfig at construction and never mutates it.
There is no module-level shared config: two loggers pointed at two chats can
run side by side with different windows and limits.

Usage:
    from telegram_error_logger.config import GovernorConfig

    config = GovernorConfig(bot_token='123:abc', chat_id='-100200300')

    # Or from environment variables (TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID, ...)
    config = GovernorConfig.from_env(app_name='checkout-api')

Environment Variables:
    TELEGRAM_BOT_TOKEN: Bot token (required unless passed explicitly)
    TELEGRAM_CHAT_ID: Target chat id (required unless passed explicitly)
    TELEGRAM_APP_NAME: Application name shown in message headers
    ENVIRONMENT: Environment label (production, staging, ...)
    TELEGRAM_RATE_LIMIT_WINDOW_MS / TELEGRAM_RATE_LIMIT_MAX
    TELEGRAM_DEDUPLICATE / TELEGRAM_DEDUPLICATE_WINDOW_MS
    TELEGRAM_RETRY_ATTEMPTS / TELEGRAM_REQUEST_TIMEOUT
    TELEGRAM_ENABLE_STACK_TRACE
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE_URL = "https://api.telegram.org"

# Telegram rejects sendMessage text longer than this
TELEGRAM_MAX_MESSAGE_LENGTH = 4096

DEFAULT_SENSITIVE_BODY_FIELDS = frozenset({
    'password', 'token', 'secret', 'apikey', 'api_key', 'authorization',
})

DEFAULT_SENSITIVE_HEADERS = frozenset({
    'authorization', 'cookie', 'x-api-key', 'x-auth-token',
})


class ConfigurationError(ValueError):
    """Raised when a GovernorConfig is missing credentials or has invalid limits."""
    pass


@dataclass(frozen=True)
class GovernorConfig:
    """Configuration for one logger (one bot/chat pair)."""
    # Required; defaulted so an omitted value fails validation like an empty one
    bot_token: str = ''
    chat_id: str = ''

    # Message content
    app_name: str = 'Application'
    environment: str = 'production'
    enable_stack_trace: bool = True
    max_stack_trace_lines: int = 10
    include_headers: bool = False
    include_body: bool = True
    exclude_routes: Tuple[str, ...] = ()
    sensitive_body_fields: FrozenSet[str] = DEFAULT_SENSITIVE_BODY_FIELDS
    sensitive_headers: FrozenSet[str] = DEFAULT_SENSITIVE_HEADERS

    # Volume controls
    rate_limit_window_ms: int = 60000
    rate_limit_max: int = 10
    deduplicate: bool = False
    deduplicate_window_ms: int = 300000
    cleanup_interval_ms: int = 60000

    # Delivery
    retry_attempts: int = 3
    request_timeout_seconds: float = 10.0
    max_message_length: int = TELEGRAM_MAX_MESSAGE_LENGTH
    parse_mode: Optional[str] = 'HTML'
    disable_web_page_preview: bool = True
    api_base_url: str = TELEGRAM_API_BASE_URL

    # Caller-supplied hooks
    error_filter: Optional[Callable[..., bool]] = field(default=None, compare=False)
    extract_user: Optional[Callable[[Any], Any]] = field(default=None, compare=False)
    context_extractor: Optional[Callable[[Any], Any]] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.bot_token:
            raise ConfigurationError('Telegram bot token is required')
        if not self.chat_id:
            raise ConfigurationError('Telegram chat ID is required')

        positive_fields = (
            'rate_limit_window_ms', 'rate_limit_max', 'deduplicate_window_ms',
            'cleanup_interval_ms', 'retry_attempts', 'max_message_length',
            'max_stack_trace_lines',
        )
        for name in positive_fields:
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {getattr(self, name)!r}")
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError(
                f"request_timeout_seconds must be > 0, got {self.request_timeout_seconds!r}"
            )

        # Accept lists from callers but keep the snapshot hashable and immutable
        object.__setattr__(self, 'exclude_routes', tuple(self.exclude_routes))
        object.__setattr__(
            self, 'sensitive_body_fields',
            frozenset(f.lower() for f in self.sensitive_body_fields)
        )
        object.__setattr__(
            self, 'sensitive_headers',
            frozenset(h.lower() for h in self.sensitive_headers)
        )

    def replace(self, **changes) -> 'GovernorConfig':
        """Return a validated copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, load_env_file: bool = True, **overrides) -> 'GovernorConfig':
        """
        Build a config from environment variables.

        Args:
            load_env_file: If True, load a .env file first (existing variables win)
            **overrides: Explicit field values, taking precedence over the environment

        Returns:
            GovernorConfig

        Raises:
            ConfigurationError: If token or chat id is missing after merging
        """
        if load_env_file:
            load_dotenv(override=False)

        values: Dict[str, Any] = {
            'bot_token': os.environ.get('TELEGRAM_BOT_TOKEN', ''),
            'chat_id': os.environ.get('TELEGRAM_CHAT_ID', ''),
        }
        if os.environ.get('TELEGRAM_APP_NAME'):
            values['app_name'] = os.environ['TELEGRAM_APP_NAME']
        if os.environ.get('ENVIRONMENT'):
            values['environment'] = os.environ['ENVIRONMENT']

        values.update(_load_env_overrides())
        values.update(overrides)
        return cls(**values)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _load_env_overrides() -> Dict[str, Any]:
    """Read typed overrides from environment variables, skipping invalid values."""
    env_mappings = {
        'TELEGRAM_RATE_LIMIT_WINDOW_MS': ('rate_limit_window_ms', int),
        'TELEGRAM_RATE_LIMIT_MAX': ('rate_limit_max', int),
        'TELEGRAM_DEDUPLICATE': ('deduplicate', _parse_bool),
        'TELEGRAM_DEDUPLICATE_WINDOW_MS': ('deduplicate_window_ms', int),
        'TELEGRAM_RETRY_ATTEMPTS': ('retry_attempts', int),
        'TELEGRAM_REQUEST_TIMEOUT': ('request_timeout_seconds', float),
        'TELEGRAM_ENABLE_STACK_TRACE': ('enable_stack_trace', _parse_bool),
    }

    overrides = {}
    for env_var, (attr_name, parse) in env_mappings.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        try:
            overrides[attr_name] = parse(value)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_var}: {value!r}")

    return overrides
