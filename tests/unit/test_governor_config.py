"""
Unit tests for GovernorConfig validation and environment loading

Related: telegram_error_logger/config/governor_config.py
"""

import dataclasses
import os
from unittest.mock import patch

import pytest

from telegram_error_logger.config.governor_config import ConfigurationError, GovernorConfig


class TestGovernorConfigValidation:

    def test_defaults(self):
        config = GovernorConfig(bot_token='t', chat_id='c')

        assert config.rate_limit_window_ms == 60000
        assert config.rate_limit_max == 10
        assert config.deduplicate is False
        assert config.deduplicate_window_ms == 300000
        assert config.cleanup_interval_ms == 60000
        assert config.retry_attempts == 3
        assert config.request_timeout_seconds == 10.0
        assert config.max_message_length == 4096
        assert config.parse_mode == 'HTML'

    @pytest.mark.parametrize('fields,match', [
        ({'bot_token': '', 'chat_id': 'c'}, 'bot token is required'),
        ({'bot_token': 't', 'chat_id': ''}, 'chat ID is required'),
        ({'chat_id': 'c'}, 'bot token is required'),
        ({'bot_token': 't'}, 'chat ID is required'),
        ({}, 'bot token is required'),
    ])
    def test_missing_credentials(self, fields, match):
        with pytest.raises(ConfigurationError, match=match):
            GovernorConfig(**fields)

    @pytest.mark.parametrize('field_name', [
        'rate_limit_window_ms', 'rate_limit_max', 'deduplicate_window_ms',
        'cleanup_interval_ms', 'retry_attempts', 'max_message_length',
    ])
    def test_non_positive_limits_rejected(self, field_name):
        with pytest.raises(ConfigurationError, match=field_name):
            GovernorConfig(bot_token='t', chat_id='c', **{field_name: 0})

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ConfigurationError, match='request_timeout_seconds'):
            GovernorConfig(bot_token='t', chat_id='c', request_timeout_seconds=0)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)

    def test_collections_are_normalized(self):
        config = GovernorConfig(
            bot_token='t', chat_id='c',
            exclude_routes=['/health'],
            sensitive_body_fields={'Password', 'PIN'},
            sensitive_headers=['X-Secret'],
        )

        assert config.exclude_routes == ('/health',)
        assert config.sensitive_body_fields == frozenset({'password', 'pin'})
        assert config.sensitive_headers == frozenset({'x-secret'})

    def test_config_is_immutable(self):
        config = GovernorConfig(bot_token='t', chat_id='c')
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.rate_limit_max = 5

    def test_replace_validates(self):
        config = GovernorConfig(bot_token='t', chat_id='c')

        assert config.replace(rate_limit_max=5).rate_limit_max == 5
        with pytest.raises(ConfigurationError):
            config.replace(rate_limit_max=0)


class TestGovernorConfigFromEnv:

    @patch.dict(os.environ, {
        'TELEGRAM_BOT_TOKEN': 'env-token',
        'TELEGRAM_CHAT_ID': 'env-chat',
        'TELEGRAM_APP_NAME': 'checkout-api',
        'ENVIRONMENT': 'staging',
    }, clear=True)
    def test_credentials_and_labels_from_env(self):
        config = GovernorConfig.from_env(load_env_file=False)

        assert config.bot_token == 'env-token'
        assert config.chat_id == 'env-chat'
        assert config.app_name == 'checkout-api'
        assert config.environment == 'staging'

    @patch.dict(os.environ, {
        'TELEGRAM_BOT_TOKEN': 't',
        'TELEGRAM_CHAT_ID': 'c',
        'TELEGRAM_RATE_LIMIT_WINDOW_MS': '30000',
        'TELEGRAM_RATE_LIMIT_MAX': '5',
        'TELEGRAM_DEDUPLICATE': 'true',
        'TELEGRAM_DEDUPLICATE_WINDOW_MS': '10000',
        'TELEGRAM_RETRY_ATTEMPTS': '2',
        'TELEGRAM_REQUEST_TIMEOUT': '2.5',
        'TELEGRAM_ENABLE_STACK_TRACE': 'no',
    }, clear=True)
    def test_typed_overrides_from_env(self):
        config = GovernorConfig.from_env(load_env_file=False)

        assert config.rate_limit_window_ms == 30000
        assert config.rate_limit_max == 5
        assert config.deduplicate is True
        assert config.deduplicate_window_ms == 10000
        assert config.retry_attempts == 2
        assert config.request_timeout_seconds == 2.5
        assert config.enable_stack_trace is False

    @patch.dict(os.environ, {
        'TELEGRAM_BOT_TOKEN': 't',
        'TELEGRAM_CHAT_ID': 'c',
        'TELEGRAM_RATE_LIMIT_MAX': 'lots',
    }, clear=True)
    def test_invalid_env_value_keeps_default(self, caplog):
        config = GovernorConfig.from_env(load_env_file=False)

        assert config.rate_limit_max == 10
        assert 'Ignoring invalid value for TELEGRAM_RATE_LIMIT_MAX' in caplog.text

    @patch.dict(os.environ, {'TELEGRAM_BOT_TOKEN': 't', 'TELEGRAM_CHAT_ID': 'c'}, clear=True)
    def test_explicit_overrides_win(self):
        config = GovernorConfig.from_env(load_env_file=False, chat_id='explicit', rate_limit_max=1)

        assert config.chat_id == 'explicit'
        assert config.rate_limit_max == 1

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_env_credentials_raise(self):
        with pytest.raises(ConfigurationError):
            GovernorConfig.from_env(load_env_file=False)

    @patch('telegram_error_logger.config.governor_config.load_dotenv')
    @patch.dict(os.environ, {'TELEGRAM_BOT_TOKEN': 't', 'TELEGRAM_CHAT_ID': 'c'}, clear=True)
    def test_env_file_loaded_without_override(self, mock_load_dotenv):
        GovernorConfig.from_env()

        mock_load_dotenv.assert_called_once_with(override=False)
