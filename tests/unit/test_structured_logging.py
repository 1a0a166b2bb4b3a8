"""
Test structured logging for the logger's own non-fatal signals.

Verifies suppressed-event and delivery-failure records carry queryable
fields when ENABLE_STRUCTURED_LOGGING is on, and plain messages otherwise.
"""

import logging
import os
from unittest.mock import patch

from telegram_error_logger.utils.structured_logging import (
    log_delivery_failure,
    log_delivery_success,
    log_event_suppressed,
)


class TestStructuredLogging:

    @patch.dict(os.environ, {'ENABLE_STRUCTURED_LOGGING': 'true'})
    def test_suppressed_event_fields(self, caplog):
        with caplog.at_level(logging.WARNING, logger='telegram_error_logger.governor'):
            log_event_suppressed('deduplicated', identity='ValueError:boom:/x')

        record = caplog.records[0]
        assert record.getMessage() == 'Telegram error logger: event suppressed (deduplicated)'
        assert record.event == 'event_suppressed'
        assert record.reason == 'deduplicated'
        assert record.identity == 'ValueError:boom:/x'
        assert 'timestamp' in record.__dict__

    @patch.dict(os.environ, {'ENABLE_STRUCTURED_LOGGING': 'true'})
    def test_delivery_failure_fields(self, caplog):
        with caplog.at_level(logging.ERROR, logger='telegram_error_logger.delivery'):
            log_delivery_failure('HTTP 502: Bad Gateway', attempts=3, kind='error', status_code=502)

        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert record.event == 'delivery_failed'
        assert record.error_message == 'HTTP 502: Bad Gateway'
        assert record.attempts == 3
        assert record.status_code == 502

    @patch.dict(os.environ, {'ENABLE_STRUCTURED_LOGGING': 'false'})
    def test_plain_messages_when_disabled(self, caplog):
        with caplog.at_level(logging.INFO, logger='telegram_error_logger.delivery'):
            log_delivery_success(2, message_id=10)

        record = caplog.records[0]
        assert record.getMessage() == 'Sent Telegram message (attempts=2)'
        assert not hasattr(record, 'event')
