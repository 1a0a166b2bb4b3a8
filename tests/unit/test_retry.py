"""
Unit tests for RetryDriver

Tests exponential backoff (1s, 2s, ...), attempt clamping and that the
driver never raises, using a stub transport and a recording sleep.

Related: telegram_error_logger/clients/retry.py
"""

import pytest

from telegram_error_logger.clients.retry import RetryDriver, backoff_delay
from tests.conftest import RecordingSleep, StubTransport, failed_result, ok_result


class TestBackoffDelay:

    @pytest.mark.parametrize('attempt,expected', [(0, 1.0), (1, 2.0), (2, 4.0), (3, 8.0)])
    def test_delay_doubles(self, attempt, expected):
        assert backoff_delay(attempt) == expected


class TestRetryDriver:
    """Test retry sequencing."""

    def test_first_attempt_success_does_not_sleep(self):
        transport = StubTransport([ok_result(7)])
        sleep = RecordingSleep()

        result = RetryDriver(transport, sleep=sleep).send('hello')

        assert result.ok
        assert result.attempts == 1
        assert result.message_id == 7
        assert len(transport.calls) == 1
        assert sleep.calls == []

    def test_succeeds_on_third_attempt(self):
        """Test fail, fail, succeed makes 3 calls with 1s then 2s between them."""
        transport = StubTransport([failed_result(), failed_result(), ok_result()])
        sleep = RecordingSleep()

        result = RetryDriver(transport, max_attempts=3, sleep=sleep).send('M')

        assert result.ok
        assert result.attempts == 3
        assert transport.messages == ['M', 'M', 'M']
        assert sleep.calls == [1.0, 2.0]

    def test_all_attempts_fail_returns_last_failure(self):
        transport = StubTransport([
            failed_result('HTTP 502: first'),
            failed_result('HTTP 502: second'),
            failed_result('HTTP 502: third'),
        ])
        sleep = RecordingSleep()

        result = RetryDriver(transport, max_attempts=3, sleep=sleep).send('M')

        assert result.ok is False
        assert result.error == 'HTTP 502: third'
        assert result.attempts == 3
        # No sleep after the last attempt
        assert sleep.calls == [1.0, 2.0]

    def test_per_call_attempts_override_default(self):
        transport = StubTransport([failed_result()] * 5)
        sleep = RecordingSleep()
        driver = RetryDriver(transport, max_attempts=3, sleep=sleep)

        result = driver.send('M', max_attempts=5)

        assert result.attempts == 5
        assert len(transport.calls) == 5
        assert sleep.calls == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.parametrize('max_attempts', [0, -3])
    def test_attempts_clamped_to_one(self, max_attempts):
        transport = StubTransport([failed_result()])
        sleep = RecordingSleep()

        result = RetryDriver(transport, sleep=sleep).send('M', max_attempts=max_attempts)

        assert result.ok is False
        assert result.attempts == 1
        assert len(transport.calls) == 1
        assert sleep.calls == []

    def test_constructor_clamps_default_attempts(self):
        driver = RetryDriver(StubTransport(), max_attempts=0, sleep=RecordingSleep())
        assert driver.max_attempts == 1

    def test_raising_transport_is_treated_as_failure(self):
        """Test an exception from the transport is retried and never propagates."""
        boom = ConnectionError('connection reset')
        transport = StubTransport([boom, ok_result()])
        sleep = RecordingSleep()

        result = RetryDriver(transport, sleep=sleep).send('M')

        assert result.ok
        assert result.attempts == 2
        assert sleep.calls == [1.0]

    def test_raising_transport_on_every_attempt(self):
        boom = RuntimeError('broken')
        transport = StubTransport([boom, boom, boom])

        result = RetryDriver(transport, sleep=RecordingSleep()).send('M')

        assert result.ok is False
        assert result.error == 'RuntimeError: broken'
        assert result.cause is boom
        assert result.attempts == 3

    def test_options_are_passed_to_transport(self):
        transport = StubTransport()

        RetryDriver(transport, sleep=RecordingSleep()).send('M', parse_mode='MarkdownV2')

        assert transport.calls == [('M', {'parse_mode': 'MarkdownV2'})]
