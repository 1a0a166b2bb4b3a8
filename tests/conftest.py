# tests/conftest.py
"""
Shared fixtures: virtual clock, manual scheduler, recording sleep and a
stub transport, so governor behavior is deterministic and offline.
"""
import pytest

from telegram_error_logger.alerts.error_logger import TelegramErrorLogger
from telegram_error_logger.clients.telegram_transport import DeliveryResult
from telegram_error_logger.config.governor_config import GovernorConfig

TEST_CONFIG = {
    'bot_token': 'test-bot-token',
    'chat_id': 'test-chat-id',
    'app_name': 'Test App',
    'environment': 'test',
}


def ok_result(message_id: int = 123) -> DeliveryResult:
    return DeliveryResult.success({'ok': True, 'result': {'message_id': message_id}}, status_code=200)


def failed_result(error: str = 'HTTP 502: Bad Gateway') -> DeliveryResult:
    return DeliveryResult.failure(error, status_code=502)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class ManualTask:
    def __init__(self, interval_seconds, callback):
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.cancelled = False
        self.cancel_calls = 0

    def cancel(self):
        self.cancel_calls += 1
        self.cancelled = True


class ManualScheduler:
    """Records periodic tasks; run_pending() fires every live task once."""

    def __init__(self):
        self.tasks = []

    def schedule_periodic(self, interval_seconds, callback, name='telegram-sweep'):
        task = ManualTask(interval_seconds, callback)
        self.tasks.append(task)
        return task

    def run_pending(self):
        for task in self.tasks:
            if not task.cancelled:
                task.callback()


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class StubTransport:
    """
    Transport double. Pops one outcome per deliver() call: a DeliveryResult
    is returned, an exception is raised. Succeeds once outcomes run out.
    """

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []
        self.closed = False

    def deliver(self, message, **options):
        self.calls.append((message, options))
        outcome = self.outcomes.pop(0) if self.outcomes else ok_result(len(self.calls))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self):
        self.closed = True

    @property
    def messages(self):
        return [message for message, _ in self.calls]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def make_logger(clock, scheduler, sleep, transport):
    """Factory building a TelegramErrorLogger wired to the fakes above."""
    created = []

    def _make(**config_fields):
        fields = dict(TEST_CONFIG)
        fields.update(config_fields)
        error_logger = TelegramErrorLogger(
            GovernorConfig(**fields),
            transport=transport,
            clock=clock,
            sleep=sleep,
            scheduler=scheduler,
        )
        created.append(error_logger)
        return error_logger

    yield _make

    for error_logger in created:
        error_logger.destroy()
