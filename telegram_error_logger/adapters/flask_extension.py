"""
Flask integration for the Telegram error logger.

Hooks into Flask's ``got_request_exception`` signal, which Flask sends for
every unhandled exception in a view. The logger itself never imports Flask:
this module is the only place that knows about the framework.

Delivery is fire-and-forget: the report is handed to a thread pool so the
error response is never held up by Telegram (worst case with defaults is
3 attempts x 10s timeout + 1s + 2s backoff).

Usage:
    from flask import Flask
    from telegram_error_logger import GovernorConfig
    from telegram_error_logger.adapters import FlaskTelegramErrorLogger

    app = Flask(__name__)
    telegram = FlaskTelegramErrorLogger(app, config=GovernorConfig.from_env(app_name='orders-api'))

    # Application-factory style
    telegram = FlaskTelegramErrorLogger()
    telegram.init_app(app, config=GovernorConfig.from_env())

    # Route-level reporting for errors a view wants to handle itself
    @app.route('/charge', methods=['POST'])
    @report_errors(telegram.logger, rethrow=False)
    def charge():
        ...
"""

import atexit
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from flask import current_app, got_request_exception, jsonify, request

from telegram_error_logger.adapters.context import extract_context
from telegram_error_logger.alerts.error_logger import TelegramErrorLogger
from telegram_error_logger.config.governor_config import GovernorConfig

logger = logging.getLogger(__name__)

EXTENSION_NAME = 'telegram_error_logger'

# Set on exceptions report_errors already submitted, so the signal skips them
REPORTED_ATTR = '_telegram_error_reported'


class FlaskTelegramErrorLogger:
    """
    Flask extension reporting unhandled view exceptions to Telegram.

    Args:
        app: Flask app (optional, see init_app)
        config: GovernorConfig; defaults to GovernorConfig.from_env() at init_app time
        error_logger: Prebuilt TelegramErrorLogger (takes precedence over config)
        executor: Object with submit(fn, *args); default is a 2-worker ThreadPoolExecutor
    """

    def __init__(
        self,
        app=None,
        config: Optional[GovernorConfig] = None,
        error_logger: Optional[TelegramErrorLogger] = None,
        executor: Optional[Any] = None,
    ):
        self.config = config
        self.logger = error_logger
        self._executor = executor
        self._owns_executor = executor is None
        self._closed = False

        if app is not None:
            self.init_app(app)

    def init_app(self, app, config: Optional[GovernorConfig] = None) -> None:
        if self.logger is None:
            self.config = config or self.config or GovernorConfig.from_env()
            self.logger = TelegramErrorLogger(self.config)
        else:
            self.config = self.logger.config

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='telegram-report')

        got_request_exception.connect(self._on_exception, app, weak=False)
        app.extensions[EXTENSION_NAME] = self
        atexit.register(self.shutdown)

        logger.info(f"Telegram error reporting enabled for app {app.name}")

    def _on_exception(self, sender, exception: BaseException, **extra) -> None:
        """Signal receiver. Runs inside the failing request's context."""
        try:
            if getattr(exception, REPORTED_ATTR, False):
                return
            if request.path in self.config.exclude_routes:
                return

            context = extract_context(request, self.config)
            self._executor.submit(self.logger.send_error, exception, context)
        except Exception as e:
            # Never let reporting interfere with Flask's own error handling
            logger.error(f"Error in Telegram logger signal handler: {e}", exc_info=True)

    @property
    def executor(self):
        return self._executor

    def shutdown(self) -> None:
        """Destroy the logger and stop the executor without waiting. Idempotent."""
        if self._closed:
            return
        self._closed = True

        if self.logger is not None:
            self.logger.destroy()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)


def report_errors(error_logger: TelegramErrorLogger, rethrow: bool = True,
                  config: Optional[GovernorConfig] = None, executor: Optional[Any] = None) -> Callable:
    """
    Decorator reporting exceptions raised by a single view.

    The report is submitted to a thread pool like the signal-driven path:
    the given executor, else the app's FlaskTelegramErrorLogger executor,
    else a pool owned by the decorator. A re-raised exception is marked as
    reported so the extension does not report it a second time.

    Args:
        error_logger: Logger to report through
        rethrow: Re-raise after reporting (default). If False, return a 500 JSON response.
        config: Config for context extraction (default: the logger's config)
        executor: Object with submit(fn, *args)

    Returns:
        View decorator
    """
    extraction_config = config or error_logger.config
    # Threads are only started on first submit
    fallback_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='telegram-report')

    def _executor_for_app():
        if executor is not None:
            return executor
        extension = current_app.extensions.get(EXTENSION_NAME)
        if extension is not None and extension.executor is not None:
            return extension.executor
        return fallback_executor

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except Exception as e:
                try:
                    context = extract_context(request, extraction_config)
                    setattr(e, REPORTED_ATTR, True)
                    _executor_for_app().submit(error_logger.send_error, e, context)
                except Exception as report_error:
                    logger.error(f"Failed to send error to Telegram: {report_error}")

                if rethrow:
                    raise
                return jsonify({"status": "error", "message": "Internal Server Error"}), 500
        return wrapper
    return decorator
