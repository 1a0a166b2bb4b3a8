"""
HTTP Session Connection Pool

Builds the pooled requests.Session the Telegram transport posts through.
Keep-alive connections to api.telegram.org are reused across deliveries.

Adapter-level retries are disabled. Retries are owned by RetryDriver,
and a single transport call is exactly one HTTP request.

Usage:
    from telegram_error_logger.clients.http_pool import create_http_session

    session = create_http_session()
    response = session.post(url, json=payload, timeout=10)
"""

import logging
import threading

from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from telegram_error_logger import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f'telegram-error-logger/{__version__}'


def create_http_session(
    pool_connections: int = 2,
    pool_maxsize: int = 10,
) -> Session:
    """
    Create an HTTP session with connection pooling and no automatic retries.

    Args:
        pool_connections: Number of connection pools to cache (default: 2)
        pool_maxsize: Maximum number of connections in each pool (default: 10).
                      Should cover the number of threads delivering concurrently.

    Returns:
        requests.Session: Configured session
    """
    session = Session()

    # One attempt per call; connection errors surface immediately
    no_retry = Retry(total=0, connect=0, read=0, redirect=0, raise_on_status=False)

    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=no_retry
    )

    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        'User-Agent': USER_AGENT,
        'Accept': 'application/json',
    })

    logger.debug(
        f"HTTP session created: pool_size={pool_maxsize}, "
        f"thread={threading.current_thread().name}"
    )

    return session


def close_session(session: Session) -> None:
    """Close a session, releasing pooled connections. Never raises."""
    try:
        session.close()
    except Exception as e:
        logger.warning(f"Error closing HTTP session: {e}")

