"""
Telegram Transport

Performs exactly one sendMessage call per delivery. No retries and no
policy: those live in RetryDriver and TelegramErrorLogger.

Usage:
    from telegram_error_logger.clients.telegram_transport import TelegramTransport

    transport = TelegramTransport(bot_token='123:abc', chat_id='-100200300')
    result = transport.deliver("<b>Deploy finished</b>")
    if not result.ok:
        print(result.error)

Failure Handling:
- Network errors, timeouts, non-2xx responses, non-JSON bodies and
  {"ok": false} envelopes all come back as DeliveryResult(ok=False).
- deliver() never raises.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests

from telegram_error_logger.clients.http_pool import close_session, create_http_session
from telegram_error_logger.config.governor_config import (
    ConfigurationError,
    TELEGRAM_API_BASE_URL,
    TELEGRAM_MAX_MESSAGE_LENGTH,
)

logger = logging.getLogger(__name__)

TRUNCATION_NOTICE = '\n\n... (message truncated)'
# MarkdownV2 reserves '.', '(' and ')'
TRUNCATION_NOTICE_MARKDOWN_V2 = '\n\n\\.\\.\\. \\(message truncated\\)'

DEFAULT_TIMEOUT_SECONDS = 10.0

_TAG_RE = re.compile(r'<(/?)([a-zA-Z][a-zA-Z0-9-]*)[^<>]*>')

_MARKDOWN_MODES = ('Markdown', 'MarkdownV2')
# Longest first so '__' is not read as two '_'
_MARKDOWN_V2_MARKERS = ('||', '__', '*', '_', '~')
_MARKDOWN_MARKERS = ('*', '_')


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery (one attempt, or a retried sequence)."""
    ok: bool
    response: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, compare=False)
    attempts: int = 1

    @classmethod
    def success(cls, response: Dict[str, Any], status_code: Optional[int] = None) -> 'DeliveryResult':
        return cls(ok=True, response=response, status_code=status_code)

    @classmethod
    def failure(
        cls,
        error: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> 'DeliveryResult':
        return cls(ok=False, response=response, status_code=status_code, error=error, cause=cause)

    @property
    def message_id(self) -> Optional[int]:
        """Telegram message id of a delivered message, if any."""
        result = (self.response or {}).get('result')
        if isinstance(result, dict):
            return result.get('message_id')
        return None

    def with_attempts(self, attempts: int) -> 'DeliveryResult':
        return dataclasses.replace(self, attempts=attempts)


def truncate_message(
    message: str,
    max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH,
    parse_mode: Optional[str] = 'HTML',
) -> str:
    """
    Truncate a message to fit Telegram's length limit.

    The prefix is kept. For HTML, the cut never lands inside a tag or an
    entity, tags left open are closed, and the notice is appended after
    them as plain text. For Markdown and MarkdownV2, the cut backs off to
    before any bold, italic, code or link entity it would leave open.
    The result is at most ``max_length`` characters.

    Args:
        message: Rendered message text
        max_length: Maximum length in characters
        parse_mode: Telegram parse mode the text is rendered with

    Returns:
        The original message if short enough, else the truncated message
    """
    if len(message) <= max_length:
        return message

    notice = TRUNCATION_NOTICE_MARKDOWN_V2 if parse_mode == 'MarkdownV2' else TRUNCATION_NOTICE
    budget = max_length - len(notice)
    if budget <= 0:
        return notice.strip()[:max_length]

    is_html = (parse_mode or '').upper() == 'HTML'
    cut = budget
    while cut > 0:
        prefix = _safe_prefix(message[:cut], is_html, parse_mode)
        if not prefix:
            break
        closing = _closing_tags(prefix) if is_html else ''
        if len(prefix) + len(closing) <= budget:
            return prefix + closing + notice
        cut = min(len(prefix) - 1, budget - len(closing))

    return notice.strip()


def _safe_prefix(text: str, is_html: bool, parse_mode: Optional[str]) -> str:
    """Drop a partial tag, entity or escape sequence at the end of ``text``."""
    if is_html:
        last_open = text.rfind('<')
        if last_open > text.rfind('>'):
            text = text[:last_open]
        last_amp = text.rfind('&')
        if last_amp != -1 and ';' not in text[last_amp:]:
            text = text[:last_amp]
    elif parse_mode in _MARKDOWN_MODES:
        # An odd run of trailing backslashes would escape the notice
        trailing = len(text) - len(text.rstrip('\\'))
        if trailing % 2:
            text = text[:-1]
        opener = _unclosed_markdown_entity(text, parse_mode)
        if opener != -1:
            text = text[:opener]
    return text


def _unclosed_markdown_entity(text: str, parse_mode: str) -> int:
    """
    Return the index of the outermost Markdown entity left open at the end
    of ``text``, or -1 if every entity is closed.

    Everything before that index is balanced, so cutting there never leaves
    a dangling ``*``, ``_``, code span or link for Telegram to reject.
    """
    markers = _MARKDOWN_V2_MARKERS if parse_mode == 'MarkdownV2' else _MARKDOWN_MARKERS
    stack: List[Tuple[str, int]] = []
    i = 0
    while i < len(text):
        top = stack[-1][0] if stack else None
        in_code = top in ('```', '`')

        if text[i] == '\\' and not (in_code and parse_mode == 'Markdown'):
            i += 2
            continue

        if in_code:
            if text.startswith(top, i):
                stack.pop()
                i += len(top)
            else:
                i += 1
            continue

        if top == '(':
            if text[i] == ')':
                stack.pop()
            i += 1
            continue

        if text.startswith('```', i) or text[i] == '`':
            fence = '```' if text.startswith('```', i) else '`'
            stack.append((fence, i))
            i += len(fence)
            continue

        if text[i] == '[':
            stack.append(('[', i))
            i += 1
            continue

        if text[i] == ']' and top == '[':
            _, start = stack.pop()
            if text.startswith('(', i + 1):
                # The URL part belongs to the link that opened at '['
                stack.append(('(', start))
                i += 1
            i += 1
            continue

        marker = next((m for m in markers if text.startswith(m, i)), None)
        if marker is None:
            i += 1
            continue

        open_markers = [m for m, _ in stack]
        if marker in open_markers:
            # Close back to the matching opener
            while stack and stack.pop()[0] != marker:
                pass
        else:
            stack.append((marker, i))
        i += len(marker)

    return stack[0][1] if stack else -1


def _closing_tags(html_text: str) -> str:
    """Return the closing tags for every tag still open at the end of ``html_text``."""
    stack: List[str] = []
    for match in _TAG_RE.finditer(html_text):
        is_closing, name = match.group(1), match.group(2).lower()
        if not is_closing:
            stack.append(name)
        elif name in stack:
            # Pop back to the matching opener
            while stack:
                if stack.pop() == name:
                    break
    return ''.join(f'</{name}>' for name in reversed(stack))


class TelegramTransport:
    """
    Single-shot client for the Telegram Bot API sendMessage method.

    Args:
        bot_token: Telegram bot token
        chat_id: Target chat id
        session: Optional requests.Session (one is created and owned if omitted)
        api_base_url: Bot API base URL
        max_message_length: Truncation limit
        timeout: Request timeout in seconds (default: 10)
        parse_mode: Default parse mode ('HTML', 'MarkdownV2', or None for plain)
        disable_web_page_preview: Default link preview setting
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        session: Optional[requests.Session] = None,
        api_base_url: str = TELEGRAM_API_BASE_URL,
        max_message_length: int = TELEGRAM_MAX_MESSAGE_LENGTH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        parse_mode: Optional[str] = 'HTML',
        disable_web_page_preview: bool = True,
    ):
        if not bot_token:
            raise ConfigurationError('Telegram bot token is required')
        if not chat_id:
            raise ConfigurationError('Telegram chat ID is required')

        self.chat_id = chat_id
        self.max_message_length = max_message_length
        self.timeout = timeout
        self.parse_mode = parse_mode
        self.disable_web_page_preview = disable_web_page_preview
        self.url = f"{api_base_url.rstrip('/')}/bot{bot_token}/sendMessage"

        self._bot_token = bot_token
        self._owns_session = session is None
        self.session = session if session is not None else create_http_session()

    def deliver(
        self,
        message: str,
        parse_mode: Optional[str] = None,
        disable_web_page_preview: Optional[bool] = None,
        timeout: Optional[float] = None,
        **extra
    ) -> DeliveryResult:
        """
        Send one message.

        Args:
            message: Rendered message text (truncated if too long)
            parse_mode: Overrides the default parse mode ('' sends plain text)
            disable_web_page_preview: Overrides the default preview setting
            timeout: Overrides the default timeout in seconds
            **extra: Additional sendMessage fields (e.g. disable_notification)

        Returns:
            DeliveryResult; ok=True only for a 2xx response with {"ok": true}
        """
        parse_mode = self.parse_mode if parse_mode is None else parse_mode
        if disable_web_page_preview is None:
            disable_web_page_preview = self.disable_web_page_preview
        timeout = self.timeout if timeout is None else timeout

        payload: Dict[str, Any] = {
            'chat_id': self.chat_id,
            'text': truncate_message(message, self.max_message_length, parse_mode),
            'disable_web_page_preview': disable_web_page_preview,
        }
        if parse_mode:
            payload['parse_mode'] = parse_mode
        payload.update(extra)

        try:
            response = self.session.post(self.url, json=payload, timeout=timeout)
        except requests.Timeout as e:
            return DeliveryResult.failure(f"Request timed out after {timeout}s", cause=e)
        except Exception as e:
            # Connection errors embed the URL, which carries the bot token
            return DeliveryResult.failure(self._scrub(f"{type(e).__name__}: {e}"), cause=e)

        status_code = response.status_code
        try:
            body = response.json()
        except ValueError as e:
            return DeliveryResult.failure(
                f"HTTP {status_code}: response is not JSON", cause=e, status_code=status_code
            )

        if not isinstance(body, dict):
            return DeliveryResult.failure(
                f"HTTP {status_code}: unexpected response envelope", status_code=status_code
            )

        if not (200 <= status_code < 300) or not body.get('ok'):
            description = body.get('description') or 'request failed'
            return DeliveryResult.failure(
                f"HTTP {status_code}: {description}", status_code=status_code, response=body
            )

        return DeliveryResult.success(body, status_code=status_code)

    def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._owns_session:
            close_session(self.session)

    def _scrub(self, text: str) -> str:
        return text.replace(self._bot_token, '<bot-token>')
