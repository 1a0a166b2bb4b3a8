"""
Format error events as Telegram HTML messages.

Message layout:
    🔥 Error in <app>            (🔥 5xx, ⚠️ 4xx, ❌ otherwise)
    Environment: <env>

    📋 Error Details             type, message, code, status code
    🔍 Context                   request, route, user, query, params, body, headers, custom
    📚 Stack Trace               last N traceback lines
    ⏰ <UTC timestamp>
"""

import html
import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from telegram_error_logger.alerts.events import Event
from telegram_error_logger.config.governor_config import (
    DEFAULT_SENSITIVE_BODY_FIELDS,
    DEFAULT_SENSITIVE_HEADERS,
)
from telegram_error_logger.utils.sanitize import redact_mapping

MAX_OBJECT_LENGTH = 500


def escape_html(value: Any) -> str:
    """Escape &, < and > for Telegram HTML parse mode."""
    return html.escape(value if isinstance(value, str) else str(value), quote=False)


def format_object(obj: Any, max_length: int = MAX_OBJECT_LENGTH) -> str:
    """JSON-dump an object for display, capped at ``max_length`` characters and escaped."""
    try:
        text = json.dumps(obj, indent=2, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return '[Unable to serialize]'
    if len(text) > max_length:
        return escape_html(text[:max_length]) + '...'
    return escape_html(text)


def format_timestamp() -> str:
    return f"<i>⏰ {datetime.now(timezone.utc).isoformat()}</i>"


class ErrorFormatter:
    """
    Render an Event plus request context into an HTML message body.

    Args:
        app_name: Application name shown in the header
        environment: Environment label shown in the header
        enable_stack_trace: Include the traceback section
        max_stack_trace_lines: Number of traceback lines kept (the innermost ones)
        sensitive_body_fields: Body keys redacted before display
        sensitive_headers: Header names redacted before display
    """

    def __init__(
        self,
        app_name: str = 'Application',
        environment: str = 'production',
        enable_stack_trace: bool = True,
        max_stack_trace_lines: int = 10,
        sensitive_body_fields: Iterable[str] = DEFAULT_SENSITIVE_BODY_FIELDS,
        sensitive_headers: Iterable[str] = DEFAULT_SENSITIVE_HEADERS,
    ):
        self.app_name = app_name
        self.environment = environment
        self.enable_stack_trace = enable_stack_trace
        self.max_stack_trace_lines = max_stack_trace_lines
        self.sensitive_body_fields = frozenset(sensitive_body_fields)
        self.sensitive_headers = frozenset(sensitive_headers)

    def format(self, event: Event, context: Optional[Mapping[str, Any]] = None) -> str:
        sections = [self.format_header(event), self.format_error_details(event)]

        if context:
            sections.append(self.format_context(context))

        if self.enable_stack_trace and event.stack:
            sections.append(self.format_stack_trace(event.stack))

        sections.append(format_timestamp())
        return '\n\n'.join(sections)

    def format_header(self, event: Event) -> str:
        return (
            f"{self.get_error_emoji(event)} <b>Error in {escape_html(self.app_name)}</b>\n"
            f"<b>Environment:</b> {escape_html(self.environment)}"
        )

    def format_error_details(self, event: Event) -> str:
        details = ['<b>📋 Error Details</b>']
        details.append(f"<b>Type:</b> {escape_html(event.error_type or 'Error')}")
        details.append(f"<b>Message:</b> {escape_html(event.message or 'No message')}")

        if event.code is not None:
            details.append(f"<b>Code:</b> {escape_html(event.code)}")
        if event.status_code is not None:
            details.append(f"<b>Status Code:</b> {event.status_code}")
        if event.severity:
            details.append(f"<b>Severity:</b> {escape_html(event.severity)}")

        return '\n'.join(details)

    def format_context(self, context: Mapping[str, Any]) -> str:
        lines = ['<b>🔍 Context</b>']

        if context.get('method') or context.get('url'):
            target = context.get('url') or context.get('path') or 'N/A'
            lines.append(
                f"<b>Request:</b> {escape_html(context.get('method') or 'N/A')} {escape_html(target)}"
            )

        if context.get('route'):
            lines.append(f"<b>Route:</b> {escape_html(context['route'])}")

        user_id = self._user_id(context)
        if user_id is not None:
            lines.append(f"<b>User:</b> {escape_html(user_id)}")

        if context.get('ip'):
            lines.append(f"<b>IP:</b> {escape_html(context['ip'])}")

        if context.get('query'):
            lines.append(f"<b>Query:</b> {format_object(context['query'])}")

        if context.get('params'):
            lines.append(f"<b>Params:</b> {format_object(context['params'])}")

        body = context.get('body')
        if body:
            if isinstance(body, Mapping):
                body = redact_mapping(body, self.sensitive_body_fields)
            lines.append(f"<b>Body:</b> {format_object(body)}")

        headers = context.get('headers')
        if headers:
            lines.append(
                f"<b>Headers:</b> {format_object(redact_mapping(headers, self.sensitive_headers))}"
            )

        if context.get('custom') is not None:
            lines.append(f"<b>Custom:</b> {format_object(context['custom'])}")

        return '\n'.join(lines)

    def format_stack_trace(self, stack: str) -> str:
        # Python tracebacks put the innermost frame and the exception last
        lines = stack.rstrip('\n').split('\n')
        truncated = len(lines) > self.max_stack_trace_lines
        kept = lines[-self.max_stack_trace_lines:]

        formatted = '<b>📚 Stack Trace</b>\n'
        if truncated:
            formatted += '<i>... (truncated)</i>\n'
        formatted += f"<code>{escape_html(chr(10).join(kept))}</code>"
        return formatted

    def get_error_emoji(self, event: Event) -> str:
        if event.status_code:
            if event.status_code >= 500:
                return '🔥'
            if event.status_code >= 400:
                return '⚠️'
        return '❌'

    @staticmethod
    def _user_id(context: Mapping[str, Any]) -> Optional[Any]:
        if context.get('user_id') is not None:
            return context['user_id']
        user = context.get('user')
        if user is None:
            return None
        if isinstance(user, Mapping):
            return user.get('id', user.get('user_id', 'Unknown'))
        return getattr(user, 'id', user)
