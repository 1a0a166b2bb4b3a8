"""
Format custom (operator) messages as Telegram HTML.
"""

import json
from typing import Any, Optional

from telegram_error_logger.formatters.error_formatter import escape_html, format_timestamp

LEVEL_EMOJI = {
    'info': 'ℹ️',
    'success': '✅',
    'warning': '⚠️',
    'error': '❌',
    'critical': '🔥',
    'debug': '🐛',
    'alert': '🚨',
}


def get_level_emoji(level: str) -> str:
    return LEVEL_EMOJI.get(level.lower(), LEVEL_EMOJI['info'])


class MessageFormatter:
    """Render a custom message with level header, optional data block and timestamp."""

    def __init__(self, app_name: str = 'Application', environment: str = 'production'):
        self.app_name = app_name
        self.environment = environment

    def format(
        self,
        message: str,
        level: str = 'info',
        title: Optional[str] = None,
        data: Any = None,
        include_timestamp: bool = True,
        include_app_info: bool = True,
    ) -> str:
        sections = []

        if include_app_info:
            sections.append(self.format_header(level, title))
        elif title:
            sections.append(f"{get_level_emoji(level)} <b>{escape_html(title)}</b>")

        sections.append(escape_html(message))

        if data is not None:
            sections.append(self.format_data(data))

        if include_timestamp:
            sections.append(format_timestamp())

        return '\n\n'.join(sections)

    def format_header(self, level: str, title: Optional[str] = None) -> str:
        header = f"{get_level_emoji(level)} <b>{escape_html(level.upper())}</b>"
        if title:
            header += f"\n<b>{escape_html(title)}</b>"
        header += f"\n<b>App:</b> {escape_html(self.app_name)} ({escape_html(self.environment)})"
        return header

    def format_data(self, data: Any) -> str:
        if isinstance(data, str):
            return f"<b>📊 Data</b>\n{escape_html(data)}"

        try:
            text = json.dumps(data, indent=2, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            return '<b>📊 Data</b>\n[Unable to serialize data]'
        return f"<b>📊 Data</b>\n<code>{escape_html(text)}</code>"
