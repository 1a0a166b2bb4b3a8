"""
HTML formatters for error reports and custom messages.
"""

from .error_formatter import ErrorFormatter, escape_html, format_object
from .message_formatter import MessageFormatter, get_level_emoji

__all__ = [
    'ErrorFormatter',
    'MessageFormatter',
    'escape_html',
    'format_object',
    'get_level_emoji',
]
