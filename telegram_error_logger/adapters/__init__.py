"""
Framework adapters (Flask).
"""

from .context import extract_context
from .flask_extension import FlaskTelegramErrorLogger, report_errors

__all__ = [
    'extract_context',
    'FlaskTelegramErrorLogger',
    'report_errors',
]
