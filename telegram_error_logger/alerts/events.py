"""
Event descriptors handed to the logger.

An Event is created by the caller (usually from a live exception), is never
mutated, and is discarded once the logger has processed it.
"""

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EventKind(str, Enum):
    """What produced the event."""
    ERROR = "error"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Event:
    """
    Error or notification descriptor.

    Attributes:
        kind: ERROR for exceptions, CUSTOM for operator notifications
        error_type: Exception class name (or a category for custom events)
        message: Human-readable message
        identity: Optional dedup key; the logger falls back to type + message + route
        severity: Optional severity label ('critical', 'warning', ...)
        status_code: HTTP status associated with the error, if any
        code: Application or OS error code, if any
        stack: Formatted traceback text, if any
    """
    kind: EventKind
    error_type: str
    message: str
    identity: Optional[str] = None
    severity: Optional[str] = None
    status_code: Optional[int] = None
    code: Optional[Any] = None
    stack: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        identity: Optional[str] = None,
        severity: Optional[str] = None,
    ) -> 'Event':
        """
        Build an ERROR event from an exception.

        Picks up ``status_code`` (or an integer HTTP ``code``, as on werkzeug
        HTTPExceptions) and ``errno``/``code`` attributes when present.
        """
        status_code = getattr(exc, 'status_code', None)
        code = getattr(exc, 'code', None)
        if status_code is None and isinstance(code, int) and 100 <= code < 600:
            status_code, code = code, None
        if code is None:
            code = getattr(exc, 'errno', None)

        stack = None
        if exc.__traceback__ is not None:
            stack = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))

        return cls(
            kind=EventKind.ERROR,
            error_type=type(exc).__name__,
            message=str(exc),
            identity=identity,
            severity=severity,
            status_code=status_code if isinstance(status_code, int) else None,
            code=code,
            stack=stack,
        )
