"""
Redaction of sensitive fields in request bodies and headers.

Pure functions: they never mutate their input and hold no state.
"""

from typing import Any, Iterable, Mapping

REDACTED = '[REDACTED]'


def redact_mapping(data: Mapping[str, Any], sensitive_keys: Iterable[str]) -> dict:
    """
    Return a copy of ``data`` with sensitive values replaced by ``[REDACTED]``.

    Keys are matched case-insensitively. Nested mappings and lists of mappings
    are redacted recursively.

    Args:
        data: Mapping to sanitize (request body, headers, ...)
        sensitive_keys: Key names to redact

    Returns:
        New dict with the same keys
    """
    keys = {k.lower() for k in sensitive_keys}
    return _redact(data, keys)


def _redact(data: Mapping[str, Any], keys: set) -> dict:
    sanitized = {}
    for key, value in data.items():
        if isinstance(key, str) and key.lower() in keys and value:
            sanitized[key] = REDACTED
        else:
            sanitized[key] = _redact_value(value, keys)
    return sanitized


def _redact_value(value: Any, keys: set) -> Any:
    if isinstance(value, Mapping):
        return _redact(value, keys)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, keys) for item in value]
    return value
