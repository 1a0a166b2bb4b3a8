"""
Shared utilities for the Telegram error logger
"""

from .hash_utils import compute_identity_hash, fallback_identity
from .sanitize import REDACTED, redact_mapping
from .structured_logging import (
    StructuredLogger,
    log_delivery_failure,
    log_delivery_success,
    log_event_suppressed,
)

__all__ = [
    "compute_identity_hash",
    "fallback_identity",
    "REDACTED",
    "redact_mapping",
    "StructuredLogger",
    "log_delivery_failure",
    "log_delivery_success",
    "log_event_suppressed",
]
