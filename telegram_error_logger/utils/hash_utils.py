"""
Hash utility functions for event deduplication.
"""
import hashlib
from typing import Any, Mapping, Optional


def compute_identity_hash(identity: str) -> str:
    """
    Compute SHA256 hash (16 chars) of an event identity string.

    Args:
        identity: Identity string, e.g. "ValueError:bad input:/orders/<id>"

    Returns:
        16-character hex hash string
    """
    sha256_hash = hashlib.sha256(identity.encode('utf-8')).hexdigest()
    return sha256_hash[:16]


def fallback_identity(error_type: str, message: str,
                      context: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build the minimal identity used when the caller supplies none.

    Combines error type, message and the route (or URL when no route
    pattern is known), so the same failure on the same endpoint collapses.
    """
    location = ''
    if context:
        location = context.get('route') or context.get('url') or ''
    return f"{error_type}:{message}:{location}"
