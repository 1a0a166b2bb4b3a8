"""
Request context extraction for Flask/Werkzeug requests.

Stateless: builds a plain dict the formatter can render. Body and headers
are redacted here, before the context ever reaches the logger.
"""

import logging
from typing import Any, Dict

from flask import g, has_app_context

from telegram_error_logger.config.governor_config import GovernorConfig
from telegram_error_logger.utils.sanitize import redact_mapping

logger = logging.getLogger(__name__)


def extract_context(request, config: GovernorConfig) -> Dict[str, Any]:
    """
    Extract error context from a request.

    Args:
        request: flask.Request (or any werkzeug Request)
        config: Logger configuration (include_body, include_headers, hooks, sensitive keys)

    Returns:
        Context dict: method, url, path, route, params, query and, when
        available, body, headers, user, user_id, ip, custom
    """
    url_rule = getattr(request, 'url_rule', None)
    context: Dict[str, Any] = {
        'method': request.method,
        'url': request.full_path.rstrip('?') if request.query_string else request.path,
        'path': request.path,
        'route': url_rule.rule if url_rule is not None else None,
        'params': dict(getattr(request, 'view_args', None) or {}),
        'query': request.args.to_dict(),
    }

    if config.include_body:
        body = _request_body(request)
        if body:
            context['body'] = redact_mapping(body, config.sensitive_body_fields) if isinstance(body, dict) else body

    if config.include_headers:
        context['headers'] = redact_mapping(dict(request.headers), config.sensitive_headers)

    if config.extract_user is not None:
        try:
            context['user'] = config.extract_user(request)
        except Exception as e:
            logger.debug(f"extract_user hook raised {type(e).__name__}: {e}")
    else:
        user = g.get('user') if has_app_context() else None
        if user is not None:
            context['user'] = user
            context['user_id'] = _user_id(user)

    context['ip'] = request.remote_addr

    if config.context_extractor is not None:
        try:
            context['custom'] = config.context_extractor(request)
        except Exception as e:
            logger.debug(f"context_extractor hook raised {type(e).__name__}: {e}")

    return context


def _request_body(request) -> Any:
    if request.is_json:
        return request.get_json(silent=True)
    if request.form:
        return request.form.to_dict()
    return None


def _user_id(user: Any) -> Any:
    if isinstance(user, dict):
        return user.get('id', user.get('user_id'))
    return getattr(user, 'id', getattr(user, 'user_id', None))
