"""Resolve the caller's identity for ownership checks and like/save scoping.

Logging users in is handled elsewhere; this module only reads the identity
that the login flow leaves in the session.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app, request, session

from .config import AppConfig
from .errors import Unauthorized

SESSION_USER_KEY = "user_id"
USER_HEADER = "X-User-Id"


def current_user_id() -> Optional[str]:
    """Return the authenticated user id or ``None`` for anonymous callers."""

    user_id = session.get(SESSION_USER_KEY)
    if user_id:
        return str(user_id)

    config: AppConfig | None = current_app.config.get("APP_CONFIG")
    if config and config.trust_user_header:
        header_value = request.headers.get(USER_HEADER, "").strip()
        return header_value or None
    return None


def require_user_id() -> str:
    """Return the authenticated user id or raise :class:`Unauthorized`."""

    user_id = current_user_id()
    if not user_id:
        raise Unauthorized()
    return user_id
