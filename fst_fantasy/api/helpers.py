"""Shared helpers for API blueprints."""

from flask import current_app, request

from fst_fantasy.contest.identity import resolve_user_id


def get_manager():
    """The :class:`ContestManager` registered by ``create_app``."""
    from fst_fantasy.api import EXTENSION_KEY
    return current_app.extensions[EXTENSION_KEY]


def json_body() -> dict:
    """Request JSON as a dict (empty when missing or not an object)."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def require_user_id(args_or_body) -> str:
    """Resolve the caller from ``initData`` or ``userId``; raise :class:`AuthError` otherwise."""
    return resolve_user_id(args_or_body, bot_token=get_manager().bot_token)
