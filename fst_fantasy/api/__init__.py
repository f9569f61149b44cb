"""Flask application factory."""

from __future__ import annotations

from flask import Flask

EXTENSION_KEY = "contest_manager"


def create_app(manager=None) -> Flask:
    """Create and configure the Flask application.

    *manager* is the :class:`~fst_fantasy.contest.manager.ContestManager`
    the routes talk to; one backed by the default sqlite database and
    the live FPL API is built when omitted.
    """
    app = Flask(__name__)

    if manager is None:
        from fst_fantasy.contest.manager import ContestManager
        manager = ContestManager()
    app.extensions[EXTENSION_KEY] = manager

    from fst_fantasy.api.middleware import register_middleware
    register_middleware(app)

    from fst_fantasy.api.contest_bp import contest_bp
    app.register_blueprint(contest_bp)

    return app
