"""Flask middleware — no-cache headers and error handlers."""

from flask import Flask, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from fst_fantasy.errors import ContestError
from fst_fantasy.logging_config import get_logger

log = get_logger(__name__)

_NO_CACHE_PATHS = ("/get-team", "/profile", "/leaderboard", "/prize-pool")


def register_middleware(app: Flask) -> None:
    """Register middleware on the Flask app."""

    @app.after_request
    def add_no_cache_headers(response):
        if request.path.startswith(_NO_CACHE_PATHS):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(ContestError)
    def contest_error(exc: ContestError):
        if exc.status >= 500:
            log.warning("%s %s -> %s: %s", request.method, request.path, exc.kind, exc.message)
        else:
            log.info("%s %s rejected (%s): %s", request.method, request.path, exc.kind, exc.message)
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(PydanticValidationError)
    def bad_payload(exc: PydanticValidationError):
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        return jsonify({
            "error": "Invalid request body",
            "kind": "validation_error",
            "details": {"problems": problems},
        }), 400

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(exc):
        log.error("Unhandled error on %s %s", request.method, request.path,
                  exc_info=getattr(exc, "original_exception", None) or exc)
        return jsonify({"error": "Internal server error"}), 500
