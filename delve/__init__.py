"""
project: Delve
module: __init__.py
License: MIT

Flask application factory.

Configuration is sourced from environment variables (optionally via a local
``.env`` file) with development defaults. A local ``instance/`` directory is
used for the rotating log file.
"""

import logging
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify

# Load .env if present so SECRET_KEY, DELVE_* etc. can be supplied without
# exporting shell variables during development.
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def create_app(overrides: dict | None = None) -> Flask:
    """Build the Flask app with the exploration API registered."""
    app = Flask(__name__, instance_relative_config=True)
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError as exc:
        # Read-only checkouts still serve the API; only file logging is lost.
        logging.getLogger(__name__).warning("instance dir unavailable: %s", exc)

    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        DELVE_SESSION_CACHE_MAX=int(os.getenv("DELVE_SESSION_CACHE_MAX", "16")),
        DELVE_ENABLE_GENERATION_METRICS=_env_flag("DELVE_ENABLE_GENERATION_METRICS", "1"),
    )
    if overrides:
        app.config.update(overrides)

    from delve.routes.explore_api import bp_explore

    app.register_blueprint(bp_explore)

    @app.errorhandler(500)
    def internal_error(e):
        error_id = uuid.uuid4().hex[:8]
        logging.exception("Unhandled exception (id=%s)", error_id)
        return jsonify({"error": "internal error", "error_id": error_id}), 500

    return app


__all__ = ["create_app"]
