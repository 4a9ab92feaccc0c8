"""Application factory for the Cukai relief and tax backend."""

import logging
import os
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest, MethodNotAllowed, NotFound

from .http import problem_response
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.ledger_service import LedgerRepository, build_repository

_LOGGER = logging.getLogger(__name__)

LEDGER_EXTENSION = "cukai.ledger"


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app(ledger: LedgerRepository | None = None) -> Flask:
    """Create and configure the Flask application instance.

    ``ledger`` overrides the repository selected through ``CUKAI_LEDGER_DB``.
    """

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(os.getenv("CUKAI_ALLOWED_ORIGINS"))

    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    app.extensions[LEDGER_EXTENSION] = ledger or build_repository()
    _LOGGER.debug(
        "Using %s for the ledger", type(app.extensions[LEDGER_EXTENSION]).__name__
    )

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(NotFound)
    def handle_not_found(error: NotFound):
        return problem_response(
            "not_found", status=404, message="Resource not found"
        ).to_response()

    @app.errorhandler(MethodNotAllowed)
    def handle_method_not_allowed(error: MethodNotAllowed):
        return problem_response(
            "method_not_allowed", status=405, message="Method not allowed"
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app
