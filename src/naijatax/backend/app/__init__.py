"""Application factory for NaijaTax backend services."""

import logging
import os
from datetime import date
from typing import Callable
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from naijatax.backend.errors import TaxEngineError

from .http import ENGINE_EXTENSION, problem_from_error, problem_response
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.engine import InMemoryInputProvider, TaxEngine

logger = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app(
    engine: TaxEngine | None = None,
    *,
    clock: Callable[[], date] | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``engine`` defaults to one backed by an in-memory input provider; ``clock``
    is only used when the engine is created here.
    """

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(os.getenv("NAIJATAX_ALLOWED_ORIGINS"))

    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )

    app.extensions[ENGINE_EXTENSION] = engine or TaxEngine(InMemoryInputProvider(), clock=clock)

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(TaxEngineError)
    def handle_engine_error(error: TaxEngineError):
        """Surface calculation and ledger failures with their error kind."""

        problem = problem_from_error(error)
        if problem.status >= 500:
            logger.warning("Request failed: %s", error.message)
        return problem.to_response()

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface request validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app


__all__ = ["create_app"]
