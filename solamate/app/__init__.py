"""
app/__init__.py: Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, which gives:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Attach the in-memory LedgerStore via init_app()
  3. Register all route blueprints under /api/v1
  4. Register global error handlers (AppError -> JSON, Exception -> 500)
  5. Register a custom JSON provider to serialise Decimal as string
     (monetary amounts are transmitted as strings, never JS numbers)

Logging:
  The app is named "solamate.app", so the module loggers under
  solamate.app.services propagate to app.logger and share its handler.
  The level comes from LOG_LEVEL.
"""

from __future__ import annotations

import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError

from solamate.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.
# Amounts are normally pre-formatted by format_amount(); this provider is
# the fallback for any Decimal that reaches jsonify() unformatted.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") -> "10.50" (not 10.5 or 10.500000001)
    """

    # Keep insertion order; roster order is meaningful to clients.
    sort_keys = False

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from solamate.app.extensions import store
    store.init_app(app)

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug("Created app with %s config.", config_name)
    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so individual route files only specify
    the path relative to their resource (e.g. "/" and "/<int:ledger_id>").
    """
    from solamate.app.routes.balances import balances_bp
    from solamate.app.routes.expenses import expenses_bp
    from solamate.app.routes.ledgers import ledgers_bp
    from solamate.app.routes.settlements import planner_bp, settlements_bp

    app.register_blueprint(ledgers_bp,     url_prefix="/api/v1/ledgers")
    app.register_blueprint(expenses_bp,    url_prefix="/api/v1/ledgers")
    app.register_blueprint(balances_bp,    url_prefix="/api/v1/ledgers")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/ledgers")
    # The stateless planner is not scoped to a ledger.
    app.register_blueprint(planner_bp,     url_prefix="/api/v1/settlements")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        -> structured JSON error envelope with the correct HTTP status
      ValidationError -> marshmallow schema errors formatted as MISSING_FIELD /
                         INVALID_FIELD responses (400)
      Exception       -> generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server. Only
    {"error": {"code": "INTERNAL_ERROR", "message": "..."}} is returned.
    """
    from werkzeug.exceptions import HTTPException

    from solamate.app.errors import AppError, ErrorCode, SettlementInvariantViolation

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (model, service, route) into the standard error envelope.

        Routes never catch AppError; they let it propagate here.
        """
        if isinstance(error, SettlementInvariantViolation):
            app.logger.error("Settlement invariant violated: %s %s", error.message, error.residual)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST error is returned ("one error, not many").
        The message is used as the error code if it matches a known
        ErrorCode constant; otherwise INVALID_FIELD is used.
        """
        messages = error.messages  # e.g. {"amount": ["INVALID_AMOUNT_PRECISION"]}

        field = None
        raw_message = "Invalid input."
        code = ErrorCode.INVALID_FIELD

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None

                # Nested fields report {"0": {"amount": [...]}}; take the first leaf.
                while isinstance(field_errors, dict) and field_errors:
                    field_errors = next(iter(field_errors.values()))

                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                else:
                    raw_message = str(field_errors)

                if raw_message in vars(ErrorCode).values():
                    code = raw_message
                elif str(raw_message).startswith("Missing data for required field"):
                    code = ErrorCode.MISSING_FIELD
                else:
                    code = ErrorCode.INVALID_FIELD
                break
        elif isinstance(messages, list):
            raw_message = messages[0] if messages else "Invalid input."
            if raw_message in vars(ErrorCode).values():
                code = raw_message
            elif str(raw_message).startswith("Missing data for required field"):
                code = ErrorCode.MISSING_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": raw_message if raw_message not in vars(ErrorCode).values()
                else _code_to_message(code),
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.

        Werkzeug HTTP exceptions (404 for unknown routes, 405, a malformed
        JSON body) keep their own status code.
        """
        if isinstance(error, HTTPException):
            code = ErrorCode.INVALID_FIELD if error.code == 400 else ErrorCode.INTERNAL_ERROR
            return jsonify({
                "error": {
                    "code": code,
                    "message": error.description or error.name,
                }
            }), error.code

        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a wallet frontend served from
    another local port can call the API.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself
    (e.g. INVALID_AMOUNT_PRECISION raised as ValidationError in schemas).
    """
    _messages = {
        "INVALID_AMOUNT_PRECISION": "Amount has more decimal places than AMOUNT_PLACES allows.",
        "UNBALANCED_BALANCES": "Balances must sum to zero within the settlement tolerance.",
        "DUPLICATE_MEMBER": "The same member appears more than once in the members list.",
    }
    return _messages.get(code, "Invalid input.")
