"""JSON error handlers shared by every blueprint."""

from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .errors import AppError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code):
    return jsonify({"success": False, "message": message}), status_code


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles application errors raised by the service layer."""
    if error.status_code >= 500:
        current_app.logger.error(f"Application Error: {error.message}")
    else:
        current_app.logger.warning(
            f"{type(error).__name__} ({error.status_code}): {error.message}"
        )
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """Handles CSRF errors, which usually indicate an expired session."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return _error_response(
        "Your session may have expired. Please try your action again.", 400
    )


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests using a method the route does not accept."""
    return _error_response("Method not allowed", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("An unexpected error occurred.", 500)
