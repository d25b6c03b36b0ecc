"""JSON error responses for the application."""

from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .errors import AppError, AuthorizationError, DomainValidationError, NotFoundError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code):
    return jsonify({"error": message}), status_code


@error_handlers_bp.app_errorhandler(DomainValidationError)
def handle_validation_error(error):
    """Handles rejected operations on invalid tournament state."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AuthorizationError)
def handle_authorization_error(error):
    """Handles users acting without the required tournament role."""
    current_app.logger.warning(f"Authorization Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found.", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("An unexpected error occurred.", 500)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """Handles CSRF errors, which usually indicate an expired session."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return _error_response("Your session may have expired. Please try again.", 400)
