"""Map application errors onto the JSON response envelope."""

from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException

from .errors import (
    AppError,
    DuplicateResourceError,
    NotFoundError,
    PermissionDenied,
    Unauthenticated,
    ValidationError,
)
from .utils import api_response

error_handlers_bp = Blueprint("error_handlers", __name__)


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return api_response(message=error.message, status=error.status_code)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return api_response(message=error.message, status=error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return api_response(message=error.message, status=error.status_code)


@error_handlers_bp.app_errorhandler(Unauthenticated)
@error_handlers_bp.app_errorhandler(PermissionDenied)
def handle_access_error(error):
    """Handles missing credentials and insufficient roles."""
    current_app.logger.warning(f"Access Error: {error.message}")
    return api_response(message=error.message, status=error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles the remaining application errors."""
    if error.status_code >= 500:
        current_app.logger.error(f"Application Error: {error.message}")
    else:
        current_app.logger.warning(f"Application Error: {error.message}")
    return api_response(message=error.message, status=error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return api_response(message="Not found.", status=404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    return api_response(message="Method not allowed.", status=405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    original = getattr(e, "original_exception", None) or e
    current_app.logger.error(f"Internal Server Error: {original}")
    return api_response(message="Internal server error.", status=500)


@error_handlers_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    """Renders other HTTP errors raised by Flask in the envelope."""
    return api_response(message=e.description or e.name, status=e.code or 500)
