"""
Error taxonomy and the single response sanitizer used by every blueprint.
"""

import logging

from flask import current_app, jsonify
from pydantic import ValidationError as SchemaError
from werkzeug.exceptions import HTTPException

from storefront.extensions import db

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    is_public = True

    def __init__(self, message, status_code=None, is_public=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if is_public is not None:
            self.is_public = is_public


class ValidationError(AppError):
    status_code = 400


class Unauthorized(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 400


class UpstreamError(AppError):
    status_code = 502


def sanitize_error(error, debug=False):
    """Return (message, status_code) safe to hand to the client."""
    if isinstance(error, AppError):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
        return (error.message if error.is_public else "An error occurred"), error.status_code

    if isinstance(error, SchemaError):
        errors = error.errors()
        message = errors[0]["msg"] if errors else "Invalid data provided"
        # pydantic prefixes custom messages raised from validators
        return message.removeprefix("Value error, "), 400

    logger.exception("Unhandled error: %s", error)
    if debug:
        return str(error), 500
    return "An internal error occurred. Please try again later.", 500


def register_error_handlers(app):
    def render(error):
        db.session.rollback()
        message, status = sanitize_error(error, debug=current_app.debug)
        return jsonify({"success": False, "error": message}), status

    @app.errorhandler(HTTPException)
    def handle_http(error):
        return jsonify({"success": False, "error": error.description}), error.code

    app.register_error_handler(AppError, render)
    app.register_error_handler(SchemaError, render)
    app.register_error_handler(Exception, render)
