from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base exception for failures reported to API callers."""

    status_code = 500
    code = "internal"
    default_message = "Server error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        payload = {"success": False, "error": self.code, "message": self.message}
        payload.update(self.details)
        return payload


class ValidationError(ApiError):
    """Raised when a required field is missing or malformed."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class Unauthenticated(ApiError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    code = "forbidden"
    default_message = "Access forbidden: insufficient permissions"


class NotFound(ApiError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class Conflict(ApiError):
    """Raised when a unique key is already taken."""

    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class RecordLocked(ApiError):
    """Raised when an attendance record is past its edit window."""

    status_code = 423
    code = "record_locked"
    default_message = "Attendance record is locked"


class Internal(ApiError):
    status_code = 500
    code = "internal"
    default_message = "Server error"


def error_response(error):
    return jsonify(error.to_dict()), error.status_code


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "success": False,
            "error": error.name.lower().replace(" ", "_"),
            "message": error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception("Unhandled error: %s", error)
        return error_response(Internal())
