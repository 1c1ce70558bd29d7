from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import jwt
import logging

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


class AppError(Exception):
    """
    Operational error raised by handlers and services.
    4xx errors carry status "fail", everything else "error".
    """
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


class BadRequest(AppError):
    status_code = 400


class ValidationFailed(BadRequest):
    def __init__(self, errors: list[dict], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class Unauthorized(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class TooManyRequests(AppError):
    status_code = 429


def flatten_messages(messages, location: str = "body", prefix: str = "") -> list[dict]:
    """Turn marshmallow's nested error dict into [{field, message, location}]."""
    if isinstance(messages, (list, tuple)):
        out = []
        for m in messages:
            if isinstance(m, dict):
                out.extend(flatten_messages(m, location, prefix))
            else:
                out.append({"field": prefix or "_schema", "message": str(m), "location": location})
        return out
    if isinstance(messages, dict):
        out = []
        for key, value in messages.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            out.extend(flatten_messages(value, location, field))
        return out
    return [{"field": prefix or "_schema", "message": str(messages), "location": location}]


def error_response(status: str, message: str, code: int, errors: list | None = None, details: dict | None = None):
    payload = {"status": status, "message": message}
    if errors:
        payload["errors"] = errors
    if details:
        payload["details"] = details
    return jsonify(payload), code


def register_error_handlers(app):
    @app.errorhandler(ValidationFailed)
    def handle_validation_failed(err: ValidationFailed):
        return error_response(err.status, err.message, err.status_code, errors=err.errors)

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("Operational error on %s %s: %s", request.method, request.path, err.message)
        return error_response(err.status, err.message, err.status_code)

    # Raw marshmallow errors that escaped the validation helper
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("fail", "Validation failed", 400, errors=flatten_messages(err.messages))

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg or "duplicate" in lower_msg:
            return error_response("fail", "Duplicate value. Please use another value.", 409)
        return error_response("fail", "Integrity error.", 400)

    @app.errorhandler(jwt.ExpiredSignatureError)
    def handle_expired_token(err):
        return error_response("fail", "Your token has expired. Please log in again.", 401)

    @app.errorhandler(jwt.InvalidTokenError)
    def handle_invalid_token(err):
        return error_response("fail", "Invalid token. Please log in again.", 401)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        if code == 404:
            message = f"Route {request.path} not found"
        else:
            message = err.description or err.name
        status = "fail" if code < 500 else "error"
        return error_response(status, message, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.path, exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("error", GENERIC_ERROR_MESSAGE, 500, details=details)
