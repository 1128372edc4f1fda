"""Centralised error handling and custom exceptions.

This module defines custom exception classes and provides
Flask error handlers that serialise them into JSON responses.
Services raise these exceptions without knowing about HTTP
status codes; the handlers registered by the application
factory translate them. Every error body has the same shape::

    {"error": {"code": "...", "message": "...", "fields": {...}}}
"""
from __future__ import annotations

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, fields: dict | None = None) -> dict:
    body = {"code": code, "message": message}
    if fields:
        body["fields"] = fields
    return {"error": body}


class AppError(Exception):
    """Base class for errors that map onto a fixed HTTP status."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self):
        return jsonify(error_body(self.code, self.message)), self.status_code


class ValidationError(AppError):
    """Raised when input validation fails."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: dict | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def to_response(self):
        return jsonify(error_body(self.code, self.message, self.fields)), self.status_code


class AuthenticationError(AppError):
    """Raised when credentials are missing or wrong."""

    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    """Raised when an authenticated user lacks the required privilege."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    """Raised when a requested resource cannot be found."""

    status_code = 404
    code = "NOT_FOUND"


class ExternalServiceError(AppError):
    """Raised when Stripe or a social network API call fails."""

    status_code = 500
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""
    from .db import db

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if isinstance(err, ExternalServiceError):
            db.session.rollback()
            logger.error("%s call failed: %s", err.service, err.message)
        return err.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = "NOT_FOUND" if err.code == 404 else err.name.upper().replace(" ", "_")
        return jsonify(error_body(code, err.description)), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify(error_body("INTERNAL_ERROR", "Internal server error.")), 500


def register_jwt_handlers(jwt) -> None:
    """Return JWT failures in the same envelope as every other error."""

    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return jsonify(error_body("UNAUTHORIZED", reason)), 401

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return jsonify(error_body("UNAUTHORIZED", reason)), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify(error_body("UNAUTHORIZED", "Token has expired.")), 401
