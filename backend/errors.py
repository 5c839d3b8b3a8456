"""
Shared error taxonomy for the API.

Services raise these exceptions; the gateway translates them into JSON
responses of the form {"error": "<message>"} with the matching status code.
"""

import logging
from typing import Optional, Tuple

from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base class for errors that map 1:1 to an HTTP response."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(ApiError):
    status_code = 400
    message = "Invalid input"


class ConflictError(ApiError):
    status_code = 400
    message = "Resource already exists"


class AuthError(ApiError):
    status_code = 401
    message = "Invalid credentials"


class ForbiddenError(ApiError):
    status_code = 403
    message = "Permission denied"


class NotFoundError(ApiError):
    status_code = 404
    message = "Not found"


class InternalError(ApiError):
    status_code = 500
    message = "Internal Server Error"


def register_error_handlers(app: Flask) -> None:
    """
    Install handlers that turn raised errors into JSON responses.

    Unexpected exceptions are logged with their traceback and answered
    with a generic 500 so no internal detail reaches the client.
    """

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> Tuple[Response, int]:
        if error.status_code >= 500:
            logging.error(f"[Gateway] {type(error).__name__}: {error.message}")
            return jsonify({"error": InternalError.message}), error.status_code
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> Tuple[Response, int]:
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception) -> Tuple[Response, int]:
        logging.exception(f"[Gateway] Unhandled error: {error}")
        return jsonify({"error": InternalError.message}), 500
