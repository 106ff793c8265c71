"""
JSON error responses for the loyalty API.

Every failure leaves the API in the same envelope:

    {"error": {"message": "Card with ID ... not found", "code": "CARD_NOT_FOUND"}}

Domain exceptions carry their own code; HTTP-level failures use ErrorCode.
"""
import logging
from enum import Enum
from typing import Optional, Union

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import (
    LoyaltyError,
    ValidationError,
    InvalidOperationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Codes for errors that do not come from a domain exception."""
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    message: str,
    code: Union[ErrorCode, str] = ErrorCode.INTERNAL_ERROR,
    status_code: int = 500,
    details: Optional[dict] = None,
) -> tuple:
    """
    Build the error envelope and log it.

    5xx responses are logged at ERROR with ``details``; client errors at
    WARNING. ``details`` never reaches the response body.
    """
    code_value = code.value if isinstance(code, ErrorCode) else code
    if status_code >= 500:
        logger.error(f"API error [{code_value}] {status_code}: {message}", extra={"details": details})
    else:
        logger.warning(f"API error [{code_value}] {status_code}: {message}")

    return jsonify({"error": {"message": message, "code": code_value}}), status_code


def status_for(error: LoyaltyError) -> int:
    """HTTP status of a domain exception: 400 input, 404 missing, 409 state conflict."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, InvalidOperationError):
        return 409
    return 400


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for domain exceptions and HTTP errors."""

    @app.errorhandler(LoyaltyError)
    def handle_loyalty_error(error: LoyaltyError):
        return error_response(error.message, error.code, status_for(error))

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        return error_response('A database error occurred', ErrorCode.DATABASE_ERROR, 500,
                              details={'error': str(error)})

    @app.errorhandler(400)
    def handle_bad_request(error):
        return error_response('Malformed request', ErrorCode.INVALID_REQUEST, 400)

    @app.errorhandler(404)
    def handle_not_found(error):
        return error_response('Not found', ErrorCode.NOT_FOUND, 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.METHOD_NOT_ALLOWED, 405)

    @app.errorhandler(500)
    def handle_internal_error(error):
        return error_response('An unexpected error occurred', ErrorCode.INTERNAL_ERROR, 500,
                              details={'error': str(error)})
