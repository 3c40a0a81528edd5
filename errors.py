"""
Centralized error handlers: every failure leaves the API in the same JSON envelope.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import BadRequest, HTTPException

from extensions import db
from logging_config import get_logger
from responses import error_body

logger = get_logger(__name__)


class Conflict(BadRequest):
    """Domain conflict (slug taken, session not active, already paid): reported as 400."""


def _field_errors(exc: PydanticValidationError):
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(e: PydanticValidationError):
        logger.warning("Validation error: %s", e.error_count())
        return jsonify(error_body("Validation error", details=_field_errors(e))), HTTPStatus.BAD_REQUEST

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        if e.code and e.code >= 500:
            logger.error("HTTP exception %s: %s", e.code, e.description)
        else:
            logger.info("HTTP exception %s: %s", e.code, e.description)
        return jsonify(error_body(e.description or e.name)), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        logger.error("Database error: %s", e, exc_info=True)
        db.session.rollback()
        return jsonify(error_body("Internal server error")), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.error("Unhandled exception: %s", e, exc_info=True)
        db.session.rollback()
        return jsonify(error_body("Internal server error")), HTTPStatus.INTERNAL_SERVER_ERROR
