# users_api/api/middlewares/error_handler.py
from datetime import datetime, timezone

from flask import Flask, jsonify
from pydantic import ValidationError
from sqlalchemy.exc import DBAPIError
from werkzeug.exceptions import HTTPException

from users_api.core.exceptions import AppError, ValidationFailedError
from users_api.core.logging import get_logger

logger = get_logger(__name__)


def _body(status: int, message: str, **extra) -> dict:
    return {
        "status": status,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


def _field_errors(err: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for e in err.errors():
        field = ".".join(str(part) for part in e["loc"]) or "body"
        errors.setdefault(field, e["msg"])
    return errors


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationFailedError)
    def handle_validation_failed(err: ValidationFailedError):
        logger.info("Validation failed", errors=err.errors)
        return jsonify(_body(err.status_code, str(err), errors=err.errors)), err.status_code

    @app.errorhandler(ValidationError)
    def handle_pydantic_error(err: ValidationError):
        errors = _field_errors(err)
        logger.info("Validation failed", errors=errors)
        return jsonify(_body(400, "Validation failed", errors=errors)), 400

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        logger.info("Request rejected", status=err.status_code, reason=str(err))
        return jsonify(_body(err.status_code, str(err))), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify(_body(err.code or 500, err.description or err.name)), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unexpected error", error_type=type(err).__name__)
        # driver errors carry the useful text; the wrapper adds the SQL statement
        cause = err.orig if isinstance(err, DBAPIError) and err.orig is not None else err
        return jsonify(_body(500, f"An unexpected error occurred: {cause}")), 500
