"""JSON response envelope and the single place where domain errors become HTTP codes.

Every endpoint answers with::

    {"status": "success", "message": ..., "data": ...}
    {"status": "error", "message": ..., "code": ..., "errors": [...]}
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NoFacultyFoundError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_FORBIDDEN = "You are not authorized to perform this action"
GENERIC_SERVER_ERROR = "Internal server error"


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(
    message: str,
    *,
    status: int = 400,
    code: Optional[str] = None,
    errors: Optional[Sequence[Any]] = None,
):
    body: dict[str, Any] = {"status": "error", "message": message}
    if code:
        body["code"] = code
    if errors:
        body["errors"] = list(errors)
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def status_for(exc: DomainError) -> int:
    if isinstance(exc, (ValidationError, NoFacultyFoundError)):
        return 400
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        if status == 403:
            # Do not reveal which classes or records exist.
            logger.info("Authorization denied on %s: %s", request.path, exc.message)
            return fail(GENERIC_FORBIDDEN, status=403)
        return fail(exc.message, status=status, code=exc.code, errors=exc.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return fail(exc.description or exc.name, status=exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail(GENERIC_SERVER_ERROR, status=500)
