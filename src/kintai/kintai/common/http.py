"""JSON envelope, error mapping and session identity for the Flask controllers.

Success: ``{statusCode, message, data?}``
Error:   ``{statusCode, message, error: {code, message, details?}}``
"""

from __future__ import annotations

import logging
from decimal import Decimal
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.context import EmployeeContext
from ..core.enums import Operation, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

log = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Request completed successfully"

_STATUS_BY_ERROR = {
    ValidationError: 400,
    BadRequestError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


def ok(data: Any = None, status: int = 200):
    payload: dict[str, Any] = {"statusCode": status, "message": SUCCESS_MESSAGE}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def fail(message: str, status: int = 400, code: str = "BAD_REQUEST", details: Any = None):
    err: dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return jsonify({"statusCode": status, "message": message, "error": err}), status


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR.items():
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return fail(str(e), status=400, code=e.code, details=e.field_errors)

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        status = status_for(e)
        log.info("%s %s rejected: %s %s", request.method, request.path, e.code, e)
        return fail(str(e), status=status, code=e.code)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        code = "NOT_FOUND" if e.code == 404 else "BAD_REQUEST"
        return fail(e.description or e.name, status=e.code or 500, code=code)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        log.exception("unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", status=500, code="INTERNAL_SERVER_ERROR")


def current_context() -> EmployeeContext:
    """Identity placed in the session by the login collaborator."""
    ctx = g.get("employee_context")
    if ctx is not None:
        return ctx
    employee_id = session.get("employee_id")
    if not employee_id:
        raise AuthenticationError("Authentication is required")
    try:
        role = Role(session.get("role", Role.EMPLOYEE.value))
    except ValueError as e:
        raise AuthenticationError("Unknown role in session") from e
    ctx = EmployeeContext(employee_id=str(employee_id), name=str(session.get("name") or ""), role=role)
    g.employee_context = ctx
    return ctx


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_context()
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_context().require_admin()
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", {"body": ["must be a JSON object"]})
    return body


def date_arg(value: Optional[str], field: str, *, required: bool = True):
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required", {field: [f"{field} is required (YYYY-MM-DD)"]})
        return None
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field}", {field: [f"{field} must be formatted as YYYY-MM-DD"]}) from e


def int_arg(value: Optional[str], field: str, *, required: bool = True) -> Optional[int]:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required", {field: [f"{field} is required"]})
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field}", {field: [f"{field} must be an integer"]}) from e


def number(value: Any) -> Any:
    """Decimal -> int when integral, else float, for JSON bodies."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def route(app: Flask, operation: Operation, rule: str, *, methods: list[str]):
    """Register ``view`` as the single endpoint serving ``operation``."""

    def decorator(view):
        @wraps(view)
        def dispatch(*args, **kwargs):
            g.operation = operation
            log.debug("dispatch %s", operation.value)
            return view(*args, **kwargs)

        app.add_url_rule(rule, endpoint=operation.name.lower(), view_func=dispatch, methods=methods)
        return view

    return decorator
