"""Flask-side helpers shared by the feature controllers.

The session is the authentication boundary: ``current_identity()`` is the only
place that reads it, so services always receive one normalized ``Identity``.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from ..users.model import Identity

logger = logging.getLogger(__name__)

SESSION_KEYS = ("user_id", "role", "company_id")


def store_identity(identity: Identity) -> None:
    session.clear()
    session["user_id"] = identity.user_id
    session["role"] = identity.role.value
    session["company_id"] = identity.company_id


def current_identity() -> Identity:
    if any(key not in session for key in SESSION_KEYS):
        raise AuthenticationError("Not authenticated")
    try:
        return Identity(
            user_id=int(session["user_id"]),
            role=Role(session["role"]),
            company_id=int(session["company_id"]),
        )
    except (TypeError, ValueError):
        session.clear()
        raise AuthenticationError("Invalid session")


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        return view(current_identity(), *args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


def optional_int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def ok(payload: Any = None, status: int = 200, **extra):
    body = {"success": True}
    if payload is not None:
        body["data"] = payload
    body.update(extra)
    return jsonify(body), status


def error_response(exc: DomainError):
    body = {"success": False, "error": exc.code, "message": exc.message}
    body.update(exc.context)
    return jsonify(body), exc.http_status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        return error_response(exc)

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"success": False, "error": exc.name, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "ServerError", "message": "Internal server error"}), 500
