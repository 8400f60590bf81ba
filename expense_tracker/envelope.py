"""
JSON envelope helpers shared by every route.

Each helper returns a ``(response, status)`` tuple that Flask accepts as a
view return value. The body is always ``{"ok": ..., "message": ..., "data": ...}``
except for validation failures, which carry per-field ``errors`` instead.
"""

from typing import Any, Dict, List

from flask import jsonify


def _envelope(ok: bool, status: int, message: str, data: Any = None):
    return jsonify({'ok': ok, 'message': message, 'data': data}), status


def success(data: Any = None, message: str = 'Success', status: int = 200):
    return _envelope(True, status, message, data)


def error(data: Any = None, message: str = 'Internal Server Error'):
    return _envelope(False, 500, message, data)


def bad_request(data: Any = None, message: str = 'Bad request'):
    return _envelope(False, 400, message, data)


def unauthorized(data: Any = None, message: str = 'Unauthorized'):
    return _envelope(False, 401, message, data)


def forbidden(data: Any = None, message: str = 'Forbidden'):
    return _envelope(False, 403, message, data)


def not_found(data: Any = None, message: str = 'Not found'):
    return _envelope(False, 404, message, data)


def validation_errors(errors: Dict[str, List[str]]):
    return jsonify({'ok': False, 'message': 'Validation error', 'errors': errors}), 422
