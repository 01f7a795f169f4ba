"""Utility functions for the HTTP layer."""

from __future__ import annotations

from typing import Any, Optional

from flask import jsonify, request

from bandsync.core.types import APIResponse
from bandsync.errors import ValidationError


def api_response(data: Any = None, message: str = "", status: int = 200):
    """Wrap ``data`` in the JSON envelope every endpoint returns."""
    body: APIResponse = {"success": status < 400, "message": message, "data": data}
    return jsonify(body), status


def bearer_token() -> Optional[str]:
    """Return the token of an ``Authorization: Bearer`` header, if any."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def json_body() -> dict[str, Any]:
    """Return the request's JSON object, raising ValidationError otherwise."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object.")
    return data
