# Overview: JSON response envelope helpers shared by every blueprint.

from __future__ import annotations

from typing import Any

from flask import jsonify


def envelope(data: Any = None, message: str = "Success", status: int = 200, **extra):
    body = {
        "meta": {
            "status": status,
            "message": message,
        },
        "data": data,
    }
    body.update(extra)
    return jsonify(body), status


def success(data: Any = None, message: str = "Success", status: int = 200):
    return envelope(data, message, status)


def created(data: Any = None, message: str = "Created"):
    return envelope(data, message, 201)


def paginated(result: dict, message: str = "Success"):
    """Render a service listing dict ({items, count, pagination?})."""
    extra = {}
    if "pagination" in result:
        extra["pagination"] = result["pagination"]
    return envelope(result["items"], message, 200, **extra)


def error(message: str, status: int, errors: dict | None = None, data: Any = None):
    extra = {}
    if errors is not None:
        extra["errors"] = errors
    return envelope(data, message, status, **extra)


def token(token_value: str, user: dict, expires_in: int, message: str = "Login successful"):
    return envelope(
        {
            "token": token_value,
            "token_type": "bearer",
            "expires_in": expires_in,
            "user": user,
        },
        message,
        200,
    )
