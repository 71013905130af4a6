# Overview: API error hierarchy; every subclass maps to one HTTP status and renders into the response envelope.

"""
Error taxonomy for the POS API.

Services raise these; the app-level handlers in supercashier/__init__.py
render them. Field-level problems travel as {field: [messages]} so the
client can attach them to form inputs.

    ValidationError         422  malformed input, unknown referenced ids
    InsufficientStockError  422  (ValidationError on "quantity")
    UnauthenticatedError    401
    PermissionDeniedError   403
    NotFoundError           404
    StateConflictError      409  illegal lifecycle transition, integrity conflicts
"""

from __future__ import annotations


DEFAULT_VALIDATION_MESSAGE = "The given data was invalid."


class APIError(Exception):
    """Base for errors that carry an HTTP status and a client-safe message."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, errors: dict[str, list[str]] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(APIError):
    status_code = 422
    default_message = DEFAULT_VALIDATION_MESSAGE

    def __init__(self, errors: dict[str, list[str]] | None = None, message: str | None = None):
        super().__init__(message, errors or {})

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the product's stock on hand."""

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        detail = (
            f"Insufficient stock for product '{product_name}' "
            f"(available: {available}, requested: {requested})"
        )
        super().__init__({"quantity": [detail]})


class UnauthenticatedError(APIError):
    status_code = 401
    default_message = "Unauthorized"


class PermissionDeniedError(APIError):
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(APIError):
    status_code = 404
    default_message = "Data not found"


class StateConflictError(APIError):
    status_code = 409
    default_message = "Conflict"


class FieldErrors:
    """
    Accumulates per-field messages while validating a payload, then raises
    once so the client sees every problem in one response.
    """

    def __init__(self):
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def has(self, field: str) -> bool:
        return field in self._errors

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationError(dict(self._errors))
