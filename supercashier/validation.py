# Overview: Payload validation against model column metadata; collects per-field errors.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Integer, String, Text

from .errors import FieldErrors, ValidationError
from .money import to_cents

# Upper bound for any single quantity in a request
MAX_QUANTITY = 1_000_000


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: payload keys clients may set (security boundary)
    - required_on_create: keys required for POST
    - money_fields: payload key -> *_cents column key
    - aliases: payload key -> attribute key, where they differ
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    money_fields: dict[str, str] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)


def _columns_by_key(model) -> dict[str, Any]:
    return dict(model.__mapper__.columns.items())


def coerce_int(value: Any, name: str) -> int:
    """Strict integer coercion: no bools, floats, decimals or scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError.for_field(name, f"The {name} must be an integer.")


def _coerce_value(col, name: str, value: Any):
    coltype = col.type

    if isinstance(coltype, (Integer, BigInteger)):
        return coerce_int(value, name)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError.for_field(name, f"The {name} field must be true or false.")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError.for_field(name, f"The {name} must be a string.")
        text = str(value).strip()
        length = getattr(coltype, "length", None)
        if length and len(text) > length:
            raise ValidationError.for_field(
                name, f"The {name} may not be greater than {length} characters."
            )
        return text

    if isinstance(coltype, JSON):
        return value

    return value


def validate_payload(
    *,
    model,
    payload: Any,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - the policy allowlist and money mapping
    - required_on_create (if partial=False)

    Returns a patch dict keyed by column name. All field problems are
    reported together as one ValidationError.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError(message="Invalid JSON payload")

    errors = FieldErrors()
    cols = _columns_by_key(model)

    if not partial:
        for name in sorted(policy.required_on_create):
            raw = payload.get(name)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors.add(name, f"The {name} field is required.")

    for name in payload:
        if name not in policy.writable_fields:
            errors.add(name, f"The {name} field is not allowed.")

    patch: dict = {}
    for name, raw in payload.items():
        if name not in policy.writable_fields or errors.has(name):
            continue

        column_key = policy.money_fields.get(name) or policy.aliases.get(name, name)
        col = cols[column_key]

        if raw is None or (isinstance(raw, str) and not raw.strip() and not col.nullable):
            if col.nullable:
                patch[column_key] = None
            else:
                errors.add(name, f"The {name} field is required.")
            continue

        try:
            if name in policy.money_fields:
                patch[column_key] = to_cents(raw, name)
            else:
                patch[column_key] = _coerce_value(col, name, raw)
        except ValidationError as exc:
            for message in exc.errors.get(name, [exc.message]):
                errors.add(name, message)

    errors.raise_if_any()
    return patch


def require_positive_int(
    value: Any,
    name: str,
    default: int | None = None,
    maximum: int = MAX_QUANTITY,
) -> int:
    if value is None:
        if default is None:
            raise ValidationError.for_field(name, f"The {name} field is required.")
        return default
    number = coerce_int(value, name)
    if number < 1:
        raise ValidationError.for_field(name, f"The {name} must be at least 1.")
    if number > maximum:
        raise ValidationError.for_field(name, f"The {name} may not be greater than {maximum}.")
    return number


def optional_money(value: Any, name: str) -> int:
    """Money field that defaults to zero when omitted."""
    if value is None:
        return 0
    return to_cents(value, name)


def json_object(payload: Any) -> dict:
    """Request bodies must be JSON objects; an absent body counts as {}."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError(message="Invalid JSON payload")
    return payload
