# Overview: Money parsing and formatting; amounts live in the database as integer cents.

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError


# Largest amount accepted from clients (9,999,999,999,999.99)
MAX_AMOUNT_CENTS = 999_999_999_999_999

_CENT = Decimal("0.01")
_MAX_AMOUNT = Decimal(MAX_AMOUNT_CENTS) / 100


def to_cents(value: Any, field: str) -> int:
    """
    Convert a client-supplied amount (JSON number or numeric string) to cents.

    Rejects booleans, negatives, non-finite values and more than two
    fraction digits. Floats go through str() so 0.1 stays 0.1.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError.for_field(field, f"The {field} must be a number.")

    if isinstance(value, float):
        value = str(value)

    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError.for_field(field, f"The {field} must be a number.")

    if not amount.is_finite():
        raise ValidationError.for_field(field, f"The {field} must be a number.")
    if amount < 0:
        raise ValidationError.for_field(field, f"The {field} must be at least 0.")
    # Bound the magnitude first; quantize cannot represent huge exponents
    if amount > _MAX_AMOUNT:
        raise ValidationError.for_field(field, f"The {field} is too large.")
    try:
        exact = amount == amount.quantize(_CENT)
    except InvalidOperation:
        exact = False
    if not exact:
        raise ValidationError.for_field(field, f"The {field} must have at most 2 decimal places.")

    return int(amount * 100)


def format_cents(cents: int | None) -> str | None:
    """Render cents as a fixed 2-decimal string ("14000000.00")."""
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(_CENT))
