# Overview: Sale lifecycle state machine; explicit transition table for payment_status.

"""
STATE MACHINE:
    draft -> paid        (confirm_payment)
    draft -> cancelled   (cancel_sale, releases reserved stock)
    paid  -> cancelled   (cancel_sale as a void, releases stock)

    draft:     items may be added/removed, tax may be set
    paid:      terminal for item mutation
    cancelled: terminal
"""

from __future__ import annotations

from typing import Literal

from ..errors import StateConflictError


DRAFT = "draft"
PAID = "paid"
CANCELLED = "cancelled"

VALID_STATUSES = {DRAFT, PAID, CANCELLED}
SaleStatus = Literal["draft", "paid", "cancelled"]

VALID_TRANSITIONS = {
    (DRAFT, PAID),
    (DRAFT, CANCELLED),
    (PAID, CANCELLED),
}


class LifecycleError(StateConflictError):
    """Raised when a sale is asked to make a transition it cannot make."""


def validate_status(status: SaleStatus) -> None:
    if status not in VALID_STATUSES:
        raise ValueError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def can_transition(from_status: SaleStatus, to_status: SaleStatus) -> bool:
    validate_status(from_status)
    validate_status(to_status)
    return (from_status, to_status) in VALID_TRANSITIONS


def require_transition(sale, to_status: SaleStatus) -> None:
    if not can_transition(sale.payment_status, to_status):
        raise LifecycleError(
            f"Cannot change sale {sale.id} from {sale.payment_status} to {to_status}"
        )


def require_mutable(sale) -> None:
    """Items and tax can only change while the sale is a draft."""
    if sale.payment_status != DRAFT:
        raise LifecycleError(
            f"Sale {sale.id} is {sale.payment_status}; only draft sales can be modified"
        )
