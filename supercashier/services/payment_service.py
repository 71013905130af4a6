# Overview: Payment records; create and fetch (no gateway integration).

from __future__ import annotations

import logging
import secrets

from ..errors import FieldErrors, NotFoundError
from ..extensions import db
from ..models import Payment
from ..validation import ModelValidationPolicy, validate_payload

logger = logging.getLogger(__name__)


PAYMENT_TYPES = {"cash", "credit_card", "bank_transfer", "e-wallet"}
TRANSACTION_STATUSES = {"pending", "settlement", "failed", "cancelled"}

PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"order_id", "payment_type", "gross_amount", "transaction_status", "metadata"},
    required_on_create={"payment_type", "gross_amount"},
    money_fields={"gross_amount": "gross_amount_cents"},
    aliases={"metadata": "payment_metadata"},
)


def generate_order_id() -> str:
    return f"ORDER-{secrets.token_hex(8).upper()}"


def create_payment(payload: dict) -> Payment:
    """
    Record a payment.

    order_id is generated when omitted; transaction_status defaults to
    pending. metadata must be a JSON object when given.
    """
    patch = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=False)

    errors = FieldErrors()
    if patch.get("payment_type") not in PAYMENT_TYPES:
        errors.add("payment_type", "The selected payment type is invalid.")
    status = patch.get("transaction_status") or "pending"
    if status not in TRANSACTION_STATUSES:
        errors.add("transaction_status", "The selected transaction status is invalid.")
    metadata = patch.get("payment_metadata")
    if metadata is not None and not isinstance(metadata, dict):
        errors.add("metadata", "The metadata must be an object.")

    order_id = patch.get("order_id") or generate_order_id()
    if db.session.query(Payment.id).filter(Payment.order_id == order_id).first():
        errors.add("order_id", "The order id has already been taken.")
    errors.raise_if_any()

    patch["order_id"] = order_id
    patch["transaction_status"] = status

    payment = Payment(**patch)
    db.session.add(payment)
    db.session.commit()

    logger.info("Payment %s (%s) recorded", payment.id, payment.order_id)
    return payment


def get_payment(payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment
