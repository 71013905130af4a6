# Overview: Sale lifecycle controller; create, add/remove items, tax, confirm payment, cancel.

"""
Every operation runs in one atomic() transaction:

    lock sale row -> check lifecycle -> lock product row(s) -> mutate
    stock + sale + items -> recompute totals -> commit

Locks are always taken sale first, then products in ascending id order,
so two transactions touching the same rows cannot deadlock.

Stock is reserved when an item is added (not when the sale is paid) and
released when an item is removed or the sale is cancelled.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta

from ..errors import NotFoundError, StateConflictError, UnauthenticatedError, ValidationError
from ..extensions import db
from ..models import Payment, Sale, SaleItem, User
from ..time_utils import utcnow
from ..validation import coerce_int, optional_money, require_positive_int
from ..money import to_cents
from . import inventory_service, lifecycle_service
from .concurrency import atomic, lock_for_update
from .pagination import paginate
from .sale_totals import apply_totals

logger = logging.getLogger(__name__)


def _lock_sale(sale_id: int, *, refs_as_fields: bool = False) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter(Sale.id == sale_id)).first()
    if sale is None:
        if refs_as_fields:
            raise ValidationError.for_field("sale_id", "The selected sale id is invalid.")
        raise NotFoundError("Sale not found")
    return sale


def resolve_sale_user(current_user: User | None, payload_user_id) -> User:
    """
    The authenticated user wins; otherwise fall back to user_id from the
    request body.

    Raises:
        ValidationError(user_id): payload user_id is malformed or unknown
        UnauthenticatedError: neither source yields a user
    """
    if current_user is not None:
        return current_user

    if payload_user_id is None:
        raise UnauthenticatedError("Unable to resolve user from token or payload")

    user_id = coerce_int(payload_user_id, "user_id")
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise ValidationError.for_field("user_id", "The selected user id is invalid.")
    return user


def create_sale(user_id: int) -> Sale:
    """Open a draft sale with zeroed totals. No stock side effects."""

    def _op():
        sale = Sale(
            user_id=user_id,
            subtotal_cents=0,
            discount_cents=0,
            tax_cents=0,
            total_cents=0,
            payment_status=lifecycle_service.DRAFT,
            sale_date=utcnow(),
        )
        db.session.add(sale)
        db.session.flush()
        return sale

    sale = atomic(_op)
    logger.info("Sale %s created by user %s", sale.id, user_id)
    return sale


def add_item(
    sale_id,
    product_id,
    quantity=None,
    discount_amount=None,
    *,
    refs_as_fields: bool = False,
) -> SaleItem:
    """
    Reserve stock and append a line item to a draft sale.

    quantity defaults to 1 and must be a positive integer; discount_amount
    defaults to 0 and may not exceed the line subtotal.

    refs_as_fields=True reports unknown sale/product ids as 422 field
    errors (ids taken from the request body) instead of 404.

    Raises:
        ValidationError, InsufficientStockError, NotFoundError, LifecycleError
    """
    if sale_id is None and refs_as_fields:
        raise ValidationError.for_field("sale_id", "The sale_id field is required.")
    if product_id is None:
        raise ValidationError.for_field("product_id", "The product_id field is required.")

    sale_id = coerce_int(sale_id, "sale_id")
    product_id = coerce_int(product_id, "product_id")
    qty = require_positive_int(quantity, "quantity", default=1)
    discount_cents = optional_money(discount_amount, "discount_amount")

    def _op():
        sale = _lock_sale(sale_id, refs_as_fields=refs_as_fields)
        lifecycle_service.require_mutable(sale)

        product = inventory_service.reserve(product_id, qty, refs_as_fields=refs_as_fields)

        line_subtotal = product.selling_price_cents * qty
        if discount_cents > line_subtotal:
            raise ValidationError.for_field(
                "discount_amount", "The discount_amount may not exceed the line subtotal."
            )

        item = SaleItem(
            product_id=product.id,
            product_name=product.name,
            quantity=qty,
            unit_price_cents=product.selling_price_cents,
            discount_cents=discount_cents,
            subtotal_cents=line_subtotal,
        )
        sale.items.append(item)
        apply_totals(sale)
        db.session.flush()
        return item

    item = atomic(_op)
    logger.info(
        "Sale %s: added product %s x%s (item %s)", sale_id, product_id, qty, item.id
    )
    return item


def remove_item(sale_item_id: int) -> Sale:
    """Delete a line item from a draft sale and put its quantity back in stock."""

    def _op():
        item = db.session.get(SaleItem, sale_item_id)
        if item is None:
            raise NotFoundError("Sale item not found")

        sale = _lock_sale(item.sale_id)
        lifecycle_service.require_mutable(sale)

        inventory_service.release(item.product_id, item.quantity)
        sale.items.remove(item)
        apply_totals(sale)
        db.session.flush()
        return sale

    sale = atomic(_op)
    logger.info("Sale %s: removed item %s", sale.id, sale_item_id)
    return sale


def set_tax(sale_id: int, tax_amount) -> Sale:
    """Set the sale's standalone tax and re-derive total_amount."""
    if tax_amount is None:
        raise ValidationError.for_field("tax_amount", "The tax_amount field is required.")
    tax_cents = to_cents(tax_amount, "tax_amount")

    def _op():
        sale = _lock_sale(sale_id)
        lifecycle_service.require_mutable(sale)
        sale.tax_cents = tax_cents
        apply_totals(sale)
        return sale

    return atomic(_op)


def confirm_payment(sale_id: int, payment_id) -> Sale:
    """
    Attach an existing payment and move draft -> paid.

    Stock was reserved when items were added, so nothing moves here.
    """
    if payment_id is None:
        raise ValidationError.for_field("payment_id", "The payment_id field is required.")
    payment_id = coerce_int(payment_id, "payment_id")

    def _op():
        sale = _lock_sale(sale_id)
        lifecycle_service.require_transition(sale, lifecycle_service.PAID)
        if not sale.items:
            raise StateConflictError(f"Sale {sale.id} has no items")

        payment = db.session.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")

        sale.payment_id = payment.id
        sale.payment_status = lifecycle_service.PAID
        sale.paid_at = utcnow()
        return sale

    sale = atomic(_op)
    logger.info("Sale %s paid with payment %s", sale.id, payment_id)
    return sale


def cancel_sale(sale_id: int) -> Sale:
    """
    Move draft/paid -> cancelled and return every item's quantity to stock.

    The sale row and its items are kept. Cancelling a cancelled sale raises
    LifecycleError, so stock is restored exactly once.
    """

    def _op():
        sale = _lock_sale(sale_id)
        lifecycle_service.require_transition(sale, lifecycle_service.CANCELLED)

        quantities: dict[int, int] = defaultdict(int)
        for item in sale.items:
            quantities[item.product_id] += item.quantity

        for product_id in sorted(quantities):
            inventory_service.release(product_id, quantities[product_id])

        previous = sale.payment_status
        sale.payment_status = lifecycle_service.CANCELLED
        sale.cancelled_at = utcnow()
        return sale, previous

    sale, previous = atomic(_op)
    logger.info("Sale %s cancelled (was %s)", sale.id, previous)
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(
    *,
    payment_status: str | None = None,
    user_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Sale)
    if payment_status:
        if payment_status not in lifecycle_service.VALID_STATUSES:
            raise ValidationError.for_field("payment_status", "The selected payment status is invalid.")
        query = query.filter(Sale.payment_status == payment_status)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)

    query = query.order_by(Sale.sale_date.desc(), Sale.id.desc())
    return paginate(query, page, per_page, lambda s: s.to_dict(include_items=False))


def cancel_stale_drafts(older_than_hours: int) -> list[int]:
    """
    Cancel draft sales opened more than older_than_hours ago, releasing
    their reserved stock. Each sale is cancelled in its own transaction.

    Returns the ids of cancelled sales.
    """
    cutoff = utcnow() - timedelta(hours=older_than_hours)
    stale_ids = [
        sale_id
        for (sale_id,) in db.session.query(Sale.id)
        .filter(Sale.payment_status == lifecycle_service.DRAFT, Sale.sale_date < cutoff)
        .order_by(Sale.id.asc())
        .all()
    ]

    released = []
    for sale_id in stale_ids:
        try:
            cancel_sale(sale_id)
        except StateConflictError:
            # Paid or cancelled since the scan
            continue
        released.append(sale_id)

    if released:
        logger.info("Released %d stale draft sale(s): %s", len(released), released)
    return released
