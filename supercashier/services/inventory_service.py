# Overview: Inventory store; stock reservation, release and stock additions under product row locks.

"""
All stock mutations go through this module and hold the product row lock
for the rest of the caller's transaction:

- reserve(): conditional decrement, fails with InsufficientStockError
- release(): unconditional increment (no upper bound)
- add_stock(): increment + StockAddition record, committed together

reserve/release do not commit; they run inside the caller's atomic() block
so stock, sale and sale items change together or not at all.
"""

from __future__ import annotations

import logging

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, StockAddition
from ..time_utils import end_of_day, parse_iso_date, start_of_day
from .concurrency import atomic, lock_for_update
from .pagination import paginate

logger = logging.getLogger(__name__)

# products.stock is a 32-bit INTEGER column
MAX_STOCK = 2**31 - 1


def _lock_product(product_id: int) -> Product | None:
    return lock_for_update(
        db.session.query(Product).filter(Product.id == product_id)
    ).first()


def _missing_product(product_id: int, as_field: bool):
    if as_field:
        return ValidationError.for_field("product_id", "The selected product id is invalid.")
    return NotFoundError("Product not found")


def reserve(product_id: int, quantity: int, *, refs_as_fields: bool = False) -> Product:
    """
    Decrement stock by quantity under an exclusive row lock.

    Raises:
        NotFoundError / ValidationError(product_id): unknown or inactive product
        InsufficientStockError: quantity > stock (stock unchanged)
    """
    product = _lock_product(product_id)
    if product is None or not product.is_active:
        raise _missing_product(product_id, refs_as_fields)

    if product.stock < quantity:
        logger.info(
            "Insufficient stock for product %s (available %s, requested %s)",
            product.id, product.stock, quantity,
        )
        raise InsufficientStockError(product.name, product.stock, quantity)

    product.stock -= quantity
    return product


def release(product_id: int, quantity: int) -> Product:
    """
    Increment stock by quantity under an exclusive row lock.

    Inactive products still take their stock back.
    """
    product = _lock_product(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    product.stock += quantity
    return product


def add_stock(
    product_id: int,
    quantity: int,
    *,
    user_id: int | None = None,
    notes: str | None = None,
    refs_as_fields: bool = False,
) -> StockAddition:
    """Receive stock into a product and record the addition in one transaction."""
    if notes is not None and not isinstance(notes, str):
        raise ValidationError.for_field("notes", "The notes must be a string.")

    def _op():
        product = _lock_product(product_id)
        if product is None or not product.is_active:
            raise _missing_product(product_id, refs_as_fields)

        if product.stock + quantity > MAX_STOCK:
            raise ValidationError.for_field(
                "quantity", f"The stock of product '{product.name}' may not exceed {MAX_STOCK}."
            )

        product.stock += quantity
        addition = StockAddition(
            product_id=product.id,
            user_id=user_id,
            quantity=quantity,
            notes=notes,
        )
        db.session.add(addition)
        db.session.flush()
        return addition

    addition = atomic(_op)
    logger.info(
        "Stock added: product=%s quantity=%s user=%s addition=%s",
        product_id, quantity, user_id, addition.id,
    )
    return addition


def get_stock_addition(addition_id: int) -> StockAddition:
    addition = db.session.get(StockAddition, addition_id)
    if addition is None:
        raise NotFoundError("Stock addition not found")
    return addition


def list_stock_additions(
    *,
    product_id: int | None = None,
    user_id: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Stock additions, newest first, filtered by product, user and date range."""
    query = db.session.query(StockAddition)

    if product_id is not None:
        query = query.filter(StockAddition.product_id == product_id)
    if user_id is not None:
        query = query.filter(StockAddition.user_id == user_id)

    try:
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
    except ValueError:
        raise ValidationError({"date": ["Dates must be in YYYY-MM-DD format."]})
    if start is not None:
        query = query.filter(StockAddition.added_at >= start_of_day(start))
    if end is not None:
        query = query.filter(StockAddition.added_at <= end_of_day(end))

    query = query.order_by(StockAddition.added_at.desc(), StockAddition.id.desc())
    return paginate(query, page, per_page, lambda a: a.to_dict())
