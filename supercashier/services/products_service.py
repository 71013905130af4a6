# supercashier/services/products_service.py
"""
Products Service

Catalog CRUD for products. Stock is set once on create; afterwards it
only moves through inventory_service (stock additions and sales).
Delete is soft: the row stays so sale history keeps its references.
"""
from __future__ import annotations

from ..errors import FieldErrors, NotFoundError
from ..extensions import db
from ..models import Category, Product
from ..money import to_cents
from ..validation import ModelValidationPolicy, coerce_int, validate_payload
from .inventory_service import MAX_STOCK
from .pagination import paginate

PRODUCT_FIELDS = {
    "category_id", "name", "description", "cost_price", "selling_price",
    "barcode", "product_images",
}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_FIELDS | {"stock"},
    required_on_create={"category_id", "name", "cost_price", "selling_price"},
    money_fields={"cost_price": "cost_price_cents", "selling_price": "selling_price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_FIELDS | {"is_active"},
    money_fields={"cost_price": "cost_price_cents", "selling_price": "selling_price_cents"},
)


def _check_product_rules(patch: dict, product_id: int | None = None) -> None:
    errors = FieldErrors()

    if "category_id" in patch and db.session.get(Category, patch["category_id"]) is None:
        errors.add("category_id", "The selected category id is invalid.")

    if "stock" in patch and patch["stock"] < 0:
        errors.add("stock", "The stock must be at least 0.")
    elif "stock" in patch and patch["stock"] > MAX_STOCK:
        errors.add("stock", f"The stock may not be greater than {MAX_STOCK}.")

    if "product_images" in patch and patch["product_images"] is not None:
        images = patch["product_images"]
        if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
            errors.add("product_images", "The product images must be a list of URLs.")

    barcode = patch.get("barcode")
    if barcode:
        clash = db.session.query(Product.id).filter(Product.barcode == barcode)
        if product_id is not None:
            clash = clash.filter(Product.id != product_id)
        if clash.first():
            errors.add("barcode", "The barcode has already been taken.")
    elif "barcode" in patch:
        # Blank barcode means "no barcode"; keeps the unique index happy
        patch["barcode"] = None

    errors.raise_if_any()


def list_products(
    *,
    category_id=None,
    search: str | None = None,
    min_price=None,
    max_price=None,
    min_stock=None,
    include_inactive: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters and pagination.

    Args:
        category_id: Filter by category
        search: Case-insensitive match on name or barcode
        min_price / max_price: Selling price bounds (inclusive)
        min_stock: Only products with at least this much stock
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    query = db.session.query(Product)

    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Product.category_id == coerce_int(category_id, "category_id"))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            db.or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern))
        )
    if min_price is not None:
        query = query.filter(Product.selling_price_cents >= to_cents(min_price, "min_price"))
    if max_price is not None:
        query = query.filter(Product.selling_price_cents <= to_cents(max_price, "max_price"))
    if min_stock is not None:
        query = query.filter(Product.stock >= coerce_int(min_stock, "min_stock"))

    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, per_page, lambda p: p.to_dict())


def get_product(product_id: int, *, include_inactive: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or (not product.is_active and not include_inactive):
        raise NotFoundError("Product not found")
    return product


def create_product(payload: dict) -> Product:
    """
    Create product from a request payload.

    Raises:
        ValidationError: missing/invalid fields, unknown category,
            duplicate barcode, negative stock
    """
    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_CREATE_POLICY,
        partial=False,
    )
    _check_product_rules(patch)

    product = Product(stock=patch.pop("stock", 0) or 0, is_active=True, **patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """Partial update. stock is not writable here (use add_stock)."""
    product = get_product(product_id, include_inactive=True)
    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_UPDATE_POLICY,
        partial=True,
    )
    _check_product_rules(patch, product_id=product.id)

    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()
    return product


def delete_product(product_id: int) -> Product:
    """Soft delete; stock on hand is retained."""
    product = get_product(product_id)
    product.is_active = False
    db.session.commit()
    return product
