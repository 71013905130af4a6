# Overview: Flask API routes for products; catalog CRUD and stock receiving.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import created, paginated, success
from ..services import inventory_service, products_service
from ..validation import json_object, require_positive_int


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products():
    """
    List active products.

    Query:
        category_id, search, min_price, max_price, min_stock, page, per_page
    """
    args = request.args
    result = products_service.list_products(
        category_id=args.get("category_id"),
        search=args.get("search"),
        min_price=args.get("min_price"),
        max_price=args.get("max_price"),
        min_stock=args.get("min_stock"),
        page=args.get("page", type=int),
        per_page=args.get("per_page", type=int),
    )
    return paginated(result, "Products retrieved")


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product(product_id: int):
    return success(products_service.get_product(product_id).to_dict(), "Product retrieved")


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product():
    product = products_service.create_product(request.get_json(silent=True))
    return created(product.to_dict(), "Product created")


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product(product_id: int):
    product = products_service.update_product(product_id, request.get_json(silent=True))
    return success(product.to_dict(), "Product updated")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product(product_id: int):
    products_service.delete_product(product_id)
    return success(None, "Product deleted")


@products_bp.post("/<int:product_id>/add_stock")
@require_auth
@require_permission("ADD_STOCK")
def add_stock(product_id: int):
    data = json_object(request.get_json(silent=True))
    quantity = require_positive_int(data.get("quantity"), "quantity")
    inventory_service.add_stock(
        product_id,
        quantity,
        user_id=g.current_user.id,
        notes=data.get("notes"),
    )
    product = products_service.get_product(product_id)
    return success(product.to_dict(), "Stock added successfully")
