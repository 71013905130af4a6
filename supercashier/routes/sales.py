# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# supercashier/routes/sales.py
"""Sales lifecycle API routes (optional authentication)"""

from flask import Blueprint, request

from ..decorators import current_user_or_none, optional_auth, require_auth
from ..responses import created, paginated, success
from ..services import sales_service
from ..validation import json_object


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@optional_auth
def create_sale_route():
    """
    Create new draft sale.

    The authenticated user owns the sale; without a token the body's
    user_id is used instead.
    """
    data = json_object(request.get_json(silent=True))
    user = sales_service.resolve_sale_user(current_user_or_none(), data.get("user_id"))
    sale = sales_service.create_sale(user.id)
    return created(sale.to_dict(), "Sale created")


@sales_bp.get("")
@require_auth
def list_sales_route():
    args = request.args
    result = sales_service.list_sales(
        payment_status=args.get("payment_status"),
        user_id=args.get("user_id", type=int),
        page=args.get("page", type=int),
        per_page=args.get("per_page", type=int),
    )
    return paginated(result, "Sales retrieved")


@sales_bp.get("/<int:sale_id>")
@optional_auth
def get_sale_route(sale_id: int):
    return success(sales_service.get_sale(sale_id).to_dict(), "Sale retrieved")


def _item_added(item):
    sale = sales_service.get_sale(item.sale_id)
    return created(
        {"item": item.to_dict(), "sale": sale.to_dict()},
        "Item added to sale",
    )


@sales_bp.post("/items")
@optional_auth
def add_item_by_body_route():
    """
    Add item; sale_id comes from the body.

    Unknown sale/product ids are field errors (422).
    """
    data = json_object(request.get_json(silent=True))
    item = sales_service.add_item(
        data.get("sale_id"),
        data.get("product_id"),
        data.get("quantity"),
        data.get("discount_amount"),
        refs_as_fields=True,
    )
    return _item_added(item)


@sales_bp.post("/<int:sale_id>/items")
@optional_auth
def add_item_route(sale_id: int):
    """Add item to the sale in the path. Unknown sale/product -> 404."""
    data = json_object(request.get_json(silent=True))
    item = sales_service.add_item(
        sale_id,
        data.get("product_id"),
        data.get("quantity"),
        data.get("discount_amount"),
    )
    return _item_added(item)


@sales_bp.delete("/items/<int:item_id>")
@optional_auth
def remove_item_route(item_id: int):
    sale = sales_service.remove_item(item_id)
    return success(sale.to_dict(), "Item removed from sale")


@sales_bp.put("/<int:sale_id>/tax")
@optional_auth
def set_tax_route(sale_id: int):
    data = json_object(request.get_json(silent=True))
    sale = sales_service.set_tax(sale_id, data.get("tax_amount"))
    return success(sale.to_dict(), "Tax updated")


@sales_bp.post("/<int:sale_id>/confirm-payment")
@optional_auth
def confirm_payment_route(sale_id: int):
    data = json_object(request.get_json(silent=True))
    sale = sales_service.confirm_payment(sale_id, data.get("payment_id"))
    return success(sale.to_dict(), "Payment confirmed")


@sales_bp.delete("/<int:sale_id>")
@optional_auth
def cancel_sale_route(sale_id: int):
    """Cancel (never hard-delete); reserved stock goes back to the shelf."""
    sale = sales_service.cancel_sale(sale_id)
    return success(sale.to_dict(), "Sale cancelled")
