# Overview: Flask API routes for stock additions.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..responses import created, paginated, success
from ..services import inventory_service
from ..validation import coerce_int, json_object, require_positive_int


stock_additions_bp = Blueprint("stock_additions", __name__, url_prefix="/api/stock-additions")


@stock_additions_bp.post("")
@require_auth
@require_permission("ADD_STOCK")
def create_stock_addition():
    """
    Receive stock into a product.

    Request:
        {"product_id": 1, "quantity": 10, "notes": "Supplier delivery"}

    Unknown product ids are reported on product_id (422).
    """
    data = json_object(request.get_json(silent=True))
    if data.get("product_id") is None:
        raise ValidationError.for_field("product_id", "The product_id field is required.")
    product_id = coerce_int(data.get("product_id"), "product_id")
    quantity = require_positive_int(data.get("quantity"), "quantity")

    addition = inventory_service.add_stock(
        product_id,
        quantity,
        user_id=g.current_user.id,
        notes=data.get("notes"),
        refs_as_fields=True,
    )

    return created(addition.to_dict(), "Stock addition recorded")


@stock_additions_bp.get("")
@require_auth
@require_permission("ADD_STOCK")
def list_stock_additions():
    args = request.args
    result = inventory_service.list_stock_additions(
        product_id=args.get("product_id", type=int),
        user_id=args.get("user_id", type=int),
        start_date=args.get("start_date"),
        end_date=args.get("end_date"),
        page=args.get("page", type=int),
        per_page=args.get("per_page", type=int),
    )
    return paginated(result, "Stock additions retrieved")


@stock_additions_bp.get("/<int:addition_id>")
@require_auth
@require_permission("ADD_STOCK")
def get_stock_addition(addition_id: int):
    addition = inventory_service.get_stock_addition(addition_id)
    return success(addition.to_dict(), "Stock addition retrieved")
